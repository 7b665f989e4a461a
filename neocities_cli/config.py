from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from neocities_cli.errors import ConfigError


CONFIG_FILENAME = ".neocities.json"
DEFAULT_API_URL = "https://neocities.org/api/"
DEFAULT_TIMEOUT_SECONDS = 30.0

ENV_API_KEY = "NEOCITIES_KEY"
ENV_USERNAME = "NEOCITIES_USER"
ENV_PASSWORD = "NEOCITIES_PASS"
ENV_API_URL = "NEOCITIES_API_URL"


@dataclass(slots=True)
class NeocitiesConfig:
    api_key: str = ""
    username: str = ""
    password: str = ""
    api_url: str = DEFAULT_API_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @property
    def base_url(self) -> str:
        return self.api_url if self.api_url.endswith("/") else f"{self.api_url}/"


def config_path(base_dir: Path | None = None) -> Path:
    return (base_dir or Path.cwd()).resolve() / CONFIG_FILENAME


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object.")
    return data


def load_config(
    base_dir: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> NeocitiesConfig:
    """Build the configuration once: config file values, overridden by environment variables."""
    env = os.environ if environ is None else environ
    data = _read_config_file(config_path(base_dir))

    timeout_raw = data.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)
    try:
        timeout_seconds = float(timeout_raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid timeout_seconds value: {timeout_raw!r}") from exc

    return NeocitiesConfig(
        api_key=(env.get(ENV_API_KEY) or str(data.get("api_key", ""))).strip(),
        username=(env.get(ENV_USERNAME) or str(data.get("username", ""))).strip(),
        password=env.get(ENV_PASSWORD, ""),
        api_url=(env.get(ENV_API_URL) or str(data.get("api_url", DEFAULT_API_URL))).strip(),
        timeout_seconds=timeout_seconds,
    )


def save_config(config: NeocitiesConfig, base_dir: Path | None = None) -> Path:
    path = config_path(base_dir)
    # Passwords stay in the environment only.
    payload = {
        "api_key": config.api_key,
        "username": config.username,
        "api_url": config.api_url,
        "timeout_seconds": config.timeout_seconds,
    }
    with path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2)
        fh.write("\n")
    return path
