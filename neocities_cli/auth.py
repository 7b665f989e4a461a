from __future__ import annotations

from dataclasses import dataclass

import requests

from neocities_cli.config import ENV_PASSWORD, ENV_USERNAME, NeocitiesConfig
from neocities_cli.errors import MissingCredentials


@dataclass(slots=True, frozen=True)
class Credentials:
    api_key: str | None = None
    username: str | None = None
    password: str | None = None

    @property
    def uses_api_key(self) -> bool:
        return bool(self.api_key)

    def apply(self, session: requests.Session) -> None:
        if self.api_key:
            session.headers["Authorization"] = f"Bearer {self.api_key}"
        else:
            session.auth = (self.username or "", self.password or "")


def resolve_password_credentials(config: NeocitiesConfig) -> Credentials:
    if not config.username:
        raise MissingCredentials(f"missing username: set {ENV_USERNAME}")
    if not config.password:
        raise MissingCredentials(f"missing password: set {ENV_PASSWORD}")
    return Credentials(username=config.username, password=config.password)


def resolve_credentials(config: NeocitiesConfig) -> Credentials:
    """Prefer the API key; fall back to a complete username/password pair."""
    if config.api_key:
        return Credentials(api_key=config.api_key)
    return resolve_password_credentials(config)
