"""Neocities HTTP API client built on requests."""

from __future__ import annotations

import logging
from contextlib import ExitStack
from pathlib import Path
from typing import Any, Mapping, Sequence
from urllib.parse import urljoin

import requests

from neocities_cli.auth import Credentials, resolve_credentials
from neocities_cli.config import NeocitiesConfig
from neocities_cli.errors import ApiRequestError, IOFailure, RemoteFetchFailure
from neocities_cli.models import FileRecord


logger = logging.getLogger(__name__)

RESULT_SUCCESS = "success"


def _error_message(response: requests.Response, body: Any) -> str:
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {response.status_code} {response.reason or ''}".strip()


class NeocitiesClient:
    """Authenticated client for the Neocities site API."""

    def __init__(
        self,
        config: NeocitiesConfig,
        credentials: Credentials | None = None,
        *,
        session: requests.Session | None = None,
    ) -> None:
        """Create a client.

        Args:
            config: Configuration holding the API URL and request timeout.
            credentials: Credentials applied to every request. Endpoints that
                need no authentication (info for a named site) work without.
            session: Optional session, mainly for tests.
        """
        self._config = config
        self._session = session or requests.Session()
        self._session.headers["Accept"] = "application/json"
        if credentials is not None:
            credentials.apply(self._session)

    def _url(self, endpoint: str) -> str:
        return urljoin(self._config.base_url, endpoint)

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> dict[str, Any]:
        """Send one request and return the decoded success body.

        Raises:
            ApiRequestError: On transport errors, non-2xx statuses, non-JSON
                bodies and `{"result": "error"}` responses.
        """
        url = self._url(endpoint)
        logger.debug("%s %s", method, url)
        try:
            response = self._session.request(
                method, url, timeout=self._config.timeout_seconds, **kwargs
            )
        except requests.RequestException as exc:
            raise ApiRequestError(f"Request to the Neocities API failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.ok or not isinstance(body, dict) or body.get("result") != RESULT_SUCCESS:
            error_type = body.get("error_type") if isinstance(body, dict) else None
            logger.debug("Neocities API error on %s: status=%s type=%s", endpoint, response.status_code, error_type)
            raise ApiRequestError(
                _error_message(response, body),
                status_code=response.status_code,
                error_type=error_type,
            )
        return body

    def list_files(self, path: str | None = None) -> list[FileRecord]:
        """Fetch the site listing.

        With no `path` the service returns every file and directory of the
        site, recursively; with a `path` only that directory's direct entries.

        Raises:
            RemoteFetchFailure: If the listing cannot be retrieved or parsed.
        """
        params = {"path": path} if path else None
        try:
            body = self._request("GET", "list", params=params)
        except ApiRequestError as exc:
            raise RemoteFetchFailure(f"Could not fetch the remote file list: {exc.message}") from exc

        files = body.get("files")
        if not isinstance(files, list):
            raise RemoteFetchFailure("Remote file list response has no `files` array.")
        try:
            records = [FileRecord.from_api(entry) for entry in files]
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise RemoteFetchFailure(f"Malformed entry in remote file list: {exc}") from exc

        logger.debug("Fetched %d remote entries", len(records))
        return records

    def info(self, sitename: str | None = None) -> dict[str, Any]:
        params = {"sitename": sitename} if sitename else None
        body = self._request("GET", "info", params=params)
        info = body.get("info")
        if not isinstance(info, dict):
            raise ApiRequestError("Site info response has no `info` object.")
        return info

    def fetch_api_key(self, credentials: Credentials) -> str:
        """Request the account's API key using username/password authentication."""
        if not credentials.username or not credentials.password:
            raise ApiRequestError("An API key can only be requested with a username and password.")
        body = self._request("GET", "key", auth=(credentials.username, credentials.password))
        api_key = body.get("api_key")
        if not api_key:
            raise ApiRequestError("Key response has no `api_key` value.")
        return str(api_key)

    def upload(self, files: Mapping[str, Path]) -> str:
        """Upload local files; keys are the remote paths, values the local files."""
        if not files:
            raise ApiRequestError("No files given to upload.")
        with ExitStack() as stack:
            try:
                parts = {
                    remote_path: (Path(remote_path).name, stack.enter_context(Path(local_path).open("rb")))
                    for remote_path, local_path in files.items()
                }
            except OSError as exc:
                raise IOFailure(f"cannot read {exc.filename}: {exc.strerror or exc}") from exc
            body = self._request("POST", "upload", files=parts)
        return str(body.get("message", ""))

    def delete(self, paths: Sequence[str]) -> str:
        if not paths:
            raise ApiRequestError("No files given to delete.")
        body = self._request("POST", "delete", data={"filenames[]": list(paths)})
        return str(body.get("message", ""))


def client_from_config(config: NeocitiesConfig, *, authenticated: bool = True) -> NeocitiesClient:
    """Construct a NeocitiesClient, resolving credentials when `authenticated` is set."""
    credentials = resolve_credentials(config) if authenticated else None
    return NeocitiesClient(config, credentials)
