from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_ARGUMENT = "invalid-argument"
    INVALID_PATH = "invalid-path"
    IO_FAILURE = "io-failure"
    TIMESTAMP_PARSE = "timestamp-parse"
    REMOTE_FETCH = "remote-fetch"
    MISSING_CREDENTIALS = "missing-credentials"
    API_REQUEST = "api-request"
    CONFIG = "config"


class NeocitiesError(Exception):
    """Base class for every failure raised by neocities-cli."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidArgument(NeocitiesError):
    kind = ErrorKind.INVALID_ARGUMENT


class InvalidPath(NeocitiesError):
    kind = ErrorKind.INVALID_PATH


class IOFailure(NeocitiesError):
    kind = ErrorKind.IO_FAILURE


class TimestampParseError(NeocitiesError):
    kind = ErrorKind.TIMESTAMP_PARSE


class RemoteFetchFailure(NeocitiesError):
    kind = ErrorKind.REMOTE_FETCH


class MissingCredentials(NeocitiesError):
    kind = ErrorKind.MISSING_CREDENTIALS


class ApiRequestError(NeocitiesError):
    kind = ErrorKind.API_REQUEST

    def __init__(self, message: str, *, status_code: int | None = None, error_type: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_type = error_type


class ConfigError(NeocitiesError):
    kind = ErrorKind.CONFIG
