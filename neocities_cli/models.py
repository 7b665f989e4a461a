from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


class DiffSide(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


class DiffNote(str, Enum):
    LOCAL_MISSING = "local-missing"
    REMOTE_MISSING = "remote-missing"
    LOCAL_AHEAD = "local-ahead"
    LOCAL_BEHIND = "local-behind"
    REMOTE_AHEAD = "remote-ahead"
    REMOTE_BEHIND = "remote-behind"
    CONFLICT = "conflict"


@dataclass(slots=True, frozen=True)
class FileRecord:
    path: str
    is_directory: bool
    size: int | None
    modified_at: str
    content_hash: str | None

    @classmethod
    def from_api(cls, entry: Mapping[str, Any]) -> "FileRecord":
        """Build a record from one entry of the `/api/list` response.

        Raises KeyError/TypeError/ValueError on malformed entries; the API
        client turns those into a fetch failure.
        """
        size = entry.get("size")
        content_hash = entry.get("sha1_hash")
        return cls(
            path=str(entry["path"]),
            is_directory=bool(entry["is_directory"]),
            size=int(size) if size is not None else None,
            modified_at=str(entry.get("updated_at") or ""),
            content_hash=str(content_hash).lower() if content_hash else None,
        )


@dataclass(slots=True, frozen=True)
class DiffItem:
    path: str
    side: DiffSide
    note: DiffNote
    modified_at: str
    record: FileRecord
    present_locally: bool | None = None
    present_remotely: bool | None = None
