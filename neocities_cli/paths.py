from __future__ import annotations

import os
from pathlib import Path, PurePosixPath

from neocities_cli.errors import InvalidArgument, InvalidPath


def normalize_path(path: str | os.PathLike[str]) -> str:
    """Return the canonical, root-relative key used for both local and remote records.

    `./foo/`, `foo/` and `/foo/` all become `foo`; `.` becomes the empty string
    (the site root).
    """
    posix = PurePosixPath(os.fspath(path).replace("\\", "/"))
    return "/".join(part for part in posix.parts if part not in {posix.anchor, ".", ".."})


def validate_root(path: str | os.PathLike[str] | None) -> Path:
    if path is None or not os.fspath(path).strip():
        raise InvalidArgument("no local path given")
    root = Path(path)
    if not root.exists():
        raise InvalidPath(f"path does not exist: {path}")
    if not root.is_dir():
        raise InvalidPath(f"path is not a directory: {path}")
    return root
