from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from neocities_cli.models import FileRecord
from neocities_cli.paths import normalize_path


def is_under(path: str, target: str) -> bool:
    """True when `path` is `target` itself or lies inside it, on a component boundary."""
    if not target:
        return True
    return path == target or path.startswith(f"{target}/")


def filter_remote_listing(records: Iterable[FileRecord], target: str) -> dict[str, FileRecord]:
    """Key the full remote snapshot by canonical path, keeping only entries under `target`.

    The listing must be the complete recursive snapshot; the service only
    returns nested entries when no path is passed.
    """
    target = normalize_path(target)
    result: dict[str, FileRecord] = {}
    for record in records:
        key = normalize_path(record.path)
        if not key or not is_under(key, target):
            continue
        result[key] = record if key == record.path else replace(record, path=key)
    return result
