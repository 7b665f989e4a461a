from __future__ import annotations

import hashlib
import logging
import os
import stat
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from neocities_cli.errors import IOFailure, TimestampParseError
from neocities_cli.models import FileRecord
from neocities_cli.paths import normalize_path, validate_root
from neocities_cli.timestamps import format_timestamp

if TYPE_CHECKING:
    from rich.console import Console


logger = logging.getLogger(__name__)

HASH_CHUNK_SIZE = 1024 * 1024


def sha1_file(path: Path, chunk_size: int = HASH_CHUNK_SIZE) -> str:
    digest = hashlib.sha1()
    with path.open("rb") as fh:
        while True:
            chunk = fh.read(chunk_size)
            if not chunk:
                break
            digest.update(chunk)
    return digest.hexdigest()


def _local_record(path: Path) -> FileRecord | None:
    # stat() follows symlinks, so a dangling link fails here and aborts the scan.
    info = path.stat()
    try:
        modified_at = format_timestamp(info.st_mtime)
    except TimestampParseError as exc:
        raise IOFailure(f"cannot read {path}: {exc.message}") from exc

    if stat.S_ISDIR(info.st_mode):
        return FileRecord(
            path=normalize_path(path),
            is_directory=True,
            size=None,
            modified_at=modified_at,
            content_hash=None,
        )
    if stat.S_ISREG(info.st_mode):
        return FileRecord(
            path=normalize_path(path),
            is_directory=False,
            size=info.st_size,
            modified_at=modified_at,
            content_hash=sha1_file(path),
        )
    return None


def scan_local_tree(
    root: str | os.PathLike[str],
    *,
    on_entry: Callable[[str], None] | None = None,
) -> dict[str, FileRecord]:
    """Walk `root` and return one record per entry, keyed by canonical path.

    The walk uses an explicit stack of pending directories. Symlinked
    directories are recorded but not descended into. Any OS error aborts the
    whole scan with IOFailure.
    """
    root_path = validate_root(root)
    records: dict[str, FileRecord] = {}
    pending: list[Path] = [root_path]

    try:
        root_record = _local_record(root_path)
        # The site root itself ("" after normalization) always exists remotely.
        if root_record is not None and root_record.path:
            records[root_record.path] = root_record

        while pending:
            directory = pending.pop()
            for entry in sorted(directory.iterdir()):
                if on_entry is not None:
                    on_entry(normalize_path(entry))

                record = _local_record(entry)
                if record is None:
                    logger.debug("Skipping special file %s", entry)
                    continue

                records[record.path] = record
                if record.is_directory and not entry.is_symlink():
                    pending.append(entry)
    except OSError as exc:
        location = exc.filename if exc.filename is not None else root_path
        raise IOFailure(f"cannot read {location}: {exc.strerror or exc}") from exc

    logger.debug("Scanned %d local entries under %s", len(records), root_path)
    return records


def scan_local_tree_with_progress(
    root: str | os.PathLike[str],
    *,
    console: "Console | None" = None,
) -> dict[str, FileRecord]:
    from rich.markup import escape

    def _shorten_path(path: str, max_len: int = 64) -> str:
        if len(path) <= max_len:
            return path
        keep = max_len - 3
        head = keep // 2
        tail = keep - head
        return f"{path[:head]}...{path[-tail:]}"

    if console is None:
        return scan_local_tree(root)

    with console.status("Scanning local files...") as status:

        def _show(path: str) -> None:
            status.update(f"Scanning [bold]{escape(_shorten_path(path))}[/bold]")

        return scan_local_tree(root, on_entry=_show)
