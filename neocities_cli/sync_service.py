from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

from neocities_cli.filters import filter_remote_listing
from neocities_cli.models import DiffItem, DiffNote, DiffSide
from neocities_cli.paths import normalize_path, validate_root
from neocities_cli.reconcile import reconcile
from neocities_cli.scanner import scan_local_tree_with_progress

if TYPE_CHECKING:
    from rich.console import Console

    from neocities_cli.api import NeocitiesClient


logger = logging.getLogger(__name__)

UPLOAD_NOTES = {DiffNote.REMOTE_MISSING, DiffNote.LOCAL_AHEAD}
REMOTE_ONLY_NOTES = {DiffNote.LOCAL_MISSING, DiffNote.REMOTE_AHEAD}


@dataclass(slots=True)
class SyncPlan:
    upload_paths: list[str] = field(default_factory=list)
    remote_only_paths: list[str] = field(default_factory=list)
    conflict_paths: list[str] = field(default_factory=list)

    @property
    def in_sync(self) -> bool:
        return not (self.upload_paths or self.remote_only_paths or self.conflict_paths)


def build_sync_plan(items: Iterable[DiffItem]) -> SyncPlan:
    """Turn diff items into the list of actions a sync would take.

    Directories are left out of the upload list; the service creates them
    implicitly when a file beneath them is uploaded.
    """
    upload: set[str] = set()
    remote_only: set[str] = set()
    conflicts: set[str] = set()

    for item in items:
        if item.record.is_directory:
            continue
        if item.note in UPLOAD_NOTES and item.side is DiffSide.LOCAL:
            upload.add(item.path)
        elif item.note in REMOTE_ONLY_NOTES and item.side is DiffSide.REMOTE:
            remote_only.add(item.path)
        elif item.note is DiffNote.CONFLICT:
            conflicts.add(item.path)

    return SyncPlan(
        upload_paths=sorted(upload),
        remote_only_paths=sorted(remote_only),
        conflict_paths=sorted(conflicts),
    )


def diff_with_remote(
    root: str | os.PathLike[str],
    client: "NeocitiesClient",
    *,
    console: "Console | None" = None,
) -> list[DiffItem]:
    """Scan `root`, fetch the full remote listing and reconcile the two."""
    root_path = validate_root(root)
    target = normalize_path(root_path)

    local_map = scan_local_tree_with_progress(root_path, console=console)

    # Only the unfiltered listing is recursive, so filter after fetching.
    if console is not None:
        with console.status("Fetching remote file list..."):
            listing = client.list_files()
    else:
        listing = client.list_files()
    remote_map = filter_remote_listing(listing, target)

    logger.debug("Comparing %d local and %d remote entries under %r", len(local_map), len(remote_map), target)
    return reconcile(local_map, remote_map)


def plan_sync(
    root: str | os.PathLike[str],
    client: "NeocitiesClient",
    *,
    console: "Console | None" = None,
) -> SyncPlan:
    return build_sync_plan(diff_with_remote(root, client, console=console))
