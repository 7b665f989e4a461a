from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, Mapping

from neocities_cli.models import DiffItem, DiffNote, DiffSide, FileRecord
from neocities_cli.timestamps import parse_timestamp


logger = logging.getLogger(__name__)


def _missing_item(record: FileRecord, side: DiffSide) -> DiffItem:
    local = side is DiffSide.LOCAL
    return DiffItem(
        path=record.path,
        side=side,
        note=DiffNote.REMOTE_MISSING if local else DiffNote.LOCAL_MISSING,
        modified_at=record.modified_at,
        record=record,
        present_locally=local,
        present_remotely=not local,
    )


def _shared_item(record: FileRecord, side: DiffSide, note: DiffNote) -> DiffItem:
    return DiffItem(
        path=record.path,
        side=side,
        note=note,
        modified_at=record.modified_at,
        record=record,
        present_locally=True,
        present_remotely=True,
    )


def _arbitrate(local: FileRecord, remote: FileRecord) -> tuple[DiffNote, DiffNote]:
    """Return the (local, remote) notes for a path whose content differs."""
    local_date = parse_timestamp(local.modified_at)
    remote_date = parse_timestamp(remote.modified_at)

    if local_date > remote_date:
        return DiffNote.LOCAL_AHEAD, DiffNote.REMOTE_BEHIND
    if remote_date > local_date:
        return DiffNote.LOCAL_BEHIND, DiffNote.REMOTE_AHEAD
    return DiffNote.CONFLICT, DiffNote.CONFLICT


def reconcile(
    local_map: Mapping[str, FileRecord],
    remote_map: Mapping[str, FileRecord],
) -> list[DiffItem]:
    """Classify every path that is not in sync between the two maps.

    Shared paths are compared by content hash only; timestamps decide which
    side is newer when the hashes differ. An unparseable timestamp raises
    TimestampParseError and no partial result is returned.
    """
    local_pending = dict(local_map)
    remote_pending = dict(remote_map)
    items: list[DiffItem] = []

    for key in [key for key in remote_pending if key not in local_pending]:
        items.append(_missing_item(remote_pending.pop(key), DiffSide.REMOTE))

    for key in [key for key in local_pending if key not in remote_pending]:
        items.append(_missing_item(local_pending.pop(key), DiffSide.LOCAL))

    for key in list(local_pending):
        local = local_pending.pop(key)
        remote = remote_pending.pop(key)
        if local.content_hash == remote.content_hash:
            continue

        local_note, remote_note = _arbitrate(local, remote)
        items.append(_shared_item(local, DiffSide.LOCAL, local_note))
        items.append(_shared_item(remote, DiffSide.REMOTE, remote_note))

    items.sort(key=lambda item: (item.path, item.side.value))
    logger.debug("Reconciled %d local and %d remote entries: %d differences",
                 len(local_map), len(remote_map), len(items))
    return items


def summarize(items: Iterable[DiffItem]) -> dict[DiffNote, int]:
    counts = Counter(item.note for item in items)
    return {note: counts[note] for note in DiffNote if counts[note]}
