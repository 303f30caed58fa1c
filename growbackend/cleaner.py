"""Planning the clean-up of duplicated feed entries."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from uuid import UUID

log = logging.getLogger(__name__)

# Entry types whose duplicates are told apart by the medias attached to them.
MEDIA_TYPES = frozenset(
    {
        "FE_MEDIA",
        "FE_BENDING",
        "FE_DEFOLATION",
        "FE_TRANSPLANT",
        "FE_FIMMING",
        "FE_TOPPING",
        "FE_MEASURE",
    }
)


class CleanupKind(Enum):
    KEEP = "keep"
    DELETE = "delete"


@dataclass(frozen=True)
class FeedEntryRecord:
    """The fields of a feed entry that the clean-up looks at."""

    id: UUID
    feed_id: UUID
    type: str
    date: datetime


@dataclass(frozen=True)
class CleanupAction:
    """What to do with one entry; a kept entry may get a new date."""

    kind: CleanupKind
    entry: FeedEntryRecord
    new_date: datetime | None = None


def plan_duplicate_cleanup(
    entry_type: str,
    entries: Sequence[FeedEntryRecord],
    media_counts: Mapping[UUID, int],
) -> list[CleanupAction]:
    """Decide which of a group of duplicated entries to keep.

    ``entries`` share creation date, type and feed, newest record first.
    For media types, entries without medias are deleted and the others are
    kept, each kept entry after the first moved one more minute later so
    they stop colliding. For other types only the first entry is kept.
    Raises ``ValueError`` for an empty group of a non-media type.
    """
    actions: list[CleanupAction] = []
    if entry_type in MEDIA_TYPES:
        kept = 0
        for entry in entries:
            count = media_counts.get(entry.id, 0)
            if count == 0:
                log.info("deleting %s %d %s", entry.id, count, entry.type)
                actions.append(CleanupAction(CleanupKind.DELETE, entry))
                continue
            log.info("keeping %s %d %s", entry.id, count, entry.type)
            new_date = None
            if kept > 0:
                new_date = entry.date + timedelta(minutes=kept)
                log.info(
                    "adding %dmin to created at, was %s, will be %s",
                    kept, entry.date, new_date,
                )
            actions.append(CleanupAction(CleanupKind.KEEP, entry, new_date))
            kept += 1
        return actions

    if not entries:
        raise ValueError(f"no entries in duplicate group of type {entry_type!r}")
    first, *rest = entries
    log.info("keeping %s %s", first.id, first.type)
    actions.append(CleanupAction(CleanupKind.KEEP, first))
    for entry in rest:
        log.info("deleting %s %s", entry.id, entry.type)
        actions.append(CleanupAction(CleanupKind.DELETE, entry))
    return actions