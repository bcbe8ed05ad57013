"""Entry validation and normalization."""

from collections.abc import Iterable, Mapping
from datetime import tzinfo
from typing import Any

import structlog
from pydantic import ValidationError

from pain_pattern_server.schemas.entries import PainEntry

logger = structlog.get_logger()


def parse_entry(raw: Any, tz: tzinfo | None = None) -> PainEntry | None:
    """Validate a single raw entry.

    Args:
        raw: PainEntry or mapping in any supported shape
        tz: Timezone for naive timestamps (UTC if None)

    Returns:
        The normalized entry, or None if it is invalid
    """
    if isinstance(raw, PainEntry):
        return raw
    if not isinstance(raw, Mapping):
        return None
    try:
        return PainEntry.model_validate(dict(raw), context={"tz": tz})
    except (ValidationError, TypeError, ValueError, OverflowError):
        # Anything that fails to parse is just a bad record
        return None


def clean_entries(raw_entries: Iterable[Any], tz: tzinfo | None = None) -> list[PainEntry]:
    """Drop invalid entries and sort the rest chronologically.

    Entries with a missing or out-of-range pain level or an unparseable
    timestamp are filtered out, never raised.

    Args:
        raw_entries: Raw entries (mappings or PainEntry instances)
        tz: Timezone for naive timestamps

    Returns:
        Valid entries sorted ascending by timestamp (stable)
    """
    valid: list[PainEntry] = []
    dropped = 0

    for raw in raw_entries:
        entry = parse_entry(raw, tz)
        if entry is None:
            dropped += 1
        else:
            valid.append(entry)

    if dropped:
        logger.debug("Dropped invalid entries", dropped=dropped, kept=len(valid))

    return sorted(valid, key=lambda e: e.timestamp)
