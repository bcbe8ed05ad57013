"""Shared test fixtures."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from itertools import count
from typing import Any

import pytest

from pain_pattern_server.schemas.entries import PainEntry

# Fixed analysis time so results are deterministic
NOW = datetime(2025, 3, 31, 12, 0, tzinfo=UTC)

_ids = count(1)


def raw_entry(days_ago: float = 0, pain: Any = 5, hour: int = 12, **fields: Any) -> dict[str, Any]:
    """Build a raw (wire-format) entry relative to NOW."""
    timestamp = (NOW - timedelta(days=days_ago)).replace(hour=hour, minute=0)
    return {
        "id": f"entry-{next(_ids)}",
        "timestamp": timestamp.isoformat(),
        "painLevel": pain,
        **fields,
    }


def entry(days_ago: float = 0, pain: int = 5, hour: int = 12, **fields: Any) -> PainEntry:
    """Build a validated PainEntry relative to NOW."""
    return PainEntry.model_validate(raw_entry(days_ago, pain, hour, **fields))


@pytest.fixture
def now() -> datetime:
    """Fixed analysis time."""
    return NOW


@pytest.fixture
def make_entry() -> Callable[..., PainEntry]:
    """Factory for validated entries."""
    return entry


@pytest.fixture
def make_raw_entry() -> Callable[..., dict[str, Any]]:
    """Factory for raw entries."""
    return raw_entry


@pytest.fixture
def stress_entries() -> list[dict[str, Any]]:
    """10 stressed entries at pain 7 and 10 trigger-free entries at pain 3.

    One entry per day; the stressed days are the most recent.
    """
    entries = [raw_entry(days_ago=19 - i, pain=3) for i in range(10)]
    entries += [raw_entry(days_ago=9 - i, pain=7, triggers=["stress"]) for i in range(10)]
    return entries
