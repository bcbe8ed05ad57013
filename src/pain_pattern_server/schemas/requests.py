"""Request bodies for the HTTP API."""

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from pain_pattern_server.core.config import settings
from pain_pattern_server.schemas.base import CamelModel
from pain_pattern_server.schemas.entries import ensure_aware


class AnalysisRequest(CamelModel):
    """Entries to analyse plus optional configuration overrides.

    Entries are kept raw here so that malformed records are dropped by the
    cleaner instead of failing the whole request.
    """

    entries: list[Any] = Field(default_factory=list, description="Raw pain entries")
    config: dict[str, Any] | None = Field(
        default=None, description="AnalysisConfig overrides (snake_case or camelCase)"
    )
    now: datetime | None = Field(
        default=None, description="Analysis time, defaults to the server clock"
    )

    @field_validator("now")
    @classmethod
    def _now_aware(cls, value: datetime | None) -> datetime | None:
        """Read a naive ``now`` in the analysis timezone, like entry timestamps."""
        if value is None:
            return None
        return ensure_aware(value, settings.get_timezone())
