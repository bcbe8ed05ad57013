"""Pain entry schema.

This is the ingestion boundary: historical entry shapes (``intensity`` or a
nested ``baselineData`` block, medication objects) are normalized here so the
analysis services only ever see the canonical fields.
"""

import math
from collections.abc import Iterable
from datetime import UTC, date, datetime, tzinfo
from typing import Any

from pydantic import (
    AliasChoices,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from pain_pattern_server.schemas.base import CamelModel

PAIN_KEYS = ("painLevel", "pain_level", "intensity")


def _finite_or_none(value: Any) -> Any:
    """Treat NaN/inf as missing for optional numeric fields."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def ensure_aware(value: datetime, tz: tzinfo | None = None) -> datetime:
    """Attach ``tz`` (UTC when None) to a naive datetime; aware values pass through."""
    if value.tzinfo is not None:
        return value
    return value.replace(tzinfo=tz or UTC)


def _unique_labels(values: Iterable[Any]) -> list[str]:
    labels: list[str] = []
    for value in values:
        if value is None:
            continue
        label = str(value).strip()
        if label and label not in labels:
            labels.append(label)
    return labels


class QualityOfLife(CamelModel):
    """Optional quality-of-life sub-record."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    sleep_quality: float | None = Field(default=None, description="Sleep quality (0-10)")
    mood_impact: float | None = Field(default=None, description="Mood impact (signed, e.g. -5..+5)")

    @field_validator("sleep_quality", "mood_impact", mode="before")
    @classmethod
    def _drop_non_finite(cls, value: Any) -> Any:
        return _finite_or_none(value)

    def has_data(self) -> bool:
        """Check whether any dimension is populated."""
        return self.sleep_quality is not None or self.mood_impact is not None


class PainEntry(CamelModel):
    """A single pain-log entry."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
        allow_inf_nan=False,
    )

    id: str | None = Field(default=None, description="Opaque entry identifier")
    timestamp: datetime = Field(description="When the entry was recorded")
    pain_level: int = Field(
        ge=0,
        le=10,
        validation_alias=AliasChoices(*PAIN_KEYS),
        serialization_alias="painLevel",
        description="Pain on the 0-10 clinical scale",
    )
    locations: list[str] = Field(default_factory=list, description="Body locations")
    symptoms: list[str] = Field(default_factory=list, description="Symptom labels")
    triggers: list[str] = Field(default_factory=list, description="Trigger labels")
    medications: list[str] = Field(default_factory=list, description="Medication names")
    relief_methods: list[str] = Field(default_factory=list, description="Interventions applied")
    quality_of_life: QualityOfLife | None = Field(default=None, description="QoL sub-record")
    activity_level: float | None = Field(default=None, description="Activity level (0-10)")

    @model_validator(mode="before")
    @classmethod
    def _flatten_legacy_shape(cls, data: Any) -> Any:
        """Lift ``baselineData`` fields to the top level."""
        if not isinstance(data, dict):
            return data
        legacy = data.get("baselineData") or data.get("baseline_data")
        if not isinstance(legacy, dict):
            return data

        data = dict(data)
        if not any(data.get(key) is not None for key in PAIN_KEYS) and "pain" in legacy:
            data["painLevel"] = legacy["pain"]
        for key in ("locations", "symptoms"):
            if data.get(key) is None and legacy.get(key) is not None:
                data[key] = legacy[key]
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return None if value is None else str(value)

    @field_validator("pain_level", mode="before")
    @classmethod
    def _reject_bool_pain(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("pain level must be numeric")
        return value

    @field_validator("locations", "symptoms", "triggers", "relief_methods", mode="before")
    @classmethod
    def _normalize_labels(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return _unique_labels([value])
        return _unique_labels(value)

    @field_validator("medications", mode="before")
    @classmethod
    def _normalize_medications(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, dict):
            value = value.get("current") or []
        if isinstance(value, str):
            value = [value]
        names = [item.get("name") if isinstance(item, dict) else item for item in value]
        return _unique_labels(names)

    @field_validator("activity_level", mode="before")
    @classmethod
    def _drop_non_finite_activity(cls, value: Any) -> Any:
        return _finite_or_none(value)

    @field_validator("timestamp", mode="after")
    @classmethod
    def _ensure_aware(cls, value: datetime, info: ValidationInfo) -> datetime:
        """Interpret naive timestamps in the analysis timezone (UTC by default)."""
        return ensure_aware(value, (info.context or {}).get("tz"))

    def local_date(self, tz: tzinfo | None = None) -> date:
        """Calendar date of the entry, optionally shifted into ``tz``."""
        if tz is not None:
            return self.timestamp.astimezone(tz).date()
        return self.timestamp.date()

    def has_qol_data(self) -> bool:
        """Check whether sleep, mood or activity is recorded."""
        if self.activity_level is not None:
            return True
        return self.quality_of_life is not None and self.quality_of_life.has_data()

    @property
    def sleep_quality(self) -> float | None:
        return self.quality_of_life.sleep_quality if self.quality_of_life else None

    @property
    def mood_impact(self) -> float | None:
        return self.quality_of_life.mood_impact if self.quality_of_life else None
