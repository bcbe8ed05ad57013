"""Tests for entry validation and cleaning."""

from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from pain_pattern_server.services.cleaning import clean_entries, parse_entry


class TestCleanEntries:
    """Tests for clean_entries."""

    def test_out_of_range_pain_dropped(self, make_raw_entry) -> None:
        """Test only pain within 0-10 survives."""
        cleaned = clean_entries(
            [make_raw_entry(pain=-1), make_raw_entry(pain=11), make_raw_entry(pain=5)]
        )

        assert [e.pain_level for e in cleaned] == [5]

    def test_boundaries_kept(self, make_raw_entry) -> None:
        """Test 0 and 10 are valid pain levels."""
        cleaned = clean_entries([make_raw_entry(pain=0), make_raw_entry(pain=10)])

        assert len(cleaned) == 2

    def test_invalid_pain_values_dropped(self, make_raw_entry) -> None:
        """Test missing, fractional, NaN, boolean and text pain are filtered."""
        raw = [
            make_raw_entry(pain=None),
            make_raw_entry(pain=5.5),
            make_raw_entry(pain=float("nan")),
            make_raw_entry(pain=True),
            make_raw_entry(pain="severe"),
        ]

        assert clean_entries(raw) == []

    def test_integral_float_pain_accepted(self, make_raw_entry) -> None:
        """Test 4.0 is accepted as 4."""
        cleaned = clean_entries([make_raw_entry(pain=4.0)])

        assert cleaned[0].pain_level == 4

    def test_bad_timestamps_dropped(self, make_raw_entry) -> None:
        """Test unparseable timestamps are filtered, never raised."""
        raw = [
            {**make_raw_entry(), "timestamp": "not-a-date"},
            {**make_raw_entry(), "timestamp": None},
            {**make_raw_entry(), "timestamp": {"year": 2025}},
            make_raw_entry(),
        ]

        assert len(clean_entries(raw)) == 1

    def test_non_mappings_dropped(self, make_raw_entry) -> None:
        """Test junk records are ignored."""
        cleaned = clean_entries([42, "entry", None, [1, 2], make_raw_entry()])

        assert len(cleaned) == 1

    def test_sorted_and_stable(self, make_raw_entry) -> None:
        """Test chronological order, keeping input order for equal timestamps."""
        first = make_raw_entry(days_ago=1, pain=1)
        second = {**make_raw_entry(days_ago=1, pain=2), "timestamp": first["timestamp"]}
        latest = make_raw_entry(days_ago=0, pain=3)
        oldest = make_raw_entry(days_ago=5, pain=4)

        cleaned = clean_entries([latest, first, oldest, second])

        assert [e.pain_level for e in cleaned] == [4, 1, 2, 3]

    def test_empty(self) -> None:
        """Test empty input gives empty output."""
        assert clean_entries([]) == []

    def test_entries_pass_through(self, make_entry) -> None:
        """Test already-validated entries are kept as-is."""
        entry = make_entry(pain=6)

        assert clean_entries([entry]) == [entry]


class TestEntryNormalization:
    """Tests for the ingestion-boundary normalization."""

    def test_intensity_alias(self) -> None:
        """Test the historical 'intensity' key maps to pain_level."""
        entry = parse_entry({"timestamp": "2025-03-01T10:00:00Z", "intensity": 7})

        assert entry is not None
        assert entry.pain_level == 7

    def test_legacy_baseline_data(self) -> None:
        """Test the nested baselineData shape is flattened."""
        entry = parse_entry(
            {
                "timestamp": "2025-03-01T10:00:00Z",
                "baselineData": {"pain": 6, "locations": ["knee"], "symptoms": ["aching"]},
            }
        )

        assert entry is not None
        assert entry.pain_level == 6
        assert entry.locations == ["knee"]
        assert entry.symptoms == ["aching"]

    def test_top_level_pain_wins_over_legacy(self) -> None:
        """Test painLevel takes precedence over baselineData.pain."""
        entry = parse_entry(
            {"timestamp": "2025-03-01T10:00:00Z", "painLevel": 2, "baselineData": {"pain": 9}}
        )

        assert entry is not None
        assert entry.pain_level == 2

    def test_medication_shapes(self) -> None:
        """Test strings, name objects and the {current: [...]} container."""
        ts = "2025-03-01T10:00:00Z"
        plain = parse_entry({"timestamp": ts, "painLevel": 3, "medications": ["ibuprofen"]})
        named = parse_entry(
            {"timestamp": ts, "painLevel": 3, "medications": [{"name": "ibuprofen"}]}
        )
        nested = parse_entry(
            {
                "timestamp": ts,
                "painLevel": 3,
                "medications": {"current": [{"name": "ibuprofen", "dosage": "200mg"}]},
            }
        )

        assert plain.medications == named.medications == nested.medications == ["ibuprofen"]

    def test_labels_deduplicated(self) -> None:
        """Test duplicate labels collapse, keeping first-seen order."""
        entry = parse_entry(
            {
                "timestamp": "2025-03-01T10:00:00Z",
                "painLevel": 3,
                "triggers": ["stress", "weather", "stress", " "],
            }
        )

        assert entry.triggers == ["stress", "weather"]

    def test_epoch_timestamp(self) -> None:
        """Test epoch seconds are accepted."""
        entry = parse_entry({"timestamp": 1_700_000_000, "painLevel": 3})

        assert entry is not None
        assert entry.timestamp == datetime.fromtimestamp(1_700_000_000, tz=UTC)

    def test_naive_timestamp_uses_timezone(self) -> None:
        """Test naive timestamps are interpreted in the analysis timezone."""
        plus_five = timezone(timedelta(hours=5))

        utc_entry = parse_entry({"timestamp": "2025-03-01T10:00:00", "painLevel": 3})
        local_entry = parse_entry({"timestamp": "2025-03-01T10:00:00", "painLevel": 3}, plus_five)

        assert utc_entry.timestamp.tzinfo is not None
        assert utc_entry.timestamp.utcoffset() == timedelta(0)
        assert local_entry.timestamp.utcoffset() == timedelta(hours=5)

    def test_qol_non_finite_becomes_missing(self) -> None:
        """Test NaN QoL values count as not recorded."""
        entry = parse_entry(
            {
                "timestamp": "2025-03-01T10:00:00Z",
                "painLevel": 3,
                "qualityOfLife": {"sleepQuality": float("nan"), "moodImpact": 2},
            }
        )

        assert entry.sleep_quality is None
        assert entry.mood_impact == 2
        assert entry.has_qol_data()

    def test_camel_case_serialization(self, make_entry) -> None:
        """Test entries serialize with camelCase keys."""
        wire = make_entry(pain=4, relief_methods=["heat"]).to_wire()

        assert wire["painLevel"] == 4
        assert wire["reliefMethods"] == ["heat"]
        assert "pain_level" not in wire

    def test_entry_is_immutable(self, make_entry) -> None:
        """Test entries cannot be mutated after validation."""
        entry = make_entry()

        with pytest.raises(ValidationError):
            entry.pain_level = 9  # type: ignore[misc]

        assert entry.pain_level == 5
