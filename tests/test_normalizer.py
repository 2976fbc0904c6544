"""Tests for the event descriptor normalizer."""

import pytest

from conftest import TEAM_A, TEAM_B, UNMANAGED, get_recurring_instance, get_sample_event
from teamup_linker.exceptions import (
    MalformedIdentifier,
    MissingIdentifier,
    MissingSubCalendar,
    NormalizationError,
    UnresolvableRecurrence,
)
from teamup_linker.normalizer import normalize

# ============================================================================
# Required fields
# ============================================================================


class TestRequiredFields:
    """Tests for id and sub-calendar checks."""

    def test_missing_subcalendar_raises(self):
        """An event without any sub-calendar is a skip condition."""
        event = get_sample_event(subcalendar_id=None, subcalendar_ids=[])
        with pytest.raises(MissingSubCalendar):
            normalize(event)

    def test_subcalendar_falls_back_to_first_membership(self):
        """subcalendar_ids is used when subcalendar_id is absent."""
        event = get_sample_event(subcalendar_id=None, subcalendar_ids=[TEAM_B, UNMANAGED])
        descriptor = normalize(event)
        assert descriptor.subcalendar_id == str(TEAM_B)

    def test_missing_id_raises(self):
        """An event without an id cannot be updated."""
        event = get_sample_event()
        del event["id"]
        with pytest.raises(MissingIdentifier):
            normalize(event)

    def test_blank_id_raises(self):
        """A blank id counts as missing."""
        with pytest.raises(MissingIdentifier):
            normalize(get_sample_event(event_id="  "))

    def test_non_mapping_fragment_raises(self):
        """A fragment that is not an object fails closed."""
        with pytest.raises(NormalizationError):
            normalize(["not", "an", "event"])

    def test_malformed_series_id_raises(self):
        """A non-numeric id is surfaced, never defaulted."""
        with pytest.raises(MalformedIdentifier):
            normalize(get_sample_event(event_id="abc-rid-1700000000"))

    def test_wrong_field_type_fails_closed(self):
        """Unexpected field types raise instead of producing a partial descriptor."""
        with pytest.raises(NormalizationError):
            normalize(get_sample_event(title={"not": "a string"}))


# ============================================================================
# Recurrence detection
# ============================================================================


class TestRecurrenceDetection:
    """Tests for is_recurring_instance and series_id."""

    def test_plain_event_is_not_recurring(self, sample_event):
        """Empty rrule and null series_id mean a single event."""
        descriptor = normalize(sample_event)
        assert descriptor.is_recurring_instance is False
        assert descriptor.series_id == 500
        assert descriptor.instance_anchor is None

    def test_compound_id_is_recurring(self):
        """The -rid- marker flags an instance and yields the series prefix."""
        descriptor = normalize(get_sample_event(event_id="812-rid-1700000000"))
        assert descriptor.is_recurring_instance is True
        assert descriptor.series_id == 812

    def test_rrule_alone_flags_recurring(self):
        """A flat payload exposing only rrule is still recurring."""
        descriptor = normalize(get_sample_event(rrule="FREQ=DAILY"))
        assert descriptor.is_recurring_instance is True
        assert descriptor.rrule == "FREQ=DAILY"

    def test_series_id_field_alone_flags_recurring(self):
        """A series_id field marks the event as recurring."""
        descriptor = normalize(get_sample_event(series_id=500))
        assert descriptor.is_recurring_instance is True

    def test_series_id_always_from_event_id(self):
        """A disagreeing series_id field does not override the id prefix."""
        event = get_recurring_instance(series_id=500)
        event["series_id"] = 999
        descriptor = normalize(event)
        assert descriptor.series_id == 500

    def test_recurring_without_any_start_raises(self):
        """A recurring event with no anchor source is unresolvable."""
        event = get_sample_event(rrule="FREQ=DAILY")
        del event["start_dt"]
        with pytest.raises(UnresolvableRecurrence):
            normalize(event)


# ============================================================================
# Passthrough and custom fields
# ============================================================================


class TestPassthroughFields:
    """Tests for verbatim field copies."""

    def test_passthrough_fields_copied(self, sample_event):
        """Optional fields are copied verbatim."""
        descriptor = normalize(sample_event)
        assert descriptor.title == "Weekly Sync"
        assert descriptor.location == "Room 4"
        assert descriptor.notes == "<p>Agenda</p>"
        assert descriptor.tz == "America/New_York"
        assert descriptor.who == "Alice, Bob"
        assert descriptor.version == "5f2c1a"
        assert descriptor.start_dt == "2023-11-14T17:00:00-05:00"

    def test_absent_fields_not_fabricated(self):
        """Fields missing from the fragment stay None."""
        event = {"id": "42", "subcalendar_id": TEAM_A}
        descriptor = normalize(event)
        assert descriptor.location is None
        assert descriptor.notes is None
        assert descriptor.start_dt is None
        assert descriptor.custom_fields == {}

    def test_custom_fields_deep_copied(self):
        """Mutating the descriptor's custom fields leaves the source intact."""
        custom = {"agenda": {"html": "<b>x</b>"}, "owner": "Alice"}
        event = get_sample_event(custom=custom)
        descriptor = normalize(event)
        descriptor.custom_fields["agenda"]["html"] = "changed"
        assert custom["agenda"]["html"] == "<b>x</b>"

    def test_empty_custom_list_becomes_mapping(self):
        """Teamup's [] for an empty custom set becomes an empty mapping."""
        descriptor = normalize(get_sample_event(custom=[]))
        assert descriptor.custom_fields == {}

    def test_subcalendar_ids_preserved_in_order(self):
        """All memberships are kept for the builder."""
        event = get_sample_event(subcalendar_ids=[UNMANAGED, TEAM_A, TEAM_B])
        descriptor = normalize(event)
        assert descriptor.subcalendar_ids == (UNMANAGED, TEAM_A, TEAM_B)
