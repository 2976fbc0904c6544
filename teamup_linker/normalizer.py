"""Turns raw webhook event fragments into EventDescriptors."""

import copy
import logging
from typing import Any

from pydantic import ValidationError

from .calendar_utils import is_instance_id
from .exceptions import MissingIdentifier, MissingSubCalendar, NormalizationError
from .models import EventDescriptor
from .recurrence import resolve, split_instance_id

logger = logging.getLogger(__name__)

# Copied verbatim when present, never fabricated.
PASSTHROUGH_FIELDS = (
    "start_dt",
    "end_dt",
    "title",
    "location",
    "notes",
    "tz",
    "all_day",
    "who",
    "version",
    "ristart_dt",
)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _subcalendar_ids(fragment: dict[str, Any]) -> tuple[Any, ...]:
    ids = fragment.get("subcalendar_ids")
    if isinstance(ids, (list, tuple)):
        return tuple(i for i in ids if not _is_blank(i))
    return ()


def _primary_subcalendar(fragment: dict[str, Any], ids: tuple[Any, ...]) -> str:
    primary = fragment.get("subcalendar_id")
    if _is_blank(primary):
        if not ids:
            raise MissingSubCalendar(f"Event {fragment.get('id')} has no sub-calendar")
        primary = ids[0]
    return str(primary).strip()


def _custom_fields(fragment: dict[str, Any]) -> dict[str, Any]:
    custom = fragment.get("custom")
    # Teamup serialises an empty custom field set as [].
    if not isinstance(custom, dict):
        return {}
    return copy.deepcopy(custom)


def normalize(fragment: dict[str, Any]) -> EventDescriptor:
    """Build a complete descriptor from an event fragment.

    Raises:
        MissingSubCalendar: no sub-calendar on the event (benign skip)
        MissingIdentifier: no event id
        MalformedIdentifier: the series id is not an integer
        UnresolvableRecurrence: recurring event without any usable start time
    """
    if not isinstance(fragment, dict):
        raise MissingIdentifier("Event fragment is not an object")

    ids = _subcalendar_ids(fragment)
    subcalendar_id = _primary_subcalendar(fragment, ids)

    if _is_blank(fragment.get("id")):
        raise MissingIdentifier("Event fragment has no id")
    raw_id = str(fragment["id"]).strip()

    series_id, _ = split_instance_id(raw_id)
    rrule = fragment.get("rrule") or None
    is_recurring = (
        is_instance_id(raw_id)
        or not _is_blank(fragment.get("series_id"))
        or rrule is not None
    )

    declared_series = fragment.get("series_id")
    if not _is_blank(declared_series) and str(declared_series).strip() != str(series_id):
        logger.warning(
            "Event %s declares series_id %s; using %s from the event id",
            raw_id, declared_series, series_id,
        )

    passthrough = {
        name: fragment[name]
        for name in PASSTHROUGH_FIELDS
        if fragment.get(name) is not None
    }

    try:
        descriptor = EventDescriptor(
            raw_id=raw_id,
            is_recurring_instance=is_recurring,
            series_id=series_id,
            subcalendar_id=subcalendar_id,
            subcalendar_ids=ids,
            rrule=rrule,
            custom_fields=_custom_fields(fragment),
            **passthrough,
        )
    except ValidationError as e:
        raise NormalizationError(f"Event {raw_id} has malformed fields: {e}") from e
    return resolve(descriptor)
