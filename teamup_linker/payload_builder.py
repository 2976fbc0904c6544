"""Builds the minimal-mutation bodies sent to PUT /events/{id}.

Teamup replaces the whole event on update, so every body must repeat the
fields that define the event (time bounds, title, sub-calendars) while only
the link field in ``custom`` actually changes.
"""

import copy
from collections.abc import Iterable
from typing import Any

from .models import EventDescriptor, PayloadShape, UpdatePayload

# Dropped by the minimal shape to avoid server-side validation of stale data.
OPTIONAL_FIELDS = ("location", "notes", "who", "tz")

SINGLE_OCCURRENCE = "single"


def wrap_link(link_content: str) -> dict[str, str]:
    """Wrap link content the way Teamup stores rich-text custom fields."""
    return {"html": link_content}


def merge_custom_fields(
    custom_fields: dict[str, Any], link_field: str, link_content: str
) -> dict[str, Any]:
    """Return a copy of the custom fields with only ``link_field`` overwritten."""
    merged = copy.deepcopy(custom_fields)
    merged[link_field] = wrap_link(link_content)
    return merged


def collapse_subcalendars(
    subcalendar_ids: Iterable[Any],
    trigger_subcalendar: Any,
    managed_subcalendars: Iterable[Any],
) -> list[Any]:
    """Keep unmanaged memberships and exactly one managed one (the trigger).

    An event shared by several managed sub-calendars would otherwise be
    re-saved into all of them by one webhook.
    """
    managed = {str(s) for s in managed_subcalendars}
    trigger = str(trigger_subcalendar)

    collapsed: list[Any] = []
    kept_trigger = False
    for sub_id in subcalendar_ids:
        key = str(sub_id)
        if key not in managed:
            collapsed.append(sub_id)
        elif key == trigger and not kept_trigger:
            collapsed.append(sub_id)
            kept_trigger = True

    if not kept_trigger and trigger not in {str(s) for s in collapsed}:
        collapsed.append(_as_id(trigger_subcalendar))
    return collapsed


def _as_id(value: Any) -> Any:
    # Teamup sub-calendar ids are integers on the wire.
    text = str(value).strip()
    return int(text) if text.isdigit() else value


def build_payload(
    descriptor: EventDescriptor,
    link_content: str,
    shape: PayloadShape,
    *,
    link_field: str,
    managed_subcalendars: Iterable[Any] = (),
    trigger_subcalendar: Any = None,
) -> UpdatePayload:
    """Build the update body for one payload shape.

    Args:
        descriptor: The normalized (and, if recurring, resolved) event
        link_content: Link text for the custom field, stored verbatim
        shape: Which field set to produce
        link_field: Name of the custom field receiving the link
        managed_subcalendars: Sub-calendar ids that have a configured link
        trigger_subcalendar: Managed sub-calendar that triggered this update,
            defaults to the descriptor's primary sub-calendar

    Returns:
        UpdatePayload tagged with ``shape``
    """
    trigger = trigger_subcalendar if trigger_subcalendar is not None else descriptor.subcalendar_id

    fields: dict[str, Any] = {"id": descriptor.raw_id}
    if descriptor.start_dt is not None:
        fields["start_dt"] = descriptor.start_dt
    if descriptor.end_dt is not None:
        fields["end_dt"] = descriptor.end_dt
    if descriptor.title is not None:
        fields["title"] = descriptor.title
    fields["subcalendar_id"] = _as_id(descriptor.subcalendar_id)

    if descriptor.is_recurring_instance:
        if descriptor.subcalendar_ids:
            fields["subcalendar_ids"] = list(descriptor.subcalendar_ids)
    else:
        collapsed = collapse_subcalendars(
            descriptor.subcalendar_ids or (_as_id(descriptor.subcalendar_id),),
            trigger,
            managed_subcalendars,
        )
        primary = str(descriptor.subcalendar_id)
        if primary not in {str(s) for s in collapsed}:
            # The primary was a managed id that collapsed away.
            fields["subcalendar_id"] = _as_id(trigger)
        fields["subcalendar_ids"] = collapsed

    if shape != PayloadShape.MINIMAL:
        for name in OPTIONAL_FIELDS:
            value = getattr(descriptor, name)
            if value is not None:
                fields[name] = value
    if descriptor.all_day is not None:
        fields["all_day"] = descriptor.all_day
    if descriptor.version is not None:
        fields["version"] = descriptor.version

    if descriptor.is_recurring_instance:
        if shape == PayloadShape.FULL and descriptor.rrule:
            fields["rrule"] = descriptor.rrule
        fields["series_id"] = descriptor.series_id
        fields["redit"] = SINGLE_OCCURRENCE
        if descriptor.instance_anchor is not None:
            fields["ristart_dt"] = descriptor.instance_anchor

    fields["custom"] = merge_custom_fields(
        descriptor.custom_fields, link_field, link_content
    )
    return UpdatePayload(shape=shape, fields=fields)
