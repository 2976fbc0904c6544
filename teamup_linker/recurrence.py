"""Series id and instance anchor resolution for recurring Teamup events.

Teamup addresses one occurrence of a recurring event with a compound id,
``"<series id>-rid-<epoch seconds>"``. Depending on the webhook version the
occurrence start is also (or only) available as ``ristart_dt``, and some
payloads carry nothing but the plain ``start_dt``. The resolver hides those
differences from the payload builder.
"""

import re

from .calendar_utils import INSTANCE_MARKER, epoch_to_provider_datetime
from .exceptions import MalformedIdentifier, UnresolvableRecurrence
from .models import EventDescriptor

DIGITS = re.compile(r"\d+")


def split_instance_id(raw_id: str) -> tuple[int, int | None]:
    """Split an event id into (series id, epoch seconds or None).

    Raises MalformedIdentifier if either part is not a plain integer. A wrong
    series id would update a different event, so nothing is defaulted.
    """
    raw_id = str(raw_id).strip()
    series_part, marker, epoch_part = raw_id.partition(INSTANCE_MARKER)

    if not DIGITS.fullmatch(series_part):
        raise MalformedIdentifier(f"Cannot parse series id from event id {raw_id!r}")

    if not marker:
        return int(series_part), None

    if not DIGITS.fullmatch(epoch_part):
        raise MalformedIdentifier(f"Cannot parse instance timestamp from event id {raw_id!r}")
    return int(series_part), int(epoch_part)


def resolve_instance_anchor(descriptor: EventDescriptor) -> str:
    """Return the start of the occurrence addressed by the descriptor.

    Priority (first available wins):
    1. the epoch suffix of the compound id
    2. the explicit ``ristart_dt`` field
    3. the plain ``start_dt``
    """
    _, epoch = split_instance_id(descriptor.raw_id)
    if epoch is not None:
        return epoch_to_provider_datetime(epoch, like=descriptor.start_dt)
    if descriptor.ristart_dt:
        return descriptor.ristart_dt
    if descriptor.start_dt:
        return descriptor.start_dt
    raise UnresolvableRecurrence(
        f"No instance start available for recurring event {descriptor.raw_id}"
    )


def resolve(descriptor: EventDescriptor) -> EventDescriptor:
    """Return a copy of the descriptor with ``instance_anchor`` filled in.

    Non-recurring descriptors are returned unchanged.
    """
    if not descriptor.is_recurring_instance:
        return descriptor
    anchor = resolve_instance_anchor(descriptor)
    return descriptor.model_copy(update={"instance_anchor": anchor})
