"""Adapter for the two webhook payload shapes Teamup has delivered.

Shape A (dispatch-wrapped, current webhooks)::

    {"id": ..., "calendar": ..., "dispatch": [{"trigger": "event.created", "event": {...}}]}

Shape B (flat, legacy)::

    {"action": "event.update", "event": {...}}

Both become a list of DispatchItem before anything else looks at them.
"""

from typing import Any

from .models import DispatchItem

CREATED = "created"
MODIFIED = "modified"

HANDLED_TRIGGERS = {
    "event.created": CREATED,
    "event.modified": MODIFIED,
    "event.create": CREATED,
    "event.update": MODIFIED,
}


def canonical_trigger(trigger: str | None) -> str | None:
    """Map a shape A trigger or shape B action to 'created'/'modified'.

    Returns None for triggers this handler ignores (deletions, etc.).
    """
    if not trigger:
        return None
    return HANDLED_TRIGGERS.get(str(trigger).strip().lower())


def _trigger(value: Any) -> str | None:
    return None if value is None else str(value)


def extract_dispatch_items(body: Any) -> list[DispatchItem]:
    """Return the (trigger, event) pairs carried by a webhook body."""
    if not isinstance(body, dict):
        return []

    dispatch = body.get("dispatch")
    if isinstance(dispatch, list):
        items = []
        for entry in dispatch:
            if not isinstance(entry, dict):
                continue
            event = entry.get("event")
            items.append(DispatchItem(
                trigger=_trigger(entry.get("trigger")),
                event=event if isinstance(event, dict) else {},
            ))
        return items

    event = body.get("event")
    if isinstance(event, dict):
        return [DispatchItem(trigger=_trigger(body.get("action")), event=event)]
    return []
