"""Pydantic models shared by the normalizer, builder, executor and server."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from . import __version__

# ============================================================================
# Core models
# ============================================================================


class EventDescriptor(BaseModel):
    """Canonical, immutable view of an inbound event fragment."""

    model_config = ConfigDict(frozen=True)

    raw_id: str = Field(..., description="Id as delivered, possibly '<series>-rid-<epoch>'")
    is_recurring_instance: bool = False
    series_id: int
    instance_anchor: str | None = Field(None, description="Resolved occurrence start")
    subcalendar_id: str
    subcalendar_ids: tuple[Any, ...] = ()
    start_dt: str | None = None
    end_dt: str | None = None
    title: str | None = None
    location: str | None = None
    notes: str | None = None
    tz: str | None = None
    all_day: bool | None = None
    who: Any = None
    version: Any = None
    rrule: str | None = None
    ristart_dt: str | None = Field(None, description="Explicit instance start from the webhook")
    custom_fields: dict[str, Any] = Field(default_factory=dict)


class PayloadShape(str, Enum):
    """Candidate field sets sent during the fallback sequence."""

    FULL = "full"
    NO_RULE = "no_rule"
    MINIMAL = "minimal"


class UpdatePayload(BaseModel):
    """A mutation body tagged with the shape that produced it."""

    model_config = ConfigDict(frozen=True)

    shape: PayloadShape
    fields: dict[str, Any]


class AttemptRecord(BaseModel):
    """One write attempt made by the executor."""

    shape: PayloadShape
    method: str
    status_code: int | None = None
    error_kind: str | None = None
    error: str | None = None


class UpdateResult(BaseModel):
    """Outcome of a fallback chain."""

    success: bool
    event_id: str
    shape: PayloadShape | None = Field(None, description="Shape that succeeded")
    attempts: list[AttemptRecord] = Field(default_factory=list)
    reason: str | None = None


# ============================================================================
# Webhook models
# ============================================================================


class DispatchItem(BaseModel):
    """A single (trigger, event) pair extracted from a webhook delivery."""

    trigger: str | None = None
    event: dict[str, Any] = Field(default_factory=dict)


class DispatchStatus(str, Enum):
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


class DispatchResult(BaseModel):
    """Per-item outcome reported back to the ingress for logging."""

    event_id: str | None = None
    status: DispatchStatus
    reason: str | None = None
    shape: PayloadShape | None = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "ok"
    version: str = __version__


class WebhookResponse(BaseModel):
    """Acknowledgement returned for every webhook delivery."""
    success: bool = True
    message: str
    results: list[DispatchResult] = Field(default_factory=list)
