"""Per-event orchestration: skip checks, normalization, payloads, execution."""

import asyncio
import logging
from typing import Any

from .config import Settings, get_settings
from .exceptions import ConfigError, MissingSubCalendar, NormalizationError
from .executor import UpdateExecutor, chain_for
from .logging_config import INGRESS_LOGGER
from .models import (
    DispatchItem,
    DispatchResult,
    DispatchStatus,
    EventDescriptor,
    PayloadShape,
    UpdatePayload,
)
from .normalizer import normalize
from .payload_builder import build_payload, wrap_link
from .teamup_client import TeamupClient, get_teamup_client
from .webhook import canonical_trigger, extract_dispatch_items

logger = logging.getLogger(__name__)
ingress_logger = logging.getLogger(INGRESS_LOGGER)


def _skipped(event_id: Any, reason: str) -> DispatchResult:
    return DispatchResult(
        event_id=None if event_id is None else str(event_id),
        status=DispatchStatus.SKIPPED,
        reason=reason,
    )


def _failed(event_id: Any, reason: str) -> DispatchResult:
    return DispatchResult(
        event_id=None if event_id is None else str(event_id),
        status=DispatchStatus.FAILED,
        reason=reason,
    )


class LinkUpdater:
    """Writes the configured meeting link into events delivered by webhooks."""

    def __init__(self, settings: Settings, client: Any = None):
        self.settings = settings
        self.client = client if client is not None else TeamupClient(settings)
        self.executor = UpdateExecutor(self.client)

    def trigger_subcalendar(self, descriptor: EventDescriptor) -> Any | None:
        """Return the managed sub-calendar this update is for, or None.

        The primary sub-calendar wins; otherwise the first managed membership.
        """
        if self.settings.is_managed(descriptor.subcalendar_id):
            return descriptor.subcalendar_id
        for sub_id in descriptor.subcalendar_ids:
            if self.settings.is_managed(sub_id):
                return sub_id
        return None

    def build_payloads(
        self, descriptor: EventDescriptor, link: str, trigger_subcalendar: Any
    ) -> dict[PayloadShape, UpdatePayload]:
        chain = chain_for(descriptor.is_recurring_instance, self.settings.patch_fallback)
        return {
            step.shape: build_payload(
                descriptor,
                link,
                step.shape,
                link_field=self.settings.link_field,
                managed_subcalendars=self.settings.subcalendar_links.keys(),
                trigger_subcalendar=trigger_subcalendar,
            )
            for step in chain
        }

    def link_already_set(self, descriptor: EventDescriptor, link: str) -> bool:
        current = descriptor.custom_fields.get(self.settings.link_field)
        return current == wrap_link(link) or current == link

    async def handle_item(self, item: DispatchItem) -> DispatchResult:
        """Process one dispatch item. Never raises for expected failures."""
        event_id = item.event.get("id")
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Event details (%s):", item.trigger)
            for key, value in item.event.items():
                logger.debug("  %s: %r", key, value)

        if canonical_trigger(item.trigger) is None:
            return _skipped(event_id, f"trigger {item.trigger!r} is not handled")

        try:
            descriptor = normalize(item.event)
        except MissingSubCalendar:
            return _skipped(event_id, "event has no sub-calendar")
        except NormalizationError as e:
            logger.error("Cannot resolve event %s: %s", event_id, e)
            return _failed(event_id, str(e))

        trigger_sub = self.trigger_subcalendar(descriptor)
        if trigger_sub is None:
            logger.debug(
                "No link configured for sub-calendar %s (configured: %s)",
                descriptor.subcalendar_id,
                ", ".join(self.settings.subcalendar_links) or "none",
            )
            return _skipped(
                descriptor.raw_id,
                f"no link configured for sub-calendar {descriptor.subcalendar_id}",
            )
        link = self.settings.link_for(trigger_sub)

        # Our own write comes back as event.modified.
        if self.link_already_set(descriptor, link):
            return _skipped(descriptor.raw_id, "link already present")

        try:
            self.settings.require_credentials()
        except ConfigError as e:
            logger.error("Not updating event %s: %s", descriptor.raw_id, e)
            return _failed(descriptor.raw_id, str(e))

        payloads = self.build_payloads(descriptor, link, trigger_sub)
        chain = chain_for(descriptor.is_recurring_instance, self.settings.patch_fallback)
        result = await self.executor.execute(descriptor.raw_id, payloads, chain)

        if result.success:
            return DispatchResult(
                event_id=descriptor.raw_id,
                status=DispatchStatus.UPDATED,
                shape=result.shape,
            )
        return _failed(descriptor.raw_id, result.reason or "update failed")

    def _log_outcome(self, result: DispatchResult) -> None:
        ingress_logger.info(
            "Event %s: %s%s",
            result.event_id,
            result.status.value,
            f" ({result.reason})" if result.reason else "",
        )

    async def _handle_contained(self, item: DispatchItem) -> DispatchResult:
        try:
            return await self.handle_item(item)
        except Exception as e:
            # Continue on individual failures
            logger.exception("Unexpected error processing event %s", item.event.get("id"))
            return _failed(item.event.get("id"), f"unexpected error: {e}")

    async def handle_delivery(self, body: Any) -> list[DispatchResult]:
        """Process every dispatch item of a webhook body, one after another.

        The whole delivery is bounded by ``settings.delivery_timeout``. Items
        still pending when it expires, including the one in flight, are
        reported as failed.
        """
        items = extract_dispatch_items(body)
        results: list[DispatchResult] = []
        try:
            async with asyncio.timeout(self.settings.delivery_timeout):
                for item in items:
                    result = await self._handle_contained(item)
                    self._log_outcome(result)
                    results.append(result)
        except TimeoutError:
            logger.error(
                "Delivery exceeded %ss, %d of %d events not processed",
                self.settings.delivery_timeout,
                len(items) - len(results),
                len(items),
            )
            for item in items[len(results):]:
                result = _failed(item.event.get("id"), "delivery timed out")
                self._log_outcome(result)
                results.append(result)
        return results


# Singleton pattern for easy access
_updater: LinkUpdater | None = None


def get_link_updater() -> LinkUpdater:
    """Get or create the singleton LinkUpdater instance."""
    global _updater
    if _updater is None:
        _updater = LinkUpdater(get_settings(), get_teamup_client())
    return _updater
