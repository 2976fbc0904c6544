"""Update executor: writes payload shapes in order until Teamup accepts one.

The fallback policy is a flat table of steps rather than nested handlers.
The first step always runs. After a failure of kind K, execution moves to the
next step (in table order) whose triggers contain K; if there is none, the
chain ends. Auth, not-found, network and server failures appear in no
trigger set, so they end the chain on the spot: a different body cannot fix
them.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .exceptions import TeamupError
from .models import AttemptRecord, PayloadShape, UpdatePayload, UpdateResult

logger = logging.getLogger(__name__)

OVERLAP = "overlap"
VALIDATION = "validation"


@dataclass(frozen=True)
class FallbackStep:
    """One entry of a fallback chain."""

    shape: PayloadShape
    method: str = "PUT"
    triggers: frozenset[str] = frozenset()


RECURRING_CHAIN: tuple[FallbackStep, ...] = (
    FallbackStep(PayloadShape.FULL),
    FallbackStep(PayloadShape.NO_RULE, triggers=frozenset({OVERLAP})),
    FallbackStep(PayloadShape.MINIMAL, triggers=frozenset({OVERLAP, VALIDATION})),
)

PATCH_STEP = FallbackStep(PayloadShape.MINIMAL, "PATCH", frozenset({VALIDATION}))

SINGLE_CHAIN: tuple[FallbackStep, ...] = (FallbackStep(PayloadShape.FULL),)


def chain_for(recurring: bool, patch_fallback: bool = False) -> tuple[FallbackStep, ...]:
    """Return the fallback chain for an event."""
    if not recurring:
        return SINGLE_CHAIN
    if patch_fallback:
        return RECURRING_CHAIN + (PATCH_STEP,)
    return RECURRING_CHAIN


def next_step(
    chain: tuple[FallbackStep, ...], after: int, error_kind: str
) -> int | None:
    """Index of the first step after ``after`` triggered by ``error_kind``."""
    for index in range(after + 1, len(chain)):
        if error_kind in chain[index].triggers:
            return index
    return None


class UpdateExecutor:
    """Drives a fallback chain against a Teamup client.

    ``client`` needs ``update_event`` (PUT) and ``patch_event`` (PATCH)
    coroutines taking ``(event_id, event_data)``.
    """

    def __init__(self, client: Any):
        self.client = client

    async def _write(self, method: str, event_id: str, fields: dict[str, Any]) -> None:
        if method == "PATCH":
            await self.client.patch_event(event_id, fields)
        else:
            await self.client.update_event(event_id, fields)

    async def execute(
        self,
        event_id: str,
        payloads: Mapping[PayloadShape, UpdatePayload],
        chain: tuple[FallbackStep, ...] = SINGLE_CHAIN,
    ) -> UpdateResult:
        """Run ``chain`` using the prebuilt payload for each step's shape.

        Never raises for provider failures; they are reported in the result.
        """
        attempts: list[AttemptRecord] = []
        if not chain:
            return UpdateResult(success=False, event_id=event_id, reason="empty chain")

        index = 0
        while True:
            step = chain[index]
            payload = payloads.get(step.shape)
            if payload is None:
                return UpdateResult(
                    success=False,
                    event_id=event_id,
                    attempts=attempts,
                    reason=f"no {step.shape.value} payload built",
                )

            logger.debug("Event %s: %s %s attempt", event_id, step.method, step.shape.value)
            try:
                await self._write(step.method, event_id, payload.fields)
            except TeamupError as e:
                attempts.append(AttemptRecord(
                    shape=step.shape,
                    method=step.method,
                    status_code=e.status_code,
                    error_kind=e.kind,
                    error=str(e),
                ))
                logger.info(
                    "Event %s: %s %s rejected (%s): %s",
                    event_id, step.method, step.shape.value, e.kind, e,
                )
                following = next_step(chain, index, e.kind)
                if following is None:
                    return UpdateResult(
                        success=False,
                        event_id=event_id,
                        attempts=attempts,
                        reason=f"{e.kind}: {e}",
                    )
                index = following
                continue

            attempts.append(AttemptRecord(shape=step.shape, method=step.method))
            logger.info("Event %s updated with %s shape", event_id, step.shape.value)
            return UpdateResult(
                success=True,
                event_id=event_id,
                shape=step.shape,
                attempts=attempts,
            )
