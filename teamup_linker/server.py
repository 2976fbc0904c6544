"""Teamup Link Updater - a FastAPI webhook receiver for Teamup calendars.

Teamup posts a webhook whenever an event is created or modified. If the event
belongs to a sub-calendar with a configured meeting link, the link is written
into the event's custom field through the Teamup API.

The webhook endpoint always answers 200. Teamup redelivers on any other
status, and a failed update is not something a redelivery would fix.
"""

import json
import logging

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from . import __version__
from .config import get_settings
from .logging_config import INGRESS_LOGGER, setup_logging
from .models import DispatchStatus, HealthResponse, WebhookResponse
from .service import get_link_updater

setup_logging(get_settings())

logger = logging.getLogger(INGRESS_LOGGER)


# ============================================================================
# FastAPI App Setup
# ============================================================================

app = FastAPI(
    title="Teamup Link Updater",
    description="Writes meeting links into Teamup events via webhooks",
    version=__version__,
)


# ============================================================================
# Health Endpoints
# ============================================================================


@app.get("/", response_class=PlainTextResponse, tags=["health"])
async def root():
    return "Webhook handler is running"


@app.get("/webhook", response_class=PlainTextResponse, tags=["health"])
async def webhook_ready():
    return "Webhook endpoint is ready to receive events"


@app.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """Health check endpoint. Returns server status and version."""
    return HealthResponse()


# ============================================================================
# Webhook Endpoint
# ============================================================================


@app.post("/webhook", response_model=WebhookResponse, tags=["webhook"])
async def receive_webhook(request: Request):
    """Receive a Teamup webhook delivery.

    Dispatch items are processed sequentially; several of them may target the
    same event. Per-item outcomes are returned for observability only.
    """
    logger.info("Webhook received")

    try:
        body = json.loads(await request.body() or b"null")
    except ValueError:
        logger.warning("Webhook body is not valid JSON")
        return WebhookResponse(success=False, message="Webhook received, but body is not valid JSON")

    try:
        results = await get_link_updater().handle_delivery(body)
    except Exception as e:
        logger.exception("Error processing webhook")
        return WebhookResponse(success=False, message=f"Webhook received with errors: {e}")

    if not results:
        logger.info("No valid event data found in webhook payload")
        return WebhookResponse(message="Webhook received, but no valid event data found")

    failed = [r for r in results if r.status == DispatchStatus.FAILED]
    return WebhookResponse(
        success=not failed,
        message="Webhook received" if not failed else "Webhook received with errors",
        results=results,
    )


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)


if __name__ == "__main__":
    main()
