"""
Event API — where the agent host delivers its events.

Endpoints:
    POST /event       → Normalize a host event and hand it to the engine (202)
    GET  /health      → Engine state, speech engines and metrics
    GET  /health/ai   → Reachability of the AI message endpoint
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from voicenotify.core.metrics import metrics
from voicenotify.events import normalize_event

if TYPE_CHECKING:
    from voicenotify.engine.orchestrator import NotificationOrchestrator
    from voicenotify.services.messages import MessageService
    from voicenotify.services.sink import SystemNotificationSink

logger = logging.getLogger(__name__)


def create_event_router(
    orchestrator: "NotificationOrchestrator",
    messages: "MessageService | None" = None,
    sink: "SystemNotificationSink | None" = None,
    version: str = "",
) -> APIRouter:
    """Create the event intake and health router."""

    router = APIRouter(tags=["events"])

    @router.post("/event")
    async def receive_event(request: Request) -> JSONResponse:
        """Accept one host event. Processing happens in the background."""
        try:
            body = await request.json()
        except ValueError:
            return JSONResponse({"error": "Invalid JSON"}, status_code=400)

        event = normalize_event(body)
        if event is None:
            raw_type = body.get("type") if isinstance(body, dict) else None
            logger.debug("Ignored host event: %s", raw_type)
            return JSONResponse({"accepted": False, "type": raw_type}, status_code=202)

        orchestrator.dispatch(event)
        return JSONResponse(
            {"accepted": True, "type": event.type.value}, status_code=202
        )

    @router.get("/health")
    async def health() -> JSONResponse:
        sink_health = await sink.health_check() if sink is not None else None
        return JSONResponse(
            {
                "status": "ok",
                "version": version,
                "engine": orchestrator.status(),
                "sink": sink_health,
                "metrics": metrics.snapshot(),
            }
        )

    @router.get("/health/ai")
    async def health_ai() -> JSONResponse:
        if messages is None:
            return JSONResponse({"success": False, "message": "No message service"})
        return JSONResponse(await messages.check_ai_connection())

    return router
