"""
Smart Voice Notify — spoken reminders when a coding agent needs you.

The agent host posts its events to /event. Finished work, permission requests
and questions become a sound, a toast and, if nobody reacts, spoken reminders
that grow more insistent until someone does.

Run: voicenotify
  or uvicorn voicenotify.main:app --host 127.0.0.1 --port 8765
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

import voicenotify.core.config as config_module
from voicenotify.core.config import VoiceNotifyConfig
from voicenotify.core.logging import setup_logging
from voicenotify.engine.orchestrator import NotificationOrchestrator
from voicenotify.http.events import create_event_router
from voicenotify.providers import get_tts_chain
from voicenotify.services import (
    AudioPlayer,
    HostClient,
    MessageService,
    SystemNotificationSink,
)

VERSION = "0.1.0"

# --- Setup ---
setup_logging()
logger = logging.getLogger("voicenotify")


def build_sink(cfg: VoiceNotifyConfig, host: HostClient) -> SystemNotificationSink:
    try:
        engines = get_tts_chain(cfg.tts.engine, cfg.tts)
    except ValueError as e:
        logger.warning("%s, falling back to system speech", e)
        engines = get_tts_chain("system", cfg.tts)
    return SystemNotificationSink(AudioPlayer(cfg.notify), engines, host, cfg.notify, cfg.tts)


def create_app(
    orchestrator: NotificationOrchestrator | None = None,
    messages: MessageService | None = None,
    sink: SystemNotificationSink | None = None,
    host: HostClient | None = None,
    cfg: VoiceNotifyConfig | None = None,
) -> FastAPI:
    """Wire the engine to its services and expose it over HTTP.

    Anything not passed in is built from config, so tests can hand in
    fakes for just the parts they care about.
    """
    cfg = cfg or config_module.config
    if orchestrator is None:
        host = host or HostClient(cfg.server.host_url, cfg.server.host_timeout)
        messages = messages or MessageService(cfg.ai)
        sink = sink or build_sink(cfg, host)
        orchestrator = NotificationOrchestrator(sink, messages, cfg, session_lookup=host)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if sink is not None:
            await sink.start()
        logger.info(
            "Smart Voice Notify %s ready (mode=%s, tts=%s, reminders=%s, ai=%s)",
            VERSION,
            cfg.notify.mode.value,
            cfg.tts.engine,
            cfg.reminders.enabled,
            cfg.ai.enabled,
        )
        yield
        await orchestrator.aclose()
        if sink is not None:
            await sink.stop()
        if messages is not None:
            await messages.aclose()
        if host is not None:
            await host.aclose()

    app = FastAPI(title="Smart Voice Notify", version=VERSION, lifespan=lifespan)
    app.include_router(
        create_event_router(orchestrator, messages=messages, sink=sink, version=VERSION)
    )
    app.state.orchestrator = orchestrator
    return app


app = create_app()


def main() -> None:
    server = config_module.config.server
    uvicorn.run(app, host=server.host, port=server.port, log_config=None)


if __name__ == "__main__":
    main()
