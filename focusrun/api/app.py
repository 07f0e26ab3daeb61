"""
FastAPI application — local session engine API for the focus widgets.
Runs on http://127.0.0.1:8765 by default.

Singletons (controller, clips, bridge) live on app.state so that each call
to create_app() produces a fully independent instance with no shared
module-level globals. This makes test isolation straightforward.

The engine is single-threaded: its clock is the server's event loop, and
every route that touches it is an `async def` so it runs on that same loop.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ..clock.source import AsyncioClock
from ..config import config
from ..playback.media import RemoteMedia
from ..session.controller import SessionController
from ..session.high_score import JsonHighScoreStore
from ..settings import get_settings
from ..telemetry.host_bridge import HostBridge

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan — initialises and tears down all per-app state
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    s = get_settings()
    clips = {"intro": RemoteMedia("intro"), "loop": RemoteMedia("loop")}
    controller = SessionController(
        AsyncioClock(),
        clips["intro"],
        clips["loop"],
        JsonHighScoreStore(config.high_score_path),
        countdown_tick_ms=config.countdown_tick_ms,
        score_tick_ms=s["score_tick_ms"],
        buffer_poll_ms=s["buffer_poll_ms"],
        loop_lookahead_seconds=s["loop_lookahead_seconds"],
        welcome_back_seconds=s["welcome_back_seconds"],
        max_buffer_polls=s["max_buffer_polls"] or None,
    )
    app.state.clips = clips
    app.state.controller = controller
    app.state.bridge = HostBridge(controller, clips)
    logger.info("session engine ready (high score %d)", controller.snapshot().high_score)

    yield

    # cancel every owned timer before the loop goes away
    controller.reset()


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app() -> FastAPI:
    app = FastAPI(
        title="FocusRun",
        description="Local session & playback timing engine for the focus widgets",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000", "null"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from .routers import session, settings, telemetry

    app.include_router(session.router)
    app.include_router(telemetry.router)
    app.include_router(settings.router)

    @app.get("/health")
    async def health(request: Request):
        controller = getattr(request.app.state, "controller", None)
        phase = controller.phase.value if controller is not None else "unknown"
        return {"status": "ok", "version": "0.1.0", "phase": phase}

    return app


app = create_app()
