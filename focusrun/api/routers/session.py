"""
/session — session commands, snapshot endpoint + WebSocket stream.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect

from ...api.schemas import ConfigureIn, SessionOut, session_out
from ...session.state import SessionSnapshot

router = APIRouter(prefix="/session", tags=["session"])


def _get_controller(request: Request):
    return request.app.state.controller


def _media(app) -> dict:
    return {name: clip.directive() for name, clip in app.state.clips.items()}


def _out(request: Request, snapshot: SessionSnapshot) -> SessionOut:
    return session_out(snapshot, _media(request.app))


@router.get("", response_model=SessionOut)
async def get_session(request: Request, controller=Depends(_get_controller)):
    """Return the current session snapshot."""
    return _out(request, controller.snapshot())


@router.post("/configure", response_model=SessionOut)
async def configure(req: ConfigureIn, request: Request, controller=Depends(_get_controller)):
    """Set the countdown length. Ignored unless the session is idle."""
    return _out(request, controller.configure(req.hours, req.minutes, req.seconds))


@router.post("/start", response_model=SessionOut)
async def start(request: Request, controller=Depends(_get_controller)):
    """Start the configured session; stays idle when the duration is zero."""
    return _out(request, controller.start())


@router.post("/pause", response_model=SessionOut)
async def pause(request: Request, controller=Depends(_get_controller)):
    return _out(request, controller.pause())


@router.post("/resume", response_model=SessionOut)
async def resume(request: Request, controller=Depends(_get_controller)):
    return _out(request, controller.resume())


@router.post("/toggle-pause", response_model=SessionOut)
async def toggle_pause(request: Request, controller=Depends(_get_controller)):
    return _out(request, controller.toggle_pause())


@router.post("/end", response_model=SessionOut)
async def end(request: Request, controller=Depends(_get_controller)):
    """Quit the session early; commits the high score."""
    return _out(request, controller.end())


@router.post("/reset", response_model=SessionOut)
async def reset(request: Request, controller=Depends(_get_controller)):
    """Return home: idle, counters zeroed, clips rewound."""
    return _out(request, controller.reset())


@router.websocket("/ws")
async def session_websocket(websocket: WebSocket):
    """
    WebSocket stream — pushes the session snapshot whenever the engine
    publishes one. Slow consumers only ever see the latest snapshot.
    """
    controller = websocket.app.state.controller
    queue: asyncio.Queue = asyncio.Queue(maxsize=1)

    def _enqueue(snapshot: SessionSnapshot) -> None:
        if queue.full():
            queue.get_nowait()
        queue.put_nowait(snapshot)

    await websocket.accept()
    unsubscribe = controller.subscribe(_enqueue)
    try:
        _enqueue(controller.snapshot())
        while True:
            snapshot = await queue.get()
            payload = session_out(snapshot, _media(websocket.app))
            await websocket.send_json(payload.model_dump())
    except WebSocketDisconnect:
        pass
    finally:
        unsubscribe()
