"""
/telemetry — ingest visibility and media events from the widget page.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ...api.schemas import TelemetryEventIn
from ...telemetry.sources.browser import parse_browser_event

router = APIRouter(prefix="/telemetry", tags=["telemetry"])

_KNOWN_SOURCES = {"browser"}


def _get_bridge(request: Request):
    """Dependency — resolved by the app lifespan state."""
    return request.app.state.bridge


def _to_payload(event: TelemetryEventIn) -> dict:
    payload = {"type": event.type, "data": event.data}
    if event.timestamp is not None:
        payload["timestamp"] = event.timestamp
    return payload


def _parse_event(source: str, payload: dict):
    """Route payload to the correct source parser. Returns None for unknown types."""
    if source == "browser":
        return parse_browser_event(payload)
    return None


@router.post("/event", status_code=status.HTTP_202_ACCEPTED)
async def ingest_event(event: TelemetryEventIn, bridge=Depends(_get_bridge)):
    """Accept a single event from the page."""
    if event.source not in _KNOWN_SOURCES:
        raise HTTPException(status_code=400, detail=f"Unknown source: {event.source!r}")

    parsed = _parse_event(event.source, _to_payload(event))
    if parsed is None:
        raise HTTPException(status_code=422, detail=f"Unrecognised event type: {event.type!r}")

    bridge.push_event(parsed)
    return {"status": "accepted"}


@router.post("/batch", status_code=status.HTTP_202_ACCEPTED)
async def ingest_batch(events: list[TelemetryEventIn], bridge=Depends(_get_bridge)):
    """Accept a batch of events, applied in order (used when the page buffers locally)."""
    accepted = 0
    for event in events:
        parsed = _parse_event(event.source, _to_payload(event))
        if parsed:
            bridge.push_event(parsed)
            accepted += 1
    return {"accepted": accepted, "total": len(events)}
