"""
Shared pytest fixtures and configuration.
"""

import os
import tempfile

# Keep settings.json / high_score.json written by tests out of the repo's data/ dir.
os.environ.setdefault("FOCUSRUN_DATA_DIR", tempfile.mkdtemp(prefix="focusrun-tests-"))

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from focusrun.api.app import create_app  # noqa: E402
from focusrun.clock.source import ManualClock  # noqa: E402
from focusrun.playback.media import SimulatedMedia  # noqa: E402
from focusrun.session.controller import SessionController  # noqa: E402
from focusrun.session.high_score import InMemoryHighScoreStore  # noqa: E402


# ── Engine on virtual time ───────────────────────────────────────────────────

@pytest.fixture()
def clock():
    return ManualClock()


@pytest.fixture()
def intro():
    """Intro clip with no clock: it only ends when a test calls finish()."""
    return SimulatedMedia("intro", 3.0, buffered_seconds=3.0)


@pytest.fixture()
def loop():
    return SimulatedMedia("loop", 10.0, loop=True)


@pytest.fixture()
def store():
    return InMemoryHighScoreStore()


@pytest.fixture()
def controller(clock, intro, loop, store):
    return SessionController(clock, intro, loop, store)


# ── API ──────────────────────────────────────────────────────────────────────

@pytest.fixture()
def app():
    """Create a fresh app instance per test."""
    return create_app()


@pytest_asyncio.fixture()
async def client(app):
    """Async HTTP client wired directly to the ASGI app (no server needed)."""
    async with app.router.lifespan_context(app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
