"""Pytest configuration and fixtures for the busycal test suite.

Provides:
- Settings factory with an injected test secret
- Async test clients with the settings dependency overridden
- Disabled rate limiting
- Sample upstream calendars
"""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from busycal.core.config import Settings, get_settings
from busycal.core.rate_limit import limiter
from busycal.main import app

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
TEST_SECRET = "test-secret-do-not-use-in-production"
OTHER_SECRET = "a-completely-different-secret"
SOURCE_URL = "https://example.com/cal.ics"

# ---------------------------------------------------------------------------
# Disable rate limiting globally for tests
# ---------------------------------------------------------------------------
limiter.enabled = False

# ---------------------------------------------------------------------------
# Sample calendars
# ---------------------------------------------------------------------------

SAMPLE_ICS = "\r\n".join(
    [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Example Corp//Upstream//EN",
        "BEGIN:VTIMEZONE",
        "TZID:Europe/Berlin",
        "BEGIN:STANDARD",
        "DTSTART:19701025T030000",
        "TZOFFSETFROM:+0200",
        "TZOFFSETTO:+0100",
        "TZNAME:CET",
        "END:STANDARD",
        "BEGIN:DAYLIGHT",
        "DTSTART:19700329T020000",
        "TZOFFSETFROM:+0100",
        "TZOFFSETTO:+0200",
        "TZNAME:CEST",
        "END:DAYLIGHT",
        "END:VTIMEZONE",
        "BEGIN:VEVENT",
        "UID:weekly-standup@example.com",
        "DTSTAMP:20240201T000000Z",
        "DTSTART:20240304T083000Z",
        "DTEND:20240304T090000Z",
        "RRULE:FREQ=WEEKLY;COUNT=10",
        "SUMMARY:Secret project standup",
        "LOCATION:Room 42",
        "DESCRIPTION:Discuss the acquisition",
        "ATTENDEE;CN=Alice:mailto:alice@example.com",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "UID:weekly-standup@example.com",
        "RECURRENCE-ID:20240311T083000Z",
        "DTSTAMP:20240201T000000Z",
        "DTSTART:20240311T140000Z",
        "DTEND:20240311T143000Z",
        "SUMMARY:Secret project standup (moved)",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "UID:dentist@example.com",
        "DTSTAMP:20240201T000000Z",
        "DTSTART:20240305T120000Z",
        "SUMMARY:Dentist",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "UID:holiday@example.com",
        "DTSTAMP:20240201T000000Z",
        "DTSTART;VALUE=DATE:20240310",
        "DTEND;VALUE=DATE:20240311",
        "SUMMARY:Vacation in Lisbon",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "UID:review@example.com",
        "DTSTAMP:20240201T000000Z",
        "DTSTART:20240306T120000Z",
        "DURATION:PT1H30M",
        "SUMMARY:Performance review",
        "END:VEVENT",
        "END:VCALENDAR",
        "",
    ]
)


def make_settings(**overrides: Any) -> Settings:
    """Build settings independent of the developer's environment and .env file."""
    values: dict[str, Any] = {
        "encryption_key": TEST_SECRET,
        "rate_limit_enabled": False,
        "block_private_addresses": True,
        "public_base_url": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)  # type: ignore[call-arg]


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    """Settings with the test secret configured."""
    return make_settings()


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------


async def _client_for(settings: Settings) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_settings] = lambda: settings
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(test_settings: Settings) -> AsyncGenerator[AsyncClient, None]:
    """Async test client whose settings carry the test secret."""
    async for ac in _client_for(test_settings):
        yield ac


@pytest_asyncio.fixture
async def unconfigured_client() -> AsyncGenerator[AsyncClient, None]:
    """Async test client running without ENCRYPTION_KEY."""
    async for ac in _client_for(make_settings(encryption_key=None)):
        yield ac


@pytest_asyncio.fixture
async def plain_client() -> AsyncGenerator[AsyncClient, None]:
    """Minimal async test client with NO dependency overrides."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
