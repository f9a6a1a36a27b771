"""Fetch and parse upstream iCal feeds."""

import asyncio
import ipaddress
import logging
import socket
from urllib.parse import urlparse

import httpx
from icalendar import Calendar
from icalendar.cal import Component

from busycal.core.config import Settings, settings as default_settings
from busycal.core.exceptions import UpstreamFetchError
from busycal.core.logging_config import redact_url

logger = logging.getLogger(__name__)

WEBCAL_PREFIX = "webcal://"


def normalize_url(url: str) -> str:
    """Rewrite a ``webcal://`` subscription link to its ``https://`` form."""
    if url.startswith(WEBCAL_PREFIX):
        return "https://" + url[len(WEBCAL_PREFIX) :]
    return url


def _validate_url(url: str) -> None:
    """Validate that a URL is safe to fetch (no SSRF).

    Raises:
        ValueError: If the URL scheme is not http/https or resolves to a private IP.
    """
    parsed = urlparse(url)

    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"Unsupported URL scheme: {parsed.scheme}")

    hostname = parsed.hostname
    if not hostname:
        raise ValueError("URL has no hostname.")

    try:
        addr_infos = socket.getaddrinfo(hostname, None)
    except socket.gaierror as exc:
        raise ValueError(f"Could not resolve hostname: {hostname}") from exc

    for _family, _type, _proto, _canonname, sockaddr in addr_infos:
        ip = ipaddress.ip_address(sockaddr[0])
        if ip.is_private or ip.is_loopback or ip.is_link_local or ip.is_reserved:
            raise ValueError(f"URL resolves to a private/reserved address: {ip}")


async def _guard_request(request: httpx.Request) -> None:
    # Runs for the initial request and for every redirect hop.
    await asyncio.to_thread(_validate_url, str(request.url))


def parse_calendar(text: str) -> dict[str, Component]:
    """Parse iCal text into its top-level components keyed by identifier.

    Components with a UID are keyed by it. A recurrence override (a VEVENT
    carrying RECURRENCE-ID) never displaces the master event of the same UID.
    Components without a UID get a positional key.

    Raises:
        ValueError: If the text is not a VCALENDAR document.
    """
    calendar = Calendar.from_ical(text)
    if calendar.name != "VCALENDAR":
        raise ValueError(f"Expected VCALENDAR, got {calendar.name}")

    objects: dict[str, Component] = {}
    for index, component in enumerate(calendar.subcomponents):
        uid = component.get("UID")
        if uid is None:
            objects[f"{component.name.lower()}-{index}"] = component
            continue

        key = str(uid)
        if key in objects and "RECURRENCE-ID" in component:
            continue
        objects[key] = component

    return objects


async def fetch_calendar(
    url: str,
    *,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Component]:
    """Download a calendar feed and parse it.

    Args:
        url: Source calendar URL; ``webcal://`` is accepted.
        settings: Overrides the process settings (timeouts, SSRF guard).
        transport: Optional httpx transport, used by tests.

    Returns:
        Top-level calendar components keyed by identifier.

    Raises:
        UpstreamFetchError: On any network, HTTP status, validation or parse failure.
    """
    cfg = settings or default_settings
    target = normalize_url(url)
    event_hooks = {"request": [_guard_request]} if cfg.block_private_addresses else {}

    try:
        async with httpx.AsyncClient(
            follow_redirects=True,
            timeout=cfg.upstream_timeout_seconds,
            headers={"User-Agent": cfg.upstream_user_agent, "Accept": "text/calendar, */*"},
            event_hooks=event_hooks,
            transport=transport,
        ) as client:
            response = await client.get(target)
            response.raise_for_status()
            text = response.text
    except httpx.HTTPStatusError as exc:
        raise UpstreamFetchError(
            f"Fetching {redact_url(target)} returned HTTP {exc.response.status_code}"
        ) from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        # httpx messages can echo the full URL, so only the type is kept
        raise UpstreamFetchError(
            f"Fetching {redact_url(target)} failed: {type(exc).__name__}"
        ) from exc
    except ValueError as exc:
        raise UpstreamFetchError(f"Refused to fetch {redact_url(target)}: {exc}") from exc

    try:
        objects = parse_calendar(text)
    except Exception as exc:  # noqa: BLE001
        raise UpstreamFetchError(
            f"Parsing calendar from {redact_url(target)} failed: {type(exc).__name__}: {exc}"
        ) from exc

    logger.info("Fetched %d calendar objects from %s", len(objects), redact_url(target))
    return objects
