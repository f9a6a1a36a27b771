"""Reduce an upstream calendar to anonymous busy blocks."""

import logging
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta

from icalendar.cal import Component
from icalendar.parser import Contentline, Contentlines
from icalendar.prop import vText

from busycal.core.config import Settings, settings as default_settings
from busycal.services.calendar_fetcher import fetch_calendar

logger = logging.getLogger(__name__)

BUSY_SUMMARY = "Busy"


@dataclass(frozen=True)
class AnonymizedEvent:
    """The only fields of an upstream event that survive anonymization."""

    uid: str
    start: datetime | None
    end: datetime | None
    rrule: str | None
    stamp: datetime
    summary: str = BUSY_SUMMARY


def to_utc(value: date | datetime) -> datetime:
    """Convert an iCal date or date-time to an aware UTC datetime.

    All-day dates become midnight UTC and floating times are read as UTC.
    """
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def format_dt(value: date | datetime | str) -> str:
    """Format an instant as a compact UTC iCal timestamp (``YYYYMMDDTHHMMSSZ``)."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return to_utc(value).strftime("%Y%m%dT%H%M%SZ")


def _instant(component: Component, name: str) -> datetime | None:
    prop = component.get(name)
    if prop is None or not hasattr(prop, "dt"):
        return None
    return to_utc(prop.dt)


def _end(component: Component, start: datetime | None) -> datetime | None:
    end = _instant(component, "DTEND")
    if end is not None or start is None:
        return end

    prop = component.get("DURATION")
    duration = getattr(prop, "dt", getattr(prop, "td", None))
    if isinstance(duration, timedelta):
        return start + duration
    return None


def _rrule(component: Component) -> str | None:
    rule = component.get("RRULE")
    if rule is None:
        return None
    if isinstance(rule, list):
        # Multiple RRULEs are deprecated; only the first is carried over
        rule = rule[0]
    return rule.to_ical().decode("utf-8")


def anonymize_event(component: Component, stamp: datetime) -> AnonymizedEvent:
    """Build the anonymized copy of one VEVENT."""
    uid = component.get("UID")
    start = _instant(component, "DTSTART")
    return AnonymizedEvent(
        uid=str(uid) if uid is not None else str(uuid.uuid4()),
        start=start,
        end=_end(component, start),
        rrule=_rrule(component),
        stamp=stamp,
    )


def anonymize_events(
    objects: Mapping[str, Component],
    now: datetime | None = None,
) -> list[AnonymizedEvent]:
    """Anonymize every VEVENT in a parsed calendar, dropping other objects.

    Events keep the order the parser yielded them in. ``now`` becomes the
    DTSTAMP of every event.
    """
    stamp = to_utc(now or datetime.now(UTC))
    return [
        anonymize_event(component, stamp)
        for component in objects.values()
        if component.name == "VEVENT"
    ]


def _event_lines(event: AnonymizedEvent) -> list[str]:
    lines = ["BEGIN:VEVENT", "UID:" + vText(event.uid).to_ical().decode("utf-8")]
    if event.start is not None:
        lines.append("DTSTART:" + format_dt(event.start))
    if event.end is not None:
        lines.append("DTEND:" + format_dt(event.end))
    if event.rrule:
        lines.append("RRULE:" + event.rrule)
    lines.append("SUMMARY:" + event.summary)
    lines.append("DTSTAMP:" + format_dt(event.stamp))
    lines.append("END:VEVENT")
    return lines


def serialize_calendar(events: Iterable[AnonymizedEvent], prodid: str) -> str:
    """Render anonymized events as a complete iCal document.

    Lines are CRLF-terminated and folded at 75 octets.
    """
    lines = ["BEGIN:VCALENDAR", "VERSION:2.0", f"PRODID:{prodid}"]
    for event in events:
        lines.extend(_event_lines(event))
    lines.append("END:VCALENDAR")
    return Contentlines(Contentline(line) for line in lines).to_ical().decode("utf-8")


async def transform_calendar(
    source_url: str,
    *,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> str:
    """Fetch a source calendar and return its anonymized iCal text.

    Raises:
        UpstreamFetchError: If the source calendar cannot be fetched or parsed.
    """
    cfg = settings or default_settings
    objects = await fetch_calendar(source_url, settings=cfg)
    events = anonymize_events(objects, now=now)
    logger.info("Anonymized %d of %d calendar objects", len(events), len(objects))
    return serialize_calendar(events, cfg.calendar_prodid)
