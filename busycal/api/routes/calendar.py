"""Anonymized calendar feed endpoint."""

import logging

from fastapi import APIRouter, Query, status
from fastapi.responses import PlainTextResponse, Response

from busycal.core.deps import SettingsDep, require_encryption_secret
from busycal.core.exceptions import (
    BusyCalError,
    ConfigurationError,
    InvalidInput,
    ProcessingError,
    TokenError,
    UpstreamFetchError,
)
from busycal.services.anonymizer import transform_calendar
from busycal.services.link_service import resolve_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["calendar"])

CALENDAR_MEDIA_TYPE = "text/calendar"
_CONFIG_MESSAGE = "Error: Service is not configured correctly."
_MISSING_PARAM_MESSAGE = "Error: Missing 'cal' parameter."
_FAILURE_MESSAGE = "An error occurred: could not process calendar link."


def _error_response(exc: BusyCalError) -> PlainTextResponse:
    if isinstance(exc, ConfigurationError):
        message = _CONFIG_MESSAGE
    elif isinstance(exc, InvalidInput):
        message = _MISSING_PARAM_MESSAGE
    else:
        message = _FAILURE_MESSAGE
    return PlainTextResponse(message, status_code=exc.status_code)


@router.get(
    "/",
    response_class=Response,
    responses={
        status.HTTP_200_OK: {"content": {CALENDAR_MEDIA_TYPE: {}}},
        status.HTTP_404_NOT_FOUND: {"description": "No ``cal`` parameter"},
    },
)
async def serve_calendar(
    cfg: SettingsDep,
    cal: str | None = Query(default=None, description="Private link token"),
) -> Response:
    """Serve the anonymized version of the calendar a token points to.

    Token decoding and authentication failures are reported exactly like
    upstream failures, so the response never reveals why a link is bad.
    """
    if cal is None:
        return PlainTextResponse("Not Found", status_code=status.HTTP_404_NOT_FOUND)

    try:
        secret = require_encryption_secret(cfg)
        if not cal:
            raise InvalidInput("Empty 'cal' parameter")
        source_url = resolve_token(cal, secret)
        body = await transform_calendar(source_url, settings=cfg)
    except ConfigurationError as exc:
        logger.error("Cannot serve calendar: %s", exc)
        return _error_response(exc)
    except InvalidInput as exc:
        logger.info("Rejected calendar request: %s", exc)
        return _error_response(exc)
    except TokenError as exc:
        logger.warning("Rejected calendar token: %s", exc)
        return _error_response(exc)
    except UpstreamFetchError as exc:
        logger.warning("Upstream calendar unavailable: %s", exc)
        return _error_response(exc)
    except Exception as exc:
        logger.exception("Unexpected error serving calendar")
        return _error_response(ProcessingError(str(exc)))

    return Response(content=body, media_type=CALENDAR_MEDIA_TYPE)
