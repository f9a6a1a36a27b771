"""Private link creation endpoint."""

import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from busycal.core.config import settings
from busycal.core.deps import SettingsDep, require_encryption_secret
from busycal.core.exceptions import (
    BusyCalError,
    ConfigurationError,
    InvalidInput,
    ProcessingError,
)
from busycal.core.rate_limit import limiter
from busycal.schemas.common import ErrorResponse
from busycal.schemas.link import CreateLinkRequest, CreateLinkResponse
from busycal.services.link_service import create_private_url

logger = logging.getLogger(__name__)

router = APIRouter(tags=["links"])

_CONFIG_MESSAGE = "Service is not configured correctly. Secret key is missing."


def _error_response(exc: BusyCalError) -> JSONResponse:
    message = _CONFIG_MESSAGE if isinstance(exc, ConfigurationError) else exc.public_message
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


def _request_origin(request: Request, public_base_url: str | None) -> str:
    if public_base_url:
        return public_base_url
    return f"{request.url.scheme}://{request.url.netloc}"


@router.post(
    "/create",
    response_model=CreateLinkResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)
@limiter.limit(settings.create_rate_limit)
async def create_link(
    request: Request,
    data: CreateLinkRequest,
    cfg: SettingsDep,
) -> CreateLinkResponse | JSONResponse:
    """Encrypt a source calendar URL into a shareable private link.

    The link is self-contained: nothing is stored, and any instance sharing
    the same ``ENCRYPTION_KEY`` can serve it.
    """
    try:
        secret = require_encryption_secret(cfg)
        private_url = create_private_url(
            data.url or "",
            _request_origin(request, cfg.public_base_url),
            secret,
        )
    except ConfigurationError as exc:
        logger.error("Cannot create link: %s", exc)
        return _error_response(exc)
    except InvalidInput as exc:
        logger.info("Rejected link request: %s", exc)
        return _error_response(exc)
    except BusyCalError as exc:
        logger.warning("Link creation failed: %s", exc)
        return _error_response(exc)
    except Exception as exc:
        logger.exception("Unexpected error creating link")
        return _error_response(ProcessingError(str(exc)))

    return CreateLinkResponse(private_url=private_url)
