"""Creating and resolving private calendar links."""

import logging
from urllib.parse import urlencode

from busycal.core.encryption import decrypt_token, encrypt_url
from busycal.core.logging_config import redact_url

logger = logging.getLogger(__name__)

CAL_PARAM = "cal"


def build_private_url(origin: str, token: str) -> str:
    """Embed a token in a shareable link of the form ``<origin>/?cal=<token>``."""
    return f"{origin.rstrip('/')}/?{urlencode({CAL_PARAM: token})}"


def create_private_url(source_url: str, origin: str, secret: str) -> str:
    """Encrypt a source calendar URL and return the shareable private link.

    Raises:
        InvalidInput: If the source URL is empty or not http(s)/webcal.
        ConfigurationError: If the secret is empty.
    """
    token = encrypt_url(source_url, secret)
    logger.info("Created private link for %s", redact_url(source_url))
    return build_private_url(origin, token)


def resolve_token(token: str, secret: str) -> str:
    """Turn a link token back into its source calendar URL.

    Raises:
        MalformedToken: If the token cannot be decoded.
        DecryptionFailed: If the token does not authenticate.
    """
    return decrypt_token(token, secret)
