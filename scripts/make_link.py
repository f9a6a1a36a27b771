"""Create or inspect private calendar links from the command line.

Uses ENCRYPTION_KEY and PUBLIC_BASE_URL from the environment (or .env file),
so the links it prints are served by any instance sharing that key.

Usage:
    uv run python -m scripts.make_link https://example.com/private/basic.ics

    # Recover the source URL behind a link (support/debugging):
    uv run python -m scripts.make_link --decrypt 'https://cal.example.com/?cal=...'
"""

import argparse
import sys
from urllib.parse import parse_qs, urlparse

from busycal.core.config import settings
from busycal.core.exceptions import BusyCalError
from busycal.services.link_service import CAL_PARAM, create_private_url, resolve_token

DEFAULT_ORIGIN = "http://localhost:8000"


def extract_token(value: str) -> str:
    """Accept either a bare token or a full private link."""
    query = parse_qs(urlparse(value).query)
    tokens = query.get(CAL_PARAM)
    return tokens[0] if tokens else value


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("value", help="source calendar URL, or a link/token with --decrypt")
    parser.add_argument("--decrypt", action="store_true", help="print the source URL of a link")
    args = parser.parse_args(argv)

    secret = settings.encryption_key
    if not secret:
        print("ERROR: ENCRYPTION_KEY is not set in .env", file=sys.stderr)
        return 1

    try:
        if args.decrypt:
            print(resolve_token(extract_token(args.value), secret))
        else:
            origin = settings.public_base_url or DEFAULT_ORIGIN
            print(create_private_url(args.value, origin, secret))
    except BusyCalError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
