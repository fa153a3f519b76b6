#!/usr/bin/env python3
"""
Generate an API key for the ``x-api-key`` header.

Reads USER_KEY and SECRET_KEY from the environment (or .env). The key is
valid for API_KEY_MAX_AGE_SECONDS (5 minutes by default) from the moment it
is generated.

Usage:
    python scripts/generate_api_key.py
    python scripts/generate_api_key.py --timestamp 1735689600000
    python scripts/generate_api_key.py --quiet   # print only the key
"""

import argparse
import sys

from authbase.config import get_settings
from authbase.core.signature import generate_api_key


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate a signed API key")
    parser.add_argument(
        "--timestamp",
        type=int,
        default=None,
        help="Milliseconds since the epoch to sign (defaults to now)",
    )
    parser.add_argument("--quiet", action="store_true", help="Print only the key")
    args = parser.parse_args()

    settings = get_settings()
    if not settings.USER_KEY or not settings.SECRET_KEY:
        print("Error: USER_KEY and SECRET_KEY must be set in the environment or .env", file=sys.stderr)
        print("\nAdd to .env:\n  USER_KEY=your-user-key\n  SECRET_KEY=your-secret-key", file=sys.stderr)
        return 1

    api_key = generate_api_key(settings.USER_KEY, settings.SECRET_KEY, args.timestamp)

    if args.quiet:
        print(api_key)
        return 0

    print("=" * 40)
    print("API Key Generator")
    print("=" * 40)
    print(f"User Key: {settings.USER_KEY}")
    print(f"API Key:  {api_key}")
    print("=" * 40)
    print("Send it as a request header:")
    print(f"  x-api-key: {api_key}")
    print(f"Valid for {settings.API_KEY_MAX_AGE_SECONDS // 60} minutes.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
