"""
Secret management for provider and LLM API keys.

Usage:
    from pagecritic.config.secrets import get_openai_key, get_pagespeed_key

    # Raises if the key is missing
    key = get_openai_key()

    # Returns None if the key is missing
    psi_key = get_pagespeed_key()

CLI check:
    python -m pagecritic.config.secrets --check
"""

import os
import sys
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import load_dotenv

# Load .env on module import: repo root first, then the working directory
_repo_root = Path(__file__).resolve().parent.parent.parent
_env_path = _repo_root / ".env"

if _env_path.exists():
    load_dotenv(_env_path)
else:
    load_dotenv()


# Keys reported by check_keys(); only OPENAI_API_KEY is ever mandatory
KNOWN_KEYS = (
    "PAGESPEED_API_KEY",
    "WEBPAGETEST_API_KEY",
    "OPENAI_API_KEY",
)


class MissingAPIKeyError(Exception):
    """Raised when a required API key is not configured."""
    pass


def _read_key(name: str, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    env = os.environ if environ is None else environ
    key = (env.get(name) or "").strip()
    return key or None


def get_pagespeed_key(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """PageSpeed Insights key, or None when not configured."""
    return _read_key("PAGESPEED_API_KEY", environ)


def get_webpagetest_key(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """WebPageTest key, or None (the public instance accepts anonymous tests)."""
    return _read_key("WEBPAGETEST_API_KEY", environ)


def get_openai_key() -> str:
    """
    Get OpenAI API key from environment.

    Returns:
        str: The API key

    Raises:
        MissingAPIKeyError: If OPENAI_API_KEY is not set
    """
    key = _read_key("OPENAI_API_KEY")
    if not key:
        raise MissingAPIKeyError(
            "OPENAI_API_KEY not found. "
            "Copy .env.example to .env and add your key."
        )
    return key


def check_keys() -> Dict[str, str]:
    """
    Check which API keys are configured.

    Returns:
        dict: Status of each key ("OK" or "MISSING")
    """
    return {name: "OK" if _read_key(name) else "MISSING" for name in KNOWN_KEYS}


def _cli_check():
    """CLI entry point for --check flag."""
    status = check_keys()
    all_ok = True

    for key_name, key_status in status.items():
        print(f"{key_name}: {key_status}")
        if key_status == "MISSING":
            all_ok = False

    if not all_ok:
        print("\nTo configure keys:")
        print("  1. Copy .env.example to .env")
        print("  2. Add your API keys to .env")
        sys.exit(1)
    else:
        print("\nAll keys configured.")
        sys.exit(0)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(
        description="Check API key configuration"
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Check if API keys are configured"
    )

    args = parser.parse_args()

    if args.check:
        _cli_check()
    else:
        parser.print_help()
