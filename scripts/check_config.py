"""Check the AADE configuration read from the environment.

Run from the repository root with:
  AADE_USER_ID=... AADE_SUBSCRIPTION_KEY=... AADE_ENTITY_VAT_NUMBER=... \
  AADE_ENVIRONMENT=development PYTHONPATH=src python scripts/check_config.py

Secrets are printed masked (first and last four characters only).
  --live lists declarations once (RequestClients) to verify the credentials.
  --traceback prints full tracebacks on errors.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
import traceback

from pyaadeclient import Client
from pyaadeclient.config import (
    ENV_ENTITY_VAT_NUMBER,
    ENV_ENVIRONMENT,
    ENV_SUBSCRIPTION_KEY,
    ENV_USER_ID,
    AADEConfig,
    parse_environment,
)
from pyaadeclient.exceptions import AADEClientError, ConfigError
from pyaadeclient.util import is_valid_vat_number, mask_secret

_SECRET_VARS = (ENV_USER_ID, ENV_SUBSCRIPTION_KEY)
_REQUIRED_VARS = (ENV_USER_ID, ENV_SUBSCRIPTION_KEY, ENV_ENTITY_VAT_NUMBER, ENV_ENVIRONMENT)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Check the AADE configuration.")
    parser.add_argument(
        "--live",
        action="store_true",
        help="Call RequestClients once to verify the credentials.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (default: WARNING).",
    )
    parser.add_argument(
        "--traceback",
        action="store_true",
        help="Print full tracebacks on errors.",
    )
    return parser.parse_args()


def _report_variables() -> bool:
    ok = True
    print("Required variables:")
    for name in _REQUIRED_VARS:
        value = os.getenv(name, "").strip()
        if not value:
            # The environment falls back to development when unset.
            marker = "-" if name == ENV_ENVIRONMENT else "x"
            print(f"  {marker} {name}: not set")
            ok = ok and name == ENV_ENVIRONMENT
            continue
        shown = mask_secret(value) if name in _SECRET_VARS else value
        print(f"  + {name}: {shown}")
    return ok


def _validate() -> tuple[bool, AADEConfig | None]:
    ok = True
    print("Validation:")
    vat_number = os.getenv(ENV_ENTITY_VAT_NUMBER, "").strip()
    if vat_number:
        if is_valid_vat_number(vat_number):
            print("  + VAT number format is valid (9 digits)")
        else:
            print("  x VAT number format is invalid (must be 9 digits)")
            ok = False
    try:
        environment = parse_environment(os.getenv(ENV_ENVIRONMENT))
    except ConfigError as exc:
        print(f"  x {exc}")
        return False, None
    print(f"  + Environment: {environment.value}")
    config = AADEConfig.from_env()
    print(f"Base URL: {config.base_url}")
    return ok, config


async def _live_check(config: AADEConfig) -> None:
    async with Client(config) as client:
        service = await client.get_service()
        listing = await service.request_clients()
    print(f"Live check: {len(listing.clients)} declaration(s) returned")
    if listing.continuation_token:
        print("Live check: more results available")


def main() -> int:
    args = _parse_args()
    logging.basicConfig(level=args.log_level.upper())

    ok = _report_variables()
    valid, config = _validate()
    ok = ok and valid
    if not ok or config is None:
        print("Configuration has errors.", file=sys.stderr)
        return 1
    print("Configuration looks good.")

    if args.live:
        try:
            asyncio.run(_live_check(config))
        except AADEClientError as exc:
            print(f"Live check failed: {exc.__class__.__name__}: {exc}", file=sys.stderr)
            if args.traceback:
                traceback.print_exc()
            return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
