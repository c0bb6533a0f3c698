#!/usr/bin/env python3
"""
Show the sender public key for the configured signing seed.

The seed is read from WEDEPLOY_PRIVATE_KEY (or a .env file), never from
the command line.
"""

import argparse
import json
import sys

from wedeploy.config import AppSettings
from wedeploy.tx.signer import LocalSigner


def public_key_info(settings: AppSettings) -> dict:
    """
    Derive the public key for the configured seed.

    Raises:
        ValueError: If no seed is configured or it is not a 32-byte base58 seed
    """
    if not settings.private_key:
        raise ValueError("WEDEPLOY_PRIVATE_KEY is not set")

    signer = LocalSigner.from_base58_seed(settings.private_key)
    return {"public_key": signer.public_key}


def main():
    parser = argparse.ArgumentParser(description="Show the wedeploy sender public key")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print as JSON"
    )

    args = parser.parse_args()

    try:
        info = public_key_info(AppSettings())
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps(info, indent=2))
    else:
        print(info["public_key"])


if __name__ == "__main__":
    main()
