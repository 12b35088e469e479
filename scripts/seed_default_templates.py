#!/usr/bin/env python3
"""Seed the per-platform default ad copy templates into CopyForge.

Idempotent: an existing default is left untouched.

Usage:
    python scripts/seed_default_templates.py                                 # against real DB
    python scripts/seed_default_templates.py --base-url http://localhost:8400  # against running server
"""

from __future__ import annotations

import argparse
import sys

import httpx

from copy_forge.core.default_templates import SEED_SECTIONS


def seed_via_api(base_url: str) -> None:
    """Fetching a default through the API creates it when missing."""
    with httpx.Client(base_url=base_url, timeout=10.0) as client:
        for platform in SEED_SECTIONS:
            resp = client.get(f"/api/v1/templates/default/{platform}")
            if resp.status_code == 200:
                print(f"  Ready: {platform} ({resp.json()['id']})")
            else:
                print(f"  FAILED {platform}: {resp.status_code} {resp.text}", file=sys.stderr)


def seed_via_db() -> None:
    from copy_forge.core.templates import get_template_service

    service = get_template_service()
    for platform in SEED_SECTIONS:
        template = service.get_default_template(platform)
        print(f"  Ready: {platform} ({template.id})")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed default ad copy templates into CopyForge")
    parser.add_argument(
        "--base-url",
        default=None,
        help="CopyForge API base URL; seeds the database directly when omitted",
    )
    args = parser.parse_args()

    print(f"Seeding {len(SEED_SECTIONS)} default templates ...")
    if args.base_url:
        seed_via_api(args.base_url)
    else:
        seed_via_db()
    print("Done.")


if __name__ == "__main__":
    main()
