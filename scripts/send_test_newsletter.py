#!/usr/bin/env python3
"""
Dev helper: publish a test newsletter through the local backend.

POSTs a multipart create request (subject, description, optional image) to
/api/newsletters/ and prints the created record and the broadcast summary.

Usage
-----
# Basic: text-only newsletter against localhost:8000
python scripts/send_test_newsletter.py

# Attach an image
python scripts/send_test_newsletter.py --image path/to/banner.png

# Custom subject and description
python scripts/send_test_newsletter.py --subject "Launch day" --description "We shipped."

# Target a different backend URL
python scripts/send_test_newsletter.py --url http://staging.example.com

# Show the request without sending it
python scripts/send_test_newsletter.py --dry-run

Environment / .env
------------------
ADMIN_TOKEN     Bearer token to send. Overridden by --token.
JWT_SECRET      When no token is given, a short-lived admin token is minted
                with this secret (HS256).
"""

import argparse
import json
import mimetypes
import os
import sys
import time
from pathlib import Path

import httpx
from dotenv import load_dotenv
from jose import jwt


def _resolve_token(explicit: str | None) -> str:
    """
    Return the bearer token to use.

    Priority: --token, ADMIN_TOKEN, then a token minted from JWT_SECRET.
    Returns "" when none is available.
    """
    if explicit:
        return explicit
    if os.getenv("ADMIN_TOKEN"):
        return os.environ["ADMIN_TOKEN"]

    secret = os.getenv("JWT_SECRET") or os.getenv("SUPABASE_JWT_SECRET")
    if not secret:
        return ""
    payload = {"admin": {"id": "dev-admin"}, "exp": int(time.time()) + 600}
    return jwt.encode(payload, secret, algorithm="HS256")


def _print_response(response: httpx.Response) -> None:
    status = response.status_code
    symbol = "OK" if status in (200, 201) else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)


def main() -> int:
    # scripts/ lives one level below the project root
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    load_dotenv(project_root / "backend" / ".env")

    parser = argparse.ArgumentParser(
        description="Publish a test newsletter through the local backend.",
    )
    parser.add_argument(
        "--url",
        default="http://localhost:8000",
        help="Backend base URL (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--subject",
        default="Test Newsletter",
        help='Newsletter subject (default: "Test Newsletter")',
    )
    parser.add_argument(
        "--description",
        default="This is a test newsletter sent from the dev helper script.",
        help="Newsletter body text",
    )
    parser.add_argument(
        "--image",
        default=None,
        metavar="PATH",
        help="Path to an image to attach (optional).",
    )
    parser.add_argument(
        "--token",
        default=None,
        help="Bearer token. Defaults to ADMIN_TOKEN or a token minted from JWT_SECRET.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the request without sending it.",
    )

    args = parser.parse_args()

    token = _resolve_token(args.token)
    if not token and not args.dry_run:
        print(
            "ERROR: No admin token available.\n"
            "Set ADMIN_TOKEN or JWT_SECRET in your environment or .env file, "
            "or pass --token.",
            file=sys.stderr,
        )
        return 1

    files = None
    if args.image:
        image_path = Path(args.image)
        if not image_path.exists():
            print(f"ERROR: File not found: {image_path}", file=sys.stderr)
            return 1
        content_type = mimetypes.guess_type(image_path.name)[0] or "application/octet-stream"
        files = {"file": (image_path.name, image_path.read_bytes(), content_type)}

    endpoint = f"{args.url.rstrip('/')}/api/newsletters/"
    data = {"subject": args.subject, "description": args.description}

    print(f"Endpoint   : {endpoint}")
    print(f"Subject    : {args.subject}")
    print(f"Image      : {args.image or '(none)'}")

    if args.dry_run:
        print("\n[DRY RUN] Form fields:")
        print(json.dumps(data, indent=2))
        return 0

    try:
        response = httpx.post(
            endpoint,
            data=data,
            files=files,
            headers={"Authorization": f"Bearer {token}"},
            timeout=120.0,
        )
    except httpx.HTTPError as e:
        print(f"\n[FAIL] Request error: {e}", file=sys.stderr)
        return 1

    _print_response(response)
    return 0 if response.status_code == 201 else 1


if __name__ == "__main__":
    sys.exit(main())
