#!/usr/bin/env python3
"""
Console walk-through of the magic link flow.

Issues a challenge for an email, verifies it, stores the user on disk,
issues a session id, verifies it once and then repeatedly for timing.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from datetime import timedelta

from adapter.filesystem.user_store import FileSystemUserStore
from domain.model.errors import DomainError
from services.magic_link import MagicLinkAuth
from utils.logging import setup_structured_logging

DEMO_SECRET = "Lorem ipsum dolor sit amet, consectetur adipiscing elit."


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--email", help="Email address (prompted if omitted)")
    parser.add_argument("--storage-dir", default=".", help="Directory for user JSON files")
    parser.add_argument("--secret", default=DEMO_SECRET, help="Signing secret (min 16 bytes)")
    parser.add_argument("--iterations", type=int, default=10_000, help="Session verifications to time")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> int:
    store = FileSystemUserStore(args.storage_dir)
    auth = MagicLinkAuth.create(args.secret, timedelta(hours=1), timedelta(hours=24), store)

    email = args.email or input("Input e-mail address: ")

    challenge = auth.generate_challenge(email)
    print("Challenge:", challenge)

    user = auth.verify_challenge(challenge)
    user.custom_data = "data"
    auth.store_user(user)

    session_id = auth.generate_session_id(user)
    print("Session Id:", session_id)

    user2 = auth.verify_session_id(session_id)
    if user.get_id() != user2.get_id():
        raise RuntimeError("user id mismatch after session verification")
    if user2.custom_data != "data":
        raise RuntimeError("custom_data mismatch after storage round trip")

    t0 = time.perf_counter()
    for _ in range(args.iterations):
        auth.verify_session_id(session_id)
    elapsed = time.perf_counter() - t0
    print(f"{args.iterations} session verifications took {elapsed:.3f}s")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_structured_logging(logging.DEBUG if args.verbose else logging.WARNING)
    try:
        return run(args)
    except DomainError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
