from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from config import LOG_LEVEL, STORE_FILE
from vibematch.errors import ServiceError
from vibematch.services import AnalyticsService, Storage, SuggestionService


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Inspect a VibeMatch store: AI match suggestions and platform analytics."
    )
    parser.add_argument(
        "--store",
        type=Path,
        default=Path(STORE_FILE) if STORE_FILE else None,
        help="Path to the JSON store (default: VIBEMATCH_STORE_FILE or ./data/vibematch.json)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    suggest = sub.add_parser("suggest", help="Print match suggestions for a profile")
    suggest.add_argument("profile_id", help="Profile to generate suggestions for")
    suggest.add_argument("--role", help="Only suggest profiles with this role (builder, investor, technical)")
    suggest.add_argument("--limit", type=int, default=10, help="Maximum suggestions, 1-20 (default: 10)")

    sub.add_parser("overview", help="Print the analytics overview")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=LOG_LEVEL)

    if args.store is None or not args.store.exists():
        raise SystemExit(f"Store file not found: {args.store}")
    storage = Storage(args.store)

    if args.command == "suggest":
        profile = storage.get_profile(args.profile_id)
        if profile is None:
            raise SystemExit(f"Profile not found: {args.profile_id}")
        try:
            suggestions = SuggestionService(storage).suggest(profile, role=args.role, limit=args.limit)
        except ServiceError as e:
            raise SystemExit(e.message) from e
        output = [s.to_dict() for s in suggestions]
    else:
        output = AnalyticsService(storage).overview()

    print(json.dumps(output, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
