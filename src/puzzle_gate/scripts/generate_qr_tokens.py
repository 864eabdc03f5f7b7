"""Create a batch of QR access tokens and print the URLs to encode.

Usage:
    python -m puzzle_gate.scripts.generate_qr_tokens --games 1 2 3 --notes "print run 4"
"""

from __future__ import annotations

import argparse
import json
import sys

from puzzle_gate.core.logging import configure_logging
from puzzle_gate.core.settings import settings
from puzzle_gate.db.session import SessionLocal
from puzzle_gate.services.qr_access import default_game_numbers, generate_tokens


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate QR access tokens for minigames")
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--games",
        type=int,
        nargs="+",
        help="Game numbers to create tokens for (one token each)",
    )
    group.add_argument(
        "--count",
        type=int,
        default=None,
        help="Create tokens for games 1..COUNT (default: %(default)s means the configured count)",
    )
    parser.add_argument("--max-uses", type=int, default=None, help="Grants per token")
    parser.add_argument("--notes", default=None, help="Free-form note stored on every token")
    parser.add_argument("--json", action="store_true", help="Print the batch as JSON")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    games = args.games or default_game_numbers(args.count)
    db = SessionLocal()
    try:
        tokens = generate_tokens(
            db,
            games,
            notes=args.notes,
            max_uses=args.max_uses,
            metadata={"created_by": "cli"},
        )
        rows = [
            {
                "id": token.id,
                "game_number": token.game_number,
                "token": token.token,
                "url": settings.qr_access_url(token.game_number, token.token),
            }
            for token in tokens
        ]
    except ValueError as exc:
        print(f"[generate_qr_tokens] ERROR: {exc}", file=sys.stderr)
        return 1
    finally:
        db.close()

    if args.json:
        print(json.dumps(rows, indent=2))
    else:
        for row in rows:
            print(f"game {row['game_number']}: {row['url']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
