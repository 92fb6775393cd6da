"""Database maintenance tasks.

Usage:
    python -m scripts.maintenance init-db              # Create missing tables
    python -m scripts.maintenance read-times           # Recompute every post's read time
    python -m scripts.maintenance read-times --post ID # Recompute one post
    python -m scripts.maintenance likes                # Recount like counters from like rows
"""

import argparse
import logging
import sys

from quill.db import get_session_factory, init_db
from quill.services.errors import NotFoundError
from quill.services.posts import recalculate_all_read_times, recalculate_read_time
from quill.services.social import recount_likes

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger("scripts.maintenance")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="python -m scripts.maintenance")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("init-db", help="create missing tables")
    read_times = sub.add_parser("read-times", help="recompute read times")
    read_times.add_argument("--post", metavar="ID", help="only this post")
    sub.add_parser("likes", help="recount like counters")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    if args.command == "init-db":
        init_db()
        print("Tables ready.")
        return 0

    with get_session_factory()() as db:
        if args.command == "read-times":
            if args.post:
                try:
                    minutes = recalculate_read_time(db, args.post)
                except NotFoundError:
                    logger.error("Post %s not found", args.post)
                    return 1
                print(f"Post {args.post}: {minutes} min read")
            else:
                updated = recalculate_all_read_times(db)
                print(f"Updated read times for {updated} posts.")
            return 0

        if args.command == "likes":
            fixed = recount_likes(db)
            print(f"Fixed like counters on {fixed} posts.")
            return 0

    return 2


if __name__ == "__main__":
    sys.exit(main())
