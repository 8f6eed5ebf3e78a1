#!/usr/bin/env python3
"""
Build Index - Load exported tickets/comments into SQLite and rebuild search.

This script:
1. Loads a JSON export ({"tickets": [...], "comments": [...]}) into the
   record tables
2. Rebuilds the ticket and comment search indexes in one transaction

Usage:
    python tools/build_index.py data/export.json
    python tools/build_index.py --rebuild-only
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tickethub.adapters.sqlite import SQLiteRepository
from tickethub.config import TicketHubError, get_settings
from tickethub.domains.search import Comment, SearchIndexStore, Ticket

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


async def load_export(repo: SQLiteRepository, export_file: Path) -> tuple[int, int]:
    """Load tickets and comments from a JSON export."""
    logger.info("Loading %s into SQLite...", export_file)

    with open(export_file) as f:
        data = json.load(f)

    tickets = 0
    for item in data.get("tickets", []):
        await repo.save_ticket(Ticket.model_validate(item))
        tickets += 1

    comments = 0
    for item in data.get("comments", []):
        await repo.save_comment(Comment.model_validate(item))
        comments += 1

    logger.info("Loaded %d tickets, %d comments", tickets, comments)
    return tickets, comments


async def main() -> int:
    parser = argparse.ArgumentParser(description="Load records and rebuild the search index")
    parser.add_argument("export", nargs="?", type=Path, help="JSON export to load")
    parser.add_argument("--db", type=Path, default=None, help="Database path")
    parser.add_argument("--rebuild-only", action="store_true", help="Skip loading, only rebuild")
    args = parser.parse_args()

    db_path = args.db or get_settings().db_path

    repo = SQLiteRepository(db_path)
    store = SearchIndexStore(db_path)
    await repo.initialize()
    await store.initialize()

    try:
        if not args.rebuild_only:
            if args.export is None or not args.export.exists():
                logger.error("Export file not found: %s", args.export)
                return 1
            await load_export(repo, args.export)

        counts = await store.rebuild_all(repo)
    except TicketHubError as e:
        logger.error("Index build failed: %s", e)
        return 1
    finally:
        await store.close()
        await repo.close()

    # Summary
    print("\n" + "=" * 50)
    print("INDEX BUILD COMPLETE")
    print("=" * 50)
    print(f"Tickets indexed:   {counts['tickets']:,}")
    print(f"Comments indexed:  {counts['comments']:,}")
    print("=" * 50)

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
