"""
Cleanup Empty Rooms Script
Deletes active rooms that have no active participants, along with their
participants and (unless --no-messages) their chat messages.

Usage: python -m app.scripts.cleanup_empty_rooms [--dry-run] [--older-than DAYS] [--no-messages]
"""

import argparse
import logging
import sys

from app.database.supabase_client import SupabaseClient
from app.modules.maintenance.jobs import cleanup_empty_rooms

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Delete rooms with no active participants")
    parser.add_argument("--dry-run", action="store_true", help="List empty rooms without deleting them")
    parser.add_argument("--older-than", type=int, default=0, metavar="DAYS",
                        help="Only consider rooms created more than DAYS days ago")
    parser.add_argument("--no-messages", action="store_true", help="Keep the rooms' chat messages")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    try:
        room_ids = cleanup_empty_rooms(
            SupabaseClient.get_service_client(),
            older_than_days=args.older_than,
            delete_messages=not args.no_messages,
            dry_run=args.dry_run,
        )
        logger.info(f"{'Would delete' if args.dry_run else 'Deleted'} {len(room_ids)} room(s)")
    except Exception as e:
        logger.error(f"Error during cleanup: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
