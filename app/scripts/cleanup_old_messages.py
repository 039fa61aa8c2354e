"""
Cleanup Old Messages Script

Usage: python -m app.scripts.cleanup_old_messages [--days DAYS] [--dry-run]
"""

import argparse
import logging
import sys

from app.config import settings
from app.database.supabase_client import SupabaseClient
from app.modules.maintenance.jobs import cleanup_old_messages

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Delete chat messages past the retention window")
    parser.add_argument("--days", type=int, default=settings.message_retention_days,
                        help="Delete messages older than this many days")
    parser.add_argument("--dry-run", action="store_true", help="Only count matching messages")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    try:
        count = cleanup_old_messages(SupabaseClient.get_service_client(), days=args.days, dry_run=args.dry_run)
        logger.info(f"{'Would delete' if args.dry_run else 'Deleted'} {count} message(s)")
    except Exception as e:
        logger.error(f"Error during cleanup: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
