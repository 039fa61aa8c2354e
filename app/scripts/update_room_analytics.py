"""
Recompute room_analytics (counts, trending score) for rooms.

Usage: python -m app.scripts.update_room_analytics [--all] [--dry-run]
"""

import argparse
import logging
import sys

from app.database.supabase_client import SupabaseClient
from app.modules.analytics.service import AnalyticsService

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Update room analytics")
    parser.add_argument("--all", action="store_true", help="Include rooms that have ended")
    parser.add_argument("--dry-run", action="store_true", help="Compute scores without writing them")
    args = parser.parse_args(argv)
    try:
        AnalyticsService(SupabaseClient.get_service_client()).update_all(active_only=not args.all, dry_run=args.dry_run)
    except Exception as e:
        logger.error(f"Error updating analytics: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
