"""
Sync Congress.gov data into MongoDB.

Runs committees, legislators and bills in dependency order, either once
or on a fixed interval.

Usage:
    uv run python scripts/pipelines/sync_all.py                       # Full sync, current Congress
    uv run python scripts/pipelines/sync_all.py --only legislators,bills
    uv run python scripts/pipelines/sync_all.py --fetch-details       # Also actions, cosponsors, text
    uv run python scripts/pipelines/sync_all.py --from-date 2025-01-01
    uv run python scripts/pipelines/sync_all.py --schedule            # Run forever
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from legisync.config.constants import CURRENT_CONGRESS, SYNC_ENTITY_ORDER
from legisync.config.settings import settings
from legisync.database import (
    SyncStores,
    close_async_client,
    create_all_indexes,
    get_async_database,
    ping,
)
from legisync.database.normalization import parse_date
from legisync.ingestion.congress_gov import CongressGovClient
from legisync.ingestion.sync_scheduler import SyncScheduler
from legisync.logging_config import setup_logging
from legisync.models import SyncOptions, SyncResult

logger = logging.getLogger(__name__)


def print_summary(result: SyncResult) -> None:
    print("\n" + "=" * 60)
    print("✅ SYNC COMPLETE" if result.success else "❌ SYNC FAILED")
    print("=" * 60)
    print(f"Duration: {result.duration:.1f}s")
    print()
    print("📊 Summary:")

    for entity in SYNC_ENTITY_ORDER:
        stats = getattr(result.stats, entity)
        print(
            f"   {entity}: {stats.processed} processed, {stats.created} new, "
            f"{stats.updated} updated, {stats.errors} errors"
        )

    details = result.stats
    if details.actions.processed or details.cosponsors.processed or details.text_versions.processed:
        print(
            f"   details: {details.actions.created} actions, "
            f"{details.cosponsors.created} cosponsors, "
            f"{details.text_versions.created} text versions"
        )

    if result.errors:
        print()
        print(f"⚠️  {len(result.errors)} error(s):")
        for error in result.errors[:20]:
            print(f"   {error.id}: {error.error}")
        if len(result.errors) > 20:
            print(f"   ... and {len(result.errors) - 20} more")

    if result.item_errors:
        print()
        print(f"⚠️  {len(result.item_errors)} record(s) skipped:")
        for error in result.item_errors[:20]:
            print(f"   {error.id}: {error.error}")
        if len(result.item_errors) > 20:
            print(f"   ... and {len(result.item_errors) - 20} more")
    print()


def parse_entity_list(value: str) -> List[str]:
    entities = [e.strip() for e in value.split(",") if e.strip()]
    invalid = set(entities) - set(SYNC_ENTITY_ORDER)
    if invalid:
        raise argparse.ArgumentTypeError(
            f"Unknown entity types: {', '.join(sorted(invalid))} "
            f"(available: {', '.join(SYNC_ENTITY_ORDER)})"
        )
    return entities


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Sync committees, legislators and bills from Congress.gov",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sync everything for the current Congress
  uv run python scripts/pipelines/sync_all.py

  # Only bills for the 118th Congress, with actions/cosponsors/text
  uv run python scripts/pipelines/sync_all.py --congress 118 --only bills --fetch-details

  # See what would change without writing
  uv run python scripts/pipelines/sync_all.py --dry-run
        """
    )
    parser.add_argument(
        "--congress",
        type=int,
        default=CURRENT_CONGRESS,
        help=f"Congress number (default: {CURRENT_CONGRESS})"
    )
    parser.add_argument(
        "--only",
        type=parse_entity_list,
        help="Comma-separated entity types to sync (committees,legislators,bills)"
    )
    parser.add_argument(
        "--fetch-details",
        action="store_true",
        help="Also fetch detail records (slower, many more API calls)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Fetch and transform but don't write to the database"
    )
    parser.add_argument(
        "--from-date",
        type=str,
        help="Only sync records updated since this date (YYYY-MM-DD)"
    )
    parser.add_argument(
        "--schedule",
        action="store_true",
        help=f"Keep running, syncing every {settings.SYNC_INTERVAL_SECONDS:.0f}s"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )
    return parser


async def main() -> int:
    """CLI entry point"""
    args = build_parser().parse_args()
    setup_logging(verbose=args.verbose)

    from_date = None
    if args.from_date:
        from_date = parse_date(args.from_date)
        if from_date is None:
            print(f"❌ Invalid --from-date: {args.from_date}")
            return 1

    options = SyncOptions(
        congress=args.congress,
        from_date=from_date,
        entity_types=args.only or list(SYNC_ENTITY_ORDER),
        dry_run=args.dry_run,
        fetch_details=args.fetch_details,
    )

    print("=" * 60)
    print(f"🚀 {settings.APP_NAME.upper()} - {args.congress}th Congress")
    print("=" * 60)
    print(f"Entities: {', '.join(options.entity_types)}")
    if options.dry_run:
        print("Mode: dry run (no writes)")
    print()

    try:
        await ping()
    except Exception as e:
        print(f"❌ Cannot reach MongoDB at {settings.MONGODB_URI}: {e}")
        await close_async_client()
        return 1

    db = get_async_database()
    if not options.dry_run:
        await create_all_indexes(db)
    stores = SyncStores.from_database(db)

    async with CongressGovClient() as client:
        scheduler = SyncScheduler(stores, client)
        try:
            if args.schedule:
                await scheduler.start(options=options)
                # The timer loop runs until interrupted
                while True:
                    await asyncio.sleep(3600)

            result = await scheduler.run_sync(options)
            print_summary(result)
            return 0 if result.success else 1

        except (KeyboardInterrupt, asyncio.CancelledError):
            print("\n\n⚠️  Sync interrupted by user")
            return 1
        finally:
            scheduler.stop()
            await close_async_client()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
