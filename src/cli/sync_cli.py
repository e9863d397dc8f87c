"""
Command-line interface for running a Citizenly legislative sync.

Usage:
    python -m src.cli.sync_cli --mode quick
    python -m src.cli.sync_cli --mode session --session-id 2172
    python -m src.cli.sync_cli --mode custom --max-bills 20 --force --output results.json
    python -m src.cli.sync_cli --status
"""

import asyncio
import argparse
import json
import logging
from pathlib import Path
from typing import Optional

from ..db.session import db
from ..exceptions import ConfigurationError, SyncAlreadyRunningError
from ..models.sync import SyncOptions, SyncProgress
from ..orchestration.bill_sync import BillSyncOrchestrator


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def print_progress(progress: SyncProgress) -> None:
    print(f"[{progress.phase:<12}] {progress.current}/{progress.total} {progress.message}")


async def run_sync(
    mode: str,
    session_id: Optional[int],
    force: bool,
    max_bills: Optional[int],
    output_file: Optional[str]
) -> int:
    """
    Run one sync pass and print a summary.

    Returns:
        Process exit code
    """
    orchestrator = BillSyncOrchestrator.get_instance()

    if mode == "quick":
        options = SyncOptions(max_bills=50, force=False)
    elif mode == "full":
        options = SyncOptions(force=True)
    elif mode == "session":
        options = SyncOptions(session_id=session_id, force=True)
    else:
        options = SyncOptions(session_id=session_id, force=force, max_bills=max_bills)
    options.on_progress = print_progress

    print("\n" + "=" * 60)
    print("Citizenly - Legislative Sync")
    print("=" * 60)
    print(f"Mode: {mode}")
    print(f"Session: {options.session_id or 'ACTIVE'}")
    print(f"Force: {options.force}")
    print(f"Max bills: {options.max_bills or 'ALL'}")
    print("=" * 60 + "\n")

    try:
        results = await orchestrator.sync_bills(options)
    except (ConfigurationError, SyncAlreadyRunningError) as e:
        print(f"\nSync not started: {e}\n")
        return 1
    finally:
        await orchestrator.cache.close()
        await db.close()

    print("\n" + "=" * 60)
    print("RESULTS")
    print("=" * 60)
    print(f"Success: {results.success}")
    print(f"Duration: {results.duration_ms / 1000:.2f}s")
    print(f"Sessions: {results.sessions_synced}")
    print(f"Legislators: {results.legislators_synced}")
    print(f"Bills processed: {results.bills_processed} "
          f"({results.bills_new} new, {results.bills_updated} updated)")
    print(f"Roll calls: {results.roll_calls_synced}")
    print(f"Feed items: {results.feed_items_created}")

    if results.errors:
        print(f"\nErrors ({len(results.errors)}):")
        for i, error in enumerate(results.errors[:5], 1):
            print(f"  {i}. {error}")
        if len(results.errors) > 5:
            print(f"  ... and {len(results.errors) - 5} more errors")

    if output_file:
        output_path = Path(output_file)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(results.to_dict(), f, indent=2)
        print(f"\nResults saved to: {output_path.absolute()}")

    print("\n" + "=" * 60 + "\n")
    return 0 if results.success else 1


async def show_status() -> int:
    orchestrator = BillSyncOrchestrator.get_instance()
    try:
        status = await orchestrator.get_sync_status()
    finally:
        await orchestrator.cache.close()
        await db.close()

    print(json.dumps(status, indent=2, default=str))
    return 0


def main():
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description="Sync state legislative data from LegiScan",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # First 50 masterlist bills per active session, unchanged bills skipped
  python -m src.cli.sync_cli --mode quick

  # Refetch everything for one session
  python -m src.cli.sync_cli --mode session --session-id 2172

  # Custom pass with a bill cap, saving results
  python -m src.cli.sync_cli --mode custom --max-bills 20 --output results.json
        """
    )

    parser.add_argument(
        "--mode",
        choices=["quick", "full", "session", "custom"],
        default="quick",
        help="Sync mode (default: quick)"
    )

    parser.add_argument(
        "--session-id",
        type=int,
        help="LegiScan session id (required for --mode session)"
    )

    parser.add_argument(
        "--force",
        action="store_true",
        help="Refetch bills even when their change hash is unchanged (custom mode)"
    )

    parser.add_argument(
        "--max-bills",
        type=int,
        help="Only process the first N masterlist entries per session (custom mode)"
    )

    parser.add_argument(
        "--output",
        type=str,
        help="Save results to JSON file"
    )

    parser.add_argument(
        "--status",
        action="store_true",
        help="Print sync status and feed statistics instead of syncing"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging (DEBUG level)"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled")

    if args.mode == "session" and args.session_id is None:
        parser.error("--session-id is required for --mode session")

    if args.status:
        exit_code = asyncio.run(show_status())
    else:
        exit_code = asyncio.run(
            run_sync(
                mode=args.mode,
                session_id=args.session_id,
                force=args.force,
                max_bills=args.max_bills,
                output_file=args.output
            )
        )

    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
