"""
Main entry point for the FlintMC modification tracker.
Runs one poll cycle: fetch, compare with the baseline, notify, persist.
"""

import argparse
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from modification.fetcher import ModificationFetcher
from modification.store import SnapshotStore
from monitor.cycle import TrackerCycle
from monitor.notifier import DiscordNotifier
from utilities.config import DEFAULT_CONFIG_FILE, TrackerConfig, load_config
from utilities.errors import ConfigError, TrackerError
from utilities.logger import setup_logging, get_logger


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Report changes of a FlintMC modification to a Discord webhook."
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_FILE,
        help=f"path of the JSON config file (default: {DEFAULT_CONFIG_FILE})",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="log detected changes without sending them or updating the baseline",
    )
    parser.add_argument(
        "--reset-baseline",
        action="store_true",
        help="skip the comparison and overwrite the baseline with the current snapshot",
    )
    return parser.parse_args(argv)


def run(config: TrackerConfig, dry_run: bool = False, reset_baseline: bool = False):
    """Build the collaborators from configuration and run one cycle."""
    store = SnapshotStore(config.get_baseline_path())

    with ModificationFetcher(
        api_url=config.api_url,
        timeout=config.request_timeout,
        headers=config.get_headers(),
    ) as fetcher, DiscordNotifier(
        webhook_url=config.webhook_url,
        username=config.webhook_username,
        avatar_url=config.webhook_avatar_url,
        color=config.embed_color,
        page_url_template=config.modification_page_url,
        policy=config.delivery_policy,
        timeout=config.request_timeout,
    ) as notifier:
        cycle = TrackerCycle(config.modification, fetcher, store, notifier)
        return cycle.run(dry_run=dry_run, reset_baseline=reset_baseline)


def main(argv=None) -> int:
    """Main function to run the tracker. Returns the process exit status."""
    args = parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )

    logger = get_logger(__name__)

    try:
        result = run(config, dry_run=args.dry_run, reset_baseline=args.reset_baseline)
    except TrackerError as e:
        logger.error("Tracker run failed", error=str(e), error_type=type(e).__name__)
        return 1

    logger.info(
        "Tracker run finished",
        modification=result.subject,
        changes_detected=result.changes_detected,
        delivered=result.delivered,
        baseline_saved=result.baseline_saved
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
