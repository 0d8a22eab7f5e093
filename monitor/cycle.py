"""
Poll cycle orchestration.

One cycle fetches the current snapshot, compares it against the
baseline, notifies each change and stores the snapshot as the new
baseline.
"""

from typing import List

from modification.fetcher import ModificationFetcher
from modification.store import SnapshotStore
from monitor.differ import diff
from monitor.models import ChangeRecord, CycleResult
from monitor.notifier import DiscordNotifier
from utilities.errors import BaselineDecodeError, BaselineNotFoundError, TrackerError
from utilities.logger import CycleLogger


class TrackerCycle:
    """Runs poll cycles for a single modification."""

    def __init__(
        self,
        subject: str,
        fetcher: ModificationFetcher,
        store: SnapshotStore,
        notifier: DiscordNotifier,
    ):
        """
        Initialize the cycle.

        Args:
            subject: Namespace of the tracked modification
            fetcher: Source of the current snapshot
            store: Baseline storage
            notifier: Messaging sink
        """
        self.subject = subject
        self.fetcher = fetcher
        self.store = store
        self.notifier = notifier
        self.cycle_logger = CycleLogger("tracker.cycle").bind_context(subject=subject)

    def run(self, dry_run: bool = False, reset_baseline: bool = False) -> CycleResult:
        """
        Execute one poll cycle.

        Args:
            dry_run: Log changes without delivering them or touching the baseline
            reset_baseline: Skip the comparison and overwrite the baseline

        Returns:
            CycleResult describing what happened

        Raises:
            FetchError: The current snapshot could not be retrieved
            SchemaMismatchError: The baseline has a different field layout
            DeliveryError: A notification failed (fail-fast policy)
            DeliveryBatchError: Notifications failed (collect policy)
            BaselineWriteError: The new baseline could not be written
        """
        self.cycle_logger.log_cycle_start(dry_run=dry_run, reset_baseline=reset_baseline)
        try:
            return self._run(dry_run, reset_baseline)
        except TrackerError as e:
            self.cycle_logger.log_error(str(e))
            raise

    def _run(self, dry_run: bool, reset_baseline: bool) -> CycleResult:
        result = CycleResult(subject=self.subject, dry_run=dry_run)

        current = self.fetcher.fetch(self.subject)
        self.cycle_logger.log_snapshot_fetched(current.name, current.version_string)

        changes: List[ChangeRecord] = []
        if reset_baseline:
            self.cycle_logger.log_baseline_skipped("baseline reset requested")
        else:
            try:
                previous = self.store.load()
            except BaselineNotFoundError:
                self.cycle_logger.log_baseline_skipped("no baseline yet")
            except BaselineDecodeError as e:
                self.cycle_logger.log_baseline_skipped(f"unreadable baseline: {e}", warning=True)
            else:
                result.baseline_found = True
                changes = diff(previous, current)

        result.changes = changes

        if dry_run:
            for change in changes:
                self.cycle_logger.log_change(change.field_name, delivered=False)
        elif changes:
            result.delivered = self.notifier.notify_all(current, changes)
            for change in changes:
                self.cycle_logger.log_change(change.field_name, delivered=True)

        if not dry_run:
            self.store.save(current)
            result.baseline_saved = True
            self.cycle_logger.log_baseline_saved(str(self.store.path))

        self.cycle_logger.log_cycle_complete(
            changes=result.changes_detected,
            delivered=result.delivered,
            baseline_saved=result.baseline_saved
        )
        return result
