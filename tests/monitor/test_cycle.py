"""
Test cases for poll cycle orchestration.
Runs the real fetcher, store and notifier against fake HTTP transports.
"""

import json
from unittest.mock import Mock

import httpx
import pytest
from structlog.testing import capture_logs

from modification.fetcher import ModificationFetcher
from modification.store import SnapshotStore
from monitor.cycle import TrackerCycle
from monitor.models import DeliveryPolicy
from monitor.notifier import DiscordNotifier
from utilities.errors import (
    BaselineWriteError, DeliveryBatchError, DeliveryError, FetchError, SchemaMismatchError
)


@pytest.fixture
def fetcher(api_url, api_client):
    return ModificationFetcher(api_url, client=api_client)


@pytest.fixture
def notifier(webhook_url, webhook_recorder):
    return DiscordNotifier(webhook_url, client=webhook_recorder.client())


@pytest.fixture
def cycle(fetcher, snapshot_store, notifier):
    return TrackerCycle("labyfriends", fetcher, snapshot_store, notifier)


class TestFirstRun:
    """Test cases for a run without a baseline."""

    def test_skips_diff_and_saves_baseline(self, cycle, snapshot_store, webhook_recorder, sample_modification):
        """Test that the first run only records the baseline."""
        result = cycle.run()

        assert result.baseline_found is False
        assert result.changes == []
        assert result.baseline_saved is True
        assert webhook_recorder.payloads == []
        assert snapshot_store.load() == sample_modification

    def test_unreadable_baseline_treated_as_missing(self, cycle, snapshot_store, webhook_recorder, sample_modification):
        """Test that a corrupt baseline is replaced instead of failing the cycle."""
        snapshot_store.path.write_text("{not json")

        result = cycle.run()

        assert result.baseline_found is False
        assert webhook_recorder.payloads == []
        assert snapshot_store.load() == sample_modification


class TestChangedSnapshot:
    """Test cases for runs with a baseline."""

    def test_downloads_change_notified(self, cycle, snapshot_store, webhook_recorder, make_modification):
        """Test one notification for one changed counter."""
        snapshot_store.save(make_modification(downloads=50))

        result = cycle.run()

        assert result.baseline_found is True
        assert [change.field_name for change in result.changes] == ["Downloads"]
        assert result.delivered == 1
        assert webhook_recorder.payloads[0]["embeds"][0]["description"] == "50\n->\n100"
        assert snapshot_store.load().downloads == 100

    def test_unchanged_snapshot_sends_nothing(self, cycle, snapshot_store, webhook_recorder, sample_modification):
        snapshot_store.save(sample_modification)

        result = cycle.run()

        assert result.changes == []
        assert webhook_recorder.payloads == []
        assert result.baseline_saved is True

    def test_multiple_changes_in_schema_order(self, cycle, snapshot_store, webhook_recorder, make_modification):
        """Test one message per changed field, in schema order."""
        snapshot_store.save(make_modification(tags=[1], name="Old Name", downloads=99))

        result = cycle.run()

        titles = [payload["embeds"][0]["title"] for payload in webhook_recorder.payloads]
        assert titles == ["Change: Name", "Change: Downloads", "Change: Tags"]
        assert result.delivered == 3


class TestFailures:
    """Test cases for failing cycles."""

    def test_delivery_failure_aborts_without_saving(self, cycle, snapshot_store, webhook_recorder, make_modification):
        """Test the fail-fast policy on a server error."""
        baseline = make_modification(downloads=50, version_string="0.9.0")
        snapshot_store.save(baseline)
        webhook_recorder.statuses = [500]

        with pytest.raises(DeliveryError):
            cycle.run()

        assert len(webhook_recorder.payloads) == 1
        assert snapshot_store.load() == baseline

    def test_collect_policy_keeps_baseline(self, fetcher, snapshot_store, webhook_url, webhook_recorder, make_modification):
        """Test that collected failures also leave the baseline untouched."""
        notifier = DiscordNotifier(
            webhook_url, policy=DeliveryPolicy.COLLECT, client=webhook_recorder.client()
        )
        cycle = TrackerCycle("labyfriends", fetcher, snapshot_store, notifier)
        baseline = make_modification(downloads=50, version_string="0.9.0")
        snapshot_store.save(baseline)
        webhook_recorder.statuses = [500, 204]

        with pytest.raises(DeliveryBatchError):
            cycle.run()

        assert len(webhook_recorder.payloads) == 2
        assert snapshot_store.load() == baseline

    def test_fetch_failure_touches_nothing(self, api_url, snapshot_store, notifier, webhook_recorder):
        """Test that a failed fetch neither notifies nor persists."""
        def handler(request):
            return httpx.Response(503)

        fetcher = ModificationFetcher(api_url, client=httpx.Client(transport=httpx.MockTransport(handler)))
        cycle = TrackerCycle("labyfriends", fetcher, snapshot_store, notifier)

        with pytest.raises(FetchError):
            cycle.run()

        assert not snapshot_store.exists()
        assert webhook_recorder.payloads == []

    def test_failure_logged(self, api_url, snapshot_store, notifier):
        """Test that a failing cycle emits an error event before re-raising."""
        def handler(request):
            return httpx.Response(503)

        fetcher = ModificationFetcher(api_url, client=httpx.Client(transport=httpx.MockTransport(handler)))
        cycle = TrackerCycle("labyfriends", fetcher, snapshot_store, notifier)

        with capture_logs() as logs:
            with pytest.raises(FetchError):
                cycle.run()

        failures = [entry for entry in logs if entry["event"] == "Poll cycle failed"]
        assert len(failures) == 1
        assert failures[0]["log_level"] == "error"
        assert failures[0]["subject"] == "labyfriends"
        assert "503" in failures[0]["error"]

    def test_schema_mismatch_fails_cycle(self, cycle, snapshot_store, webhook_recorder, sample_modification_data):
        """Test that an incompatible baseline is not diffed."""
        document = dict(sample_modification_data)
        del document["licence"]
        snapshot_store.path.write_text(json.dumps(document))

        with pytest.raises(SchemaMismatchError):
            cycle.run()

        assert webhook_recorder.payloads == []

    def test_write_failure_reported(self, fetcher, notifier, sample_modification):
        """Test that a baseline that cannot be saved fails the cycle."""
        store = Mock(spec=SnapshotStore)
        store.path = "latest.json"
        store.load.return_value = sample_modification
        store.save.side_effect = BaselineWriteError("disk full")
        cycle = TrackerCycle("labyfriends", fetcher, store, notifier)

        with pytest.raises(BaselineWriteError):
            cycle.run()


class TestModes:
    """Test cases for dry-run and baseline reset."""

    def test_dry_run(self, cycle, snapshot_store, webhook_recorder, make_modification):
        """Test that dry-run reports changes without side effects."""
        baseline = make_modification(downloads=50)
        snapshot_store.save(baseline)

        result = cycle.run(dry_run=True)

        assert [change.field_name for change in result.changes] == ["Downloads"]
        assert result.delivered == 0
        assert result.baseline_saved is False
        assert webhook_recorder.payloads == []
        assert snapshot_store.load() == baseline

    def test_reset_baseline(self, cycle, snapshot_store, webhook_recorder, sample_modification):
        """Test that a reset overwrites even an incompatible baseline."""
        snapshot_store.path.write_text(json.dumps({"id": 1}))

        result = cycle.run(reset_baseline=True)

        assert result.changes == []
        assert webhook_recorder.payloads == []
        assert snapshot_store.load() == sample_modification
