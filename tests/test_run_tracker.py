"""
Unit Tests for the Sync Run Tracker
"""

import unittest

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shopsync.database.connection import session_scope_for
from shopsync.database.models import Base, SyncLog, SyncRun
from shopsync.dtos import LogEntry, LogType, SyncCounts, SyncStatus, SyncType
from shopsync.run_tracker import SyncRunTracker, derive_status


class RunTrackerTestCase(unittest.TestCase):

    def setUp(self):
        self.engine = create_engine(
            'sqlite://',
            connect_args={'check_same_thread': False},
            poolclass=StaticPool
        )
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine)
        self.tracker = SyncRunTracker(session_scope_for(self.Session))

    def tearDown(self):
        self.engine.dispose()

    def logs(self):
        session = self.Session()
        try:
            return session.query(SyncLog).order_by(SyncLog.id).all()
        finally:
            session.close()


class TestLifecycle(RunTrackerTestCase):
    """Test begin/finish."""

    def test_begin_creates_run_in_progress(self):
        run_id = self.tracker.begin(SyncType.FULL_INVENTORY)

        run = self.tracker.get_run(run_id)
        self.assertEqual(run.status, SyncStatus.IN_PROGRESS)
        self.assertEqual(run.sync_type, SyncType.FULL_INVENTORY)
        self.assertIsNone(run.completed_at)
        self.assertEqual(run.counts, SyncCounts())

    def test_finish_writes_counts_and_status(self):
        run_id = self.tracker.begin(SyncType.PRICE_UPDATE)
        counts = SyncCounts(total_items=10, inserted=7, updated=2, failed=1)

        summary = self.tracker.finish(run_id, SyncStatus.COMPLETED_WITH_ERRORS, counts)

        self.assertEqual(summary.status, SyncStatus.COMPLETED_WITH_ERRORS)
        self.assertEqual(summary.counts, counts)
        self.assertIsNotNone(summary.completed_at)
        self.assertEqual(self.tracker.get_run(run_id).counts, counts)

    def test_finish_truncates_message(self):
        run_id = self.tracker.begin(SyncType.FULL_INVENTORY)

        summary = self.tracker.finish(run_id, SyncStatus.FAILED, SyncCounts(), 'x' * 120)

        self.assertEqual(summary.message, 'x' * 50)

    def test_finish_unknown_run(self):
        with self.assertRaises(LookupError):
            self.tracker.finish(999, SyncStatus.COMPLETED, SyncCounts())

    def test_recent_runs_newest_first(self):
        first = self.tracker.begin(SyncType.FULL_INVENTORY)
        second = self.tracker.begin(SyncType.PRICE_UPDATE)

        runs = self.tracker.recent_runs(limit=5)

        self.assertEqual([r.run_id for r in runs][:2], [second, first])


class TestLogItem(RunTrackerTestCase):
    """Test per-item log writes."""

    def test_entry_associated_to_run(self):
        run_id = self.tracker.begin(SyncType.FULL_INVENTORY)

        self.tracker.log_item(run_id, LogEntry(LogType.SUCCESS, 'SKU-1', 'Item synced successfully'))

        logs = self.logs()
        self.assertEqual(len(logs), 1)
        self.assertEqual(logs[0].run_id, run_id)
        self.assertEqual(logs[0].log_type, 'Success')
        self.assertEqual(logs[0].identifier, 'SKU-1')

    def test_long_fields_truncated_to_prefix(self):
        run_id = self.tracker.begin(SyncType.FULL_INVENTORY)
        message = ''.join(str(i % 10) for i in range(80))

        self.tracker.log_item(run_id, LogEntry(
            LogType.ERROR, 'I' * 60, message, detail='Traceback ' * 20
        ))

        log = self.logs()[0]
        self.assertEqual(log.message, message[:50])
        self.assertEqual(log.identifier, 'I' * 50)
        self.assertEqual(log.detail, ('Traceback ' * 20)[:50])

    def test_write_failure_is_swallowed(self):
        def broken_scope():
            raise RuntimeError('disk full')

        tracker = SyncRunTracker(broken_scope)

        tracker.log_item(1, LogEntry(LogType.ERROR, 'SKU-1', 'boom'))

    def test_get_logs(self):
        run_id = self.tracker.begin(SyncType.FULL_INVENTORY)
        self.tracker.log_item(run_id, LogEntry(LogType.WARNING, 'SKU-2', 'No internal product for EAN'))

        logs = self.tracker.get_logs(run_id)

        self.assertEqual(logs[0]['type'], 'Warning')
        self.assertEqual(logs[0]['identifier'], 'SKU-2')


class TestDeriveStatus(unittest.TestCase):
    """Test terminal status rule."""

    def test_completed(self):
        self.assertEqual(derive_status(SyncCounts(total_items=3, inserted=3)), SyncStatus.COMPLETED)

    def test_completed_with_errors(self):
        self.assertEqual(derive_status(SyncCounts(failed=1)), SyncStatus.COMPLETED_WITH_ERRORS)

    def test_fault_wins(self):
        self.assertEqual(derive_status(SyncCounts(failed=1), fault=True), SyncStatus.FAILED)


if __name__ == '__main__':
    unittest.main()
