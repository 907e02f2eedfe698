"""
Sync Run Tracker Module
Creates, logs against and finalizes sync run records.
"""

from typing import Dict, List, Optional

from shopsync.database.connection import SessionScope, get_session
from shopsync.database.models import LOG_FIELD_MAX_LENGTH, SyncLog, SyncRun
from shopsync.dtos import LogEntry, SyncCounts, SyncStatus, SyncSummary, utcnow
from shopsync.utils.helpers import truncate_string
from shopsync.utils.logger import get_logger

logger = get_logger(__name__)


def derive_status(counts: SyncCounts, fault: bool = False) -> str:
    """
    Derive the terminal status of a run.

    Args:
        counts: Accumulated counts
        fault: Whether a run-level fault occurred

    Returns:
        Failed on a run-level fault, CompletedWithErrors if any item failed,
        otherwise Completed
    """
    if fault:
        return SyncStatus.FAILED
    if counts.failed > 0:
        return SyncStatus.COMPLETED_WITH_ERRORS
    return SyncStatus.COMPLETED


def _to_summary(run: SyncRun) -> SyncSummary:
    return SyncSummary(
        run_id=run.id,
        sync_type=run.sync_type,
        started_at=run.started_at,
        completed_at=run.completed_at,
        status=run.status,
        message=run.message,
        counts=SyncCounts(
            total_items=run.total_items or 0,
            inserted=run.inserted or 0,
            updated=run.updated or 0,
            failed=run.failed or 0
        )
    )


class SyncRunTracker:
    """
    Persists the lifecycle of sync runs and their per-item log entries.

    Every call takes the run id explicitly; the tracker holds no per-run state.
    """

    def __init__(self, session_scope: SessionScope = None):
        """
        Initialize tracker.

        Args:
            session_scope: Transactional session context manager factory
        """
        self.session_scope = session_scope or get_session

    def begin(self, sync_type: str) -> int:
        """
        Create a run record in progress with zero counts.

        Args:
            sync_type: Sync flavor

        Returns:
            The new run id
        """
        with self.session_scope() as session:
            run = SyncRun(
                sync_type=sync_type,
                started_at=utcnow(),
                status=SyncStatus.IN_PROGRESS,
                total_items=0,
                inserted=0,
                updated=0,
                failed=0
            )
            session.add(run)
            session.flush()
            run_id = run.id

        logger.info(f"[{sync_type}] Sync run {run_id} started")
        return run_id

    def log_item(self, run_id: int, entry: LogEntry) -> None:
        """
        Write one log entry for a run.

        String fields are cut to the column bound. Failures are logged and
        swallowed so that audit logging never aborts a sync.

        Args:
            run_id: Owning run
            entry: Entry to persist
        """
        try:
            with self.session_scope() as session:
                session.add(SyncLog(
                    run_id=run_id,
                    logged_at=entry.timestamp,
                    log_type=truncate_string(entry.log_type, LOG_FIELD_MAX_LENGTH),
                    identifier=truncate_string(entry.identifier, LOG_FIELD_MAX_LENGTH),
                    message=truncate_string(entry.message, LOG_FIELD_MAX_LENGTH),
                    detail=truncate_string(entry.detail, LOG_FIELD_MAX_LENGTH)
                ))
        except Exception as e:
            logger.error(f"Failed to save sync log for run {run_id}: {entry.log_type} - {entry.message}: {e}")

    def finish(
        self,
        run_id: int,
        status: str,
        counts: SyncCounts,
        message: Optional[str] = None
    ) -> SyncSummary:
        """
        Finalize a run with end time, status, counts and message.

        Args:
            run_id: Run to finalize
            status: Terminal status
            counts: Final counts
            message: Free-text message, cut to the column bound

        Returns:
            Summary of the finalized run

        Raises:
            LookupError: If the run does not exist
        """
        with self.session_scope() as session:
            run = session.get(SyncRun, run_id)
            if run is None:
                raise LookupError(f"Sync run {run_id} not found")

            run.completed_at = utcnow()
            run.status = status
            run.total_items = counts.total_items
            run.inserted = counts.inserted
            run.updated = counts.updated
            run.failed = counts.failed
            run.message = truncate_string(message, LOG_FIELD_MAX_LENGTH)
            session.flush()

            summary = _to_summary(run)

        logger.info(
            f"[{summary.sync_type}] Sync run {run_id} finished: {status} "
            f"(total={counts.total_items}, inserted={counts.inserted}, "
            f"updated={counts.updated}, failed={counts.failed})"
        )
        return summary

    # ========================================
    # Status Queries
    # ========================================

    def recent_runs(self, limit: int = 10) -> List[SyncSummary]:
        """Get the most recent runs, newest first."""
        with self.session_scope() as session:
            runs = (
                session.query(SyncRun)
                .order_by(SyncRun.started_at.desc(), SyncRun.id.desc())
                .limit(limit)
                .all()
            )
            return [_to_summary(run) for run in runs]

    def get_run(self, run_id: int) -> Optional[SyncSummary]:
        """Get one run, or None if it does not exist."""
        with self.session_scope() as session:
            run = session.get(SyncRun, run_id)
            return _to_summary(run) if run else None

    def get_logs(self, run_id: int, limit: int = 100) -> List[Dict]:
        """Get log entries of a run in write order."""
        with self.session_scope() as session:
            logs = (
                session.query(SyncLog)
                .filter(SyncLog.run_id == run_id)
                .order_by(SyncLog.id)
                .limit(limit)
                .all()
            )
            return [
                {
                    'logged_at': log.logged_at.isoformat() if log.logged_at else None,
                    'type': log.log_type,
                    'identifier': log.identifier,
                    'message': log.message,
                    'detail': log.detail
                }
                for log in logs
            ]
