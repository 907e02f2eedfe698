"""
Sync Pipeline Module
Orchestrates extraction from Shopify, reconciliation into the inventory table
and run tracking, store by store.
"""

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from shopsync.config_manager import DEFAULT_STORE, ConfigManager
from shopsync.dtos import (
    InventoryFact, LogEntry, LogType, SyncCounts, SyncStatus, SyncSummary, SyncType,
    item_identifier, utcnow
)
from shopsync.database.models import LOG_FIELD_MAX_LENGTH
from shopsync.reconciliation import DEFAULT_SYSTEM_ACTOR, InventoryRepository
from shopsync.run_tracker import SyncRunTracker, derive_status
from shopsync.shopify_client import ShopifyClient
from shopsync.utils.helpers import previous_utc_day, truncate_string
from shopsync.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_PLATFORM = 'Shopify'
DEFAULT_SUCCESS_LOG_LIMIT = 100


@dataclass
class RunContext:
    """State of one run, passed explicitly to everything that counts or logs."""
    run_id: int
    sync_type: str
    counts: SyncCounts = field(default_factory=SyncCounts)
    items_seen: int = 0


class InventorySyncPipeline:
    """
    Sync pipeline for Shopify inventory and prices.
    Supports full, incremental (previous UTC day) and price-only runs.
    """

    def __init__(
        self,
        client: ShopifyClient = None,
        repository: InventoryRepository = None,
        tracker: SyncRunTracker = None,
        stores: List[str] = None,
        sync_config: Dict = None
    ):
        """
        Initialize sync pipeline. Collaborators not given are built from configuration.

        Args:
            client: Extraction client
            repository: Reconciliation repository
            tracker: Run tracker
            stores: Store names in processing order
            sync_config: ``sync`` config section
        """
        if sync_config is None or stores is None:
            config = ConfigManager()
            if sync_config is None:
                sync_config = config.get_sync_config()
            if stores is None:
                stores = config.get_stores()

        self.stores = list(stores) or [DEFAULT_STORE]
        self.platform = sync_config.get('platform', DEFAULT_PLATFORM)
        self.success_log_limit = sync_config.get('success_log_limit', DEFAULT_SUCCESS_LOG_LIMIT)

        self.client = client or ShopifyClient()
        self.repository = repository or InventoryRepository(
            system_actor=sync_config.get('system_actor', DEFAULT_SYSTEM_ACTOR)
        )
        self.tracker = tracker or SyncRunTracker()

        logger.info(f"Sync pipeline initialized for stores: {', '.join(self.stores)}")

    def run_full_inventory_sync(self, cancel_event: Optional[threading.Event] = None) -> SyncSummary:
        """Run a full inventory sync of every store."""
        return self.run(SyncType.FULL_INVENTORY, cancel_event=cancel_event)

    def run_incremental_inventory_sync(self, cancel_event: Optional[threading.Event] = None) -> SyncSummary:
        """Run an inventory sync of products updated during the previous UTC day."""
        return self.run(SyncType.INCREMENTAL_INVENTORY, cancel_event=cancel_event)

    def run_price_update(self, cancel_event: Optional[threading.Event] = None) -> SyncSummary:
        """Run a price-only sync of every store."""
        return self.run(SyncType.PRICE_UPDATE, cancel_event=cancel_event)

    def run(self, sync_type: str, cancel_event: Optional[threading.Event] = None) -> SyncSummary:
        """
        Execute one sync run across all stores.

        Item failures are counted and logged without stopping the run. A
        failure fetching a store stops the run and marks it Failed. The run
        record is finalized on every exit path.

        Args:
            sync_type: One of SyncType.ALL
            cancel_event: Advisory cancellation, checked between pages

        Returns:
            Summary of the finalized run

        Raises:
            ValueError: If sync_type is unknown
        """
        if sync_type not in SyncType.ALL:
            raise ValueError(f"Unknown sync type: {sync_type}")

        started_at = utcnow()
        logger.info(f"[{sync_type}] Starting sync")

        try:
            run_id = self.tracker.begin(sync_type)
        except Exception as e:
            logger.error(f"[{sync_type}] Could not create sync run record: {e}")
            return SyncSummary(
                run_id=None,
                sync_type=sync_type,
                started_at=started_at,
                completed_at=utcnow(),
                status=SyncStatus.FAILED,
                message=truncate_string(str(e), LOG_FIELD_MAX_LENGTH)
            )

        context = RunContext(run_id=run_id, sync_type=sync_type)
        window = previous_utc_day() if sync_type == SyncType.INCREMENTAL_INVENTORY else None

        fault_message = None
        completed = False
        current_store = None
        try:
            for store in self.stores:
                current_store = store
                logger.info(f"[{sync_type}] Extracting data for store {store}")

                facts = self.client.fetch_inventory(
                    store, sync_type, window=window, cancel_event=cancel_event
                )
                context.counts.total_items += len(facts)

                for fact in facts:
                    self._reconcile_item(context, fact)

            completed = True

        except Exception as e:
            fault_message = str(e) or e.__class__.__name__
            logger.error(f"[{sync_type}] Sync run {run_id} failed at store {current_store}: {e}")
            self.tracker.log_item(run_id, LogEntry(
                log_type=LogType.ERROR,
                identifier=current_store or DEFAULT_STORE,
                message='Sync run failed',
                detail=fault_message
            ))

        finally:
            if not completed and fault_message is None:
                fault_message = 'Sync run interrupted'
            status = derive_status(context.counts, fault=not completed)
            summary = self._finish(context, started_at, status, fault_message)

        return summary

    def _reconcile_item(self, context: RunContext, fact: InventoryFact) -> None:
        """Upsert one fact, updating counts and item logs."""
        identifier = item_identifier(fact)
        item_index = context.items_seen
        context.items_seen += 1

        try:
            result = self.repository.upsert_inventory(fact, self.platform)
        except Exception as e:
            context.counts.failed += 1
            logger.error(f"[{context.sync_type}] Failed to sync item {identifier}: {e}")
            self.tracker.log_item(context.run_id, LogEntry(
                log_type=LogType.ERROR,
                identifier=identifier,
                message='Failed to update inventory',
                detail=f"{e.__class__.__name__}: {e}"
            ))
            return

        if not result.existed:
            context.counts.inserted += 1
        elif result.was_updated:
            context.counts.updated += 1

        if result.product_matched is False:
            self.tracker.log_item(context.run_id, LogEntry(
                log_type=LogType.WARNING,
                identifier=identifier,
                message='No internal product for EAN',
                detail=fact.ean
            ))

        # Success entries only for the first N items of the run
        if item_index < self.success_log_limit:
            self.tracker.log_item(context.run_id, LogEntry(
                log_type=LogType.SUCCESS,
                identifier=identifier,
                message='Item synced successfully'
            ))

    def _finish(
        self,
        context: RunContext,
        started_at,
        status: str,
        message: Optional[str]
    ) -> SyncSummary:
        """Finalize the run record; never raises."""
        try:
            return self.tracker.finish(context.run_id, status, context.counts, message)
        except Exception as e:
            logger.error(f"[{context.sync_type}] Could not finalize sync run {context.run_id}: {e}")
            return SyncSummary(
                run_id=context.run_id,
                sync_type=context.sync_type,
                started_at=started_at,
                completed_at=utcnow(),
                status=status,
                message=truncate_string(message, LOG_FIELD_MAX_LENGTH),
                counts=context.counts
            )


def run_sync(sync_type: str) -> SyncSummary:
    """
    Convenience function to run one sync flavor with configured collaborators.

    Args:
        sync_type: One of SyncType.ALL

    Returns:
        Summary of the finalized run
    """
    pipeline = InventorySyncPipeline()
    return pipeline.run(sync_type)
