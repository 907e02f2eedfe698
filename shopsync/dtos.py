"""
Sync Data Transfer Objects
Plain records passed between the extraction client, reconciliation and run tracking.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

import pytz


UNKNOWN_IDENTIFIER = 'UNKNOWN'


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.now(pytz.UTC).replace(tzinfo=None)


class SyncType:
    """Sync flavors."""
    FULL_INVENTORY = 'FullInventory'
    INCREMENTAL_INVENTORY = 'IncrementalInventory'
    PRICE_UPDATE = 'PriceUpdate'

    ALL = (FULL_INVENTORY, INCREMENTAL_INVENTORY, PRICE_UPDATE)


class SyncStatus:
    """Sync run states."""
    IN_PROGRESS = 'InProgress'
    COMPLETED = 'Completed'
    COMPLETED_WITH_ERRORS = 'CompletedWithErrors'
    FAILED = 'Failed'


class LogType:
    """Per-item log entry types."""
    SUCCESS = 'Success'
    ERROR = 'Error'
    WARNING = 'Warning'


@dataclass
class InventoryFact:
    """One observation of a variant's stock and price at one location."""
    store_name: str
    sku: Optional[str] = None
    ean: Optional[str] = None
    product_id: Optional[str] = None
    variant_id: Optional[str] = None
    inventory_item_id: Optional[str] = None
    location_name: Optional[str] = None

    available: int = 0
    incoming: int = 0
    reserved: int = 0
    damaged: int = 0
    on_hand: int = 0

    price: Optional[Decimal] = None
    compare_at_price: Optional[Decimal] = None

    # Set by reconciliation when the EAN matches an internal product
    internal_product_id: Optional[int] = None

    @property
    def external_id(self) -> Optional[str]:
        """Variant id when present, else product id."""
        return self.variant_id or self.product_id

    @property
    def location_key(self) -> str:
        """Location as used in the identity key; absent and empty are the same bucket."""
        return self.location_name or ''


@dataclass
class UpsertResult:
    """Outcome of reconciling one fact."""
    existed: bool
    was_updated: bool
    # None when the fact had no secondary identifier to look up
    product_matched: Optional[bool] = None


@dataclass
class LogEntry:
    """One observation about a single item's outcome."""
    log_type: str
    identifier: str
    message: str
    detail: Optional[str] = None
    timestamp: datetime = field(default_factory=utcnow)


@dataclass
class SyncCounts:
    """Running totals for a sync run."""
    total_items: int = 0
    inserted: int = 0
    updated: int = 0
    failed: int = 0


@dataclass
class SyncSummary:
    """Final state of a sync run as returned to callers."""
    run_id: Optional[int]
    sync_type: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    status: str = SyncStatus.IN_PROGRESS
    message: Optional[str] = None
    counts: SyncCounts = field(default_factory=SyncCounts)

    def to_dict(self) -> dict:
        """Serialize for JSON responses."""
        return {
            'run_id': self.run_id,
            'sync_type': self.sync_type,
            'status': self.status,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'message': self.message,
            'total_items': self.counts.total_items,
            'inserted': self.counts.inserted,
            'updated': self.counts.updated,
            'failed': self.counts.failed,
        }


def item_identifier(fact: InventoryFact) -> str:
    """Best-effort identifier for log entries: SKU, then EAN, then product id."""
    return fact.sku or fact.ean or fact.product_id or UNKNOWN_IDENTIFIER
