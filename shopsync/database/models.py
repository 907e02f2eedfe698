"""
SQLAlchemy ORM Models
Defines the internal product catalog, the e-commerce inventory table and sync run tracking.
"""

from sqlalchemy import (
    Column, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship

from shopsync.dtos import SyncStatus, utcnow

Base = declarative_base()

# Bound on every string column of the run/log tables
LOG_FIELD_MAX_LENGTH = 50


# ============================================
# INTERNAL CATALOG
# ============================================

class Product(Base):
    """Internal product record, matched to external data by EAN or barcode."""
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True)
    code = Column(String(100))
    name = Column(String(255))
    ean = Column(String(50), index=True)
    barcode = Column(String(50), index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


# ============================================
# E-COMMERCE INVENTORY
# ============================================

class EcommerceInventory(Base):
    """Stock and price of one external variant at one location."""
    __tablename__ = 'ecommerce_inventory'

    id = Column(Integer, primary_key=True)
    platform = Column(String(50), nullable=False)
    external_id = Column(String(100), nullable=False)  # Variant id, else product id
    location = Column(String(255), nullable=False, default='')  # '' when absent

    store_name = Column(String(100))
    sku = Column(String(255))
    ean = Column(String(50))
    external_product_id = Column(String(100))
    external_variant_id = Column(String(100))
    inventory_item_id = Column(String(100))
    product_id = Column(Integer, ForeignKey('products.id', ondelete='SET NULL'))

    available = Column(Integer, nullable=False, default=0)
    incoming = Column(Integer, nullable=False, default=0)
    reserved = Column(Integer, nullable=False, default=0)
    damaged = Column(Integer, nullable=False, default=0)
    on_hand = Column(Integer, nullable=False, default=0)

    price = Column(Numeric(12, 2))
    compare_at_price = Column(Numeric(12, 2))

    created_at = Column(DateTime)
    created_by = Column(String(50))
    modified_at = Column(DateTime)
    modified_by = Column(String(50))

    __table_args__ = (
        UniqueConstraint('platform', 'external_id', 'location', name='uq_inventory_identity'),
        Index('idx_inventory_product', 'product_id'),
    )

    product = relationship("Product")


# ============================================
# SYNC TRACKING
# ============================================

class SyncRun(Base):
    """One execution of one sync flavor across all stores."""
    __tablename__ = 'sync_runs'

    id = Column(Integer, primary_key=True)
    sync_type = Column(String(50), nullable=False)  # FullInventory, IncrementalInventory, PriceUpdate
    started_at = Column(DateTime, nullable=False, default=utcnow)
    completed_at = Column(DateTime)
    status = Column(String(50), nullable=False, default=SyncStatus.IN_PROGRESS)
    message = Column(String(LOG_FIELD_MAX_LENGTH))
    total_items = Column(Integer, nullable=False, default=0)
    inserted = Column(Integer, nullable=False, default=0)
    updated = Column(Integer, nullable=False, default=0)
    failed = Column(Integer, nullable=False, default=0)

    logs = relationship("SyncLog", back_populates="run", cascade="all, delete-orphan")


class SyncLog(Base):
    """Outcome of one item (or one run-level event) within a sync run."""
    __tablename__ = 'sync_logs'

    id = Column(Integer, primary_key=True)
    run_id = Column(Integer, ForeignKey('sync_runs.id', ondelete='CASCADE'), nullable=False)
    logged_at = Column(DateTime, nullable=False, default=utcnow)
    log_type = Column(String(LOG_FIELD_MAX_LENGTH), nullable=False)  # Success, Error, Warning
    identifier = Column(String(LOG_FIELD_MAX_LENGTH))
    message = Column(String(LOG_FIELD_MAX_LENGTH))
    detail = Column(String(LOG_FIELD_MAX_LENGTH))

    __table_args__ = (
        Index('idx_sync_logs_run', 'run_id'),
    )

    run = relationship("SyncRun", back_populates="logs")
