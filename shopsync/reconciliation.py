"""
Inventory Reconciliation Module
Links extracted facts to internal products and upserts them into the inventory table.
"""

from typing import Dict, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from shopsync.database.connection import SessionScope, get_session
from shopsync.database.models import EcommerceInventory, Product
from shopsync.dtos import InventoryFact, UpsertResult, utcnow
from shopsync.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_SYSTEM_ACTOR = 'SystemSync'

IDENTITY_COLUMNS = ('platform', 'external_id', 'location')

_DIALECT_INSERTS = {
    'postgresql': pg_insert,
    'sqlite': sqlite_insert,
}


def identity_key(fact: InventoryFact, platform: str) -> Tuple[str, Optional[str], str]:
    """
    Get the identity key of a fact.

    Args:
        fact: Extracted fact
        platform: Platform label, e.g. ``'Shopify'``

    Returns:
        (platform, variant id or product id, location or '')
    """
    return platform, fact.external_id, fact.location_key


def find_product_id(session: Session, secondary_id: str) -> Optional[int]:
    """
    Look up an internal product by EAN or barcode.

    Returns:
        Product id, or None when no product matches
    """
    row = (
        session.query(Product.id)
        .filter(or_(Product.ean == secondary_id, Product.barcode == secondary_id))
        .order_by(Product.id)
        .first()
    )
    return row[0] if row else None


class InventoryRepository:
    """Insert-or-update of inventory facts keyed by (platform, external id, location)."""

    def __init__(self, session_scope: SessionScope = None, system_actor: str = DEFAULT_SYSTEM_ACTOR):
        """
        Initialize repository.

        Args:
            session_scope: Transactional session context manager factory
            system_actor: Value written to the created_by/modified_by columns
        """
        self.session_scope = session_scope or get_session
        self.system_actor = system_actor

    def upsert_inventory(self, fact: InventoryFact, platform: str) -> UpsertResult:
        """
        Persist one fact.

        Resolves the internal product by EAN (stamping ``fact.internal_product_id``
        on a match), probes the identity key, then writes with a single
        ``INSERT ... ON CONFLICT DO UPDATE``.

        Args:
            fact: Extracted fact
            platform: Platform label

        Returns:
            UpsertResult with ``existed``, ``was_updated`` and ``product_matched``

        Raises:
            ValueError: If the fact has neither a variant nor a product id
            SQLAlchemyError: On storage failure
        """
        if not fact.external_id:
            raise ValueError("Fact has neither a variant id nor a product id")

        try:
            with self.session_scope() as session:
                product_matched = None
                if fact.ean and fact.ean.strip():
                    product_id = find_product_id(session, fact.ean)
                    product_matched = product_id is not None
                    if product_matched:
                        fact.internal_product_id = product_id
                    else:
                        logger.warning(
                            f"No internal product for EAN {fact.ean} (SKU {fact.sku})"
                        )

                existed = self._find_existing_id(session, fact, platform) is not None

                stmt = self._build_upsert(session, self._row_values(fact, platform))
                result = session.execute(stmt)

                return UpsertResult(
                    existed=existed,
                    was_updated=result.rowcount != 0,
                    product_matched=product_matched
                )
        except Exception as e:
            logger.error(f"Upsert failed for SKU {fact.sku}, EAN {fact.ean}: {e}")
            raise

    def _find_existing_id(self, session: Session, fact: InventoryFact, platform: str) -> Optional[int]:
        """Get the row id for the fact's identity key, if any."""
        platform, external_id, location = identity_key(fact, platform)
        row = (
            session.query(EcommerceInventory.id)
            .filter(
                EcommerceInventory.platform == platform,
                EcommerceInventory.external_id == external_id,
                EcommerceInventory.location == location
            )
            .first()
        )
        return row[0] if row else None

    def _row_values(self, fact: InventoryFact, platform: str) -> Dict:
        """Map a fact onto inventory columns."""
        platform, external_id, location = identity_key(fact, platform)
        return {
            'platform': platform,
            'external_id': external_id,
            'location': location,
            'store_name': fact.store_name,
            'sku': fact.sku,
            'ean': fact.ean,
            'external_product_id': fact.product_id,
            'external_variant_id': fact.variant_id,
            'inventory_item_id': fact.inventory_item_id,
            'product_id': fact.internal_product_id,
            'available': fact.available,
            'incoming': fact.incoming,
            'reserved': fact.reserved,
            'damaged': fact.damaged,
            'on_hand': fact.on_hand,
            'price': fact.price,
            'compare_at_price': fact.compare_at_price,
        }

    def _build_upsert(self, session: Session, values: Dict):
        """Build the dialect-native insert-or-update statement."""
        dialect = session.get_bind().dialect.name
        insert = _DIALECT_INSERTS.get(dialect)
        if insert is None:
            raise NotImplementedError(f"Upsert not supported for dialect {dialect}")

        now = utcnow()
        stmt = insert(EcommerceInventory).values(
            **values,
            created_at=now,
            created_by=self.system_actor
        )

        set_ = {
            column: stmt.excluded[column]
            for column in values
            if column not in IDENTITY_COLUMNS
        }
        set_['modified_at'] = now
        set_['modified_by'] = self.system_actor

        return stmt.on_conflict_do_update(
            index_elements=list(IDENTITY_COLUMNS),
            set_=set_
        )
