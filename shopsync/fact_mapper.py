"""
Fact Mapper Module
Turns product/variant/inventory-level fragments from the Shopify GraphQL API
into flat InventoryFact records. No I/O happens here.
"""

from typing import Dict, Optional

from shopsync.dtos import InventoryFact
from shopsync.utils.helpers import parse_decimal, parse_quantity, safe_get


# Quantity name -> InventoryFact attribute
QUANTITY_FIELDS = {
    'available': 'available',
    'incoming': 'incoming',
    'reserved': 'reserved',
    'damaged': 'damaged',
    'on_hand': 'on_hand',
}


def extract_id_from_gid(gid: Optional[str]) -> Optional[str]:
    """
    Extract the trailing id segment from a Shopify global id.

    Args:
        gid: Global id such as ``gid://shopify/ProductVariant/12345``

    Returns:
        The segment after the last ``/`` (``'12345'``), or None when empty
    """
    if not gid:
        return None
    return str(gid).rsplit('/', 1)[-1]


def parse_quantities(level: Optional[Dict]) -> Dict[str, int]:
    """
    Collect named quantities from an inventory level fragment.

    Unknown names are ignored and a repeated name overwrites the earlier value.

    Args:
        level: Inventory level node with a ``quantities`` list

    Returns:
        Mapping of InventoryFact attribute name to quantity
    """
    quantities = {}

    for entry in safe_get(level, 'quantities', default=[]) or []:
        name = (entry.get('name') or '').lower()
        attribute = QUANTITY_FIELDS.get(name)
        if attribute:
            quantities[attribute] = parse_quantity(entry.get('quantity'))

    return quantities


def map_price_fact(store_name: str, product: Dict, variant: Dict) -> InventoryFact:
    """
    Build a price-only fact for one variant.

    Args:
        store_name: Store the data came from
        product: Product node
        variant: Variant node

    Returns:
        InventoryFact without location or quantities
    """
    return InventoryFact(
        store_name=store_name,
        sku=variant.get('sku') or None,
        ean=variant.get('barcode') or None,
        product_id=extract_id_from_gid(product.get('id')),
        variant_id=extract_id_from_gid(variant.get('id')),
        price=parse_decimal(variant.get('price')),
        compare_at_price=parse_decimal(variant.get('compareAtPrice')),
    )


def map_inventory_fact(
    store_name: str,
    product: Dict,
    variant: Dict,
    level: Dict
) -> InventoryFact:
    """
    Build an inventory fact for one variant at one location.

    Args:
        store_name: Store the data came from
        product: Product node
        variant: Variant node (with ``inventoryItem``)
        level: Inventory level node (with ``location`` and ``quantities``)

    Returns:
        InventoryFact with quantity breakdown and prices
    """
    fact = map_price_fact(store_name, product, variant)
    fact.inventory_item_id = extract_id_from_gid(safe_get(variant, 'inventoryItem', 'id'))
    fact.location_name = safe_get(level, 'location', 'name')

    for attribute, quantity in parse_quantities(level).items():
        setattr(fact, attribute, quantity)

    return fact
