"""
Unit Tests for the Fact Mapper
Tests mapping of Shopify GraphQL fragments into inventory facts.
"""

import unittest
from decimal import Decimal

from shopsync.fact_mapper import (
    extract_id_from_gid,
    map_inventory_fact,
    map_price_fact,
    parse_quantities
)


PRODUCT = {'id': 'gid://shopify/Product/1001', 'title': 'Sneaker'}

VARIANT = {
    'id': 'gid://shopify/ProductVariant/2002',
    'sku': 'SNK-42',
    'barcode': '7501234567890',
    'price': '1299.00',
    'compareAtPrice': '1499.50',
    'inventoryItem': {'id': 'gid://shopify/InventoryItem/3003'}
}


def make_level(location='Warehouse', quantities=None):
    return {
        'location': {'id': 'gid://shopify/Location/9', 'name': location},
        'quantities': quantities or []
    }


class TestExtractIdFromGid(unittest.TestCase):
    """Test global id normalization."""

    def test_trailing_segment(self):
        self.assertEqual(extract_id_from_gid('gid://shopify/ProductVariant/2002'), '2002')

    def test_plain_id_is_kept(self):
        self.assertEqual(extract_id_from_gid('2002'), '2002')

    def test_empty(self):
        self.assertIsNone(extract_id_from_gid(None))
        self.assertIsNone(extract_id_from_gid(''))


class TestParseQuantities(unittest.TestCase):
    """Test quantity breakdown parsing."""

    def test_known_names(self):
        level = make_level(quantities=[
            {'name': 'available', 'quantity': 5},
            {'name': 'incoming', 'quantity': 2},
            {'name': 'reserved', 'quantity': 1},
            {'name': 'damaged', 'quantity': 3},
            {'name': 'on_hand', 'quantity': 9},
        ])
        self.assertEqual(parse_quantities(level), {
            'available': 5, 'incoming': 2, 'reserved': 1, 'damaged': 3, 'on_hand': 9
        })

    def test_unknown_names_ignored(self):
        level = make_level(quantities=[{'name': 'committed', 'quantity': 4}])
        self.assertEqual(parse_quantities(level), {})

    def test_last_write_wins(self):
        level = make_level(quantities=[
            {'name': 'available', 'quantity': 5},
            {'name': 'available', 'quantity': 7},
        ])
        self.assertEqual(parse_quantities(level)['available'], 7)

    def test_names_are_case_insensitive(self):
        level = make_level(quantities=[{'name': 'On_Hand', 'quantity': 4}])
        self.assertEqual(parse_quantities(level), {'on_hand': 4})

    def test_missing_quantity_is_zero(self):
        level = make_level(quantities=[{'name': 'available', 'quantity': None}])
        self.assertEqual(parse_quantities(level)['available'], 0)


class TestMapInventoryFact(unittest.TestCase):
    """Test building full/incremental facts."""

    def test_maps_all_fields(self):
        level = make_level(quantities=[
            {'name': 'available', 'quantity': 5},
            {'name': 'on_hand', 'quantity': 6},
        ])

        fact = map_inventory_fact('Main', PRODUCT, VARIANT, level)

        self.assertEqual(fact.store_name, 'Main')
        self.assertEqual(fact.product_id, '1001')
        self.assertEqual(fact.variant_id, '2002')
        self.assertEqual(fact.inventory_item_id, '3003')
        self.assertEqual(fact.sku, 'SNK-42')
        self.assertEqual(fact.ean, '7501234567890')
        self.assertEqual(fact.location_name, 'Warehouse')
        self.assertEqual(fact.available, 5)
        self.assertEqual(fact.on_hand, 6)
        self.assertEqual(fact.price, Decimal('1299.00'))
        self.assertEqual(fact.compare_at_price, Decimal('1499.50'))
        self.assertIsNone(fact.internal_product_id)

    def test_absent_quantities_default_to_zero(self):
        fact = map_inventory_fact('Main', PRODUCT, VARIANT, make_level())

        self.assertEqual(
            (fact.available, fact.incoming, fact.reserved, fact.damaged, fact.on_hand),
            (0, 0, 0, 0, 0)
        )

    def test_missing_compare_at_price(self):
        variant = dict(VARIANT, compareAtPrice=None)
        fact = map_inventory_fact('Main', PRODUCT, variant, make_level())
        self.assertIsNone(fact.compare_at_price)


class TestMapPriceFact(unittest.TestCase):
    """Test building price-only facts."""

    def test_no_location_or_quantities(self):
        fact = map_price_fact('Main', PRODUCT, VARIANT)

        self.assertIsNone(fact.location_name)
        self.assertIsNone(fact.inventory_item_id)
        self.assertEqual(fact.available, 0)
        self.assertEqual(fact.price, Decimal('1299.00'))
        self.assertEqual(fact.external_id, '2002')
        self.assertEqual(fact.location_key, '')

    def test_empty_barcode_is_none(self):
        fact = map_price_fact('Main', PRODUCT, dict(VARIANT, barcode=''))
        self.assertIsNone(fact.ean)


if __name__ == '__main__':
    unittest.main()
