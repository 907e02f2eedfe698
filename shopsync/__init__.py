"""
Shopify Inventory Sync
Extracts inventory and prices from Shopify and reconciles them into the internal database.
"""

__version__ = '1.0.0'
