"""
GraphQL query definitions for Shopify inventory extraction.

All three queries page over ``products`` with the same cursor protocol;
they differ only in the filter and in which variant fields are requested.
"""

PRODUCTS_PAGE_SIZE = 250
VARIANTS_PAGE_SIZE = 100
INVENTORY_LEVELS_PAGE_SIZE = 10

_INVENTORY_VARIANT_FIELDS = """
                      id
                      sku
                      barcode
                      price
                      compareAtPrice
                      inventoryItem {
                        id
                        inventoryLevels(first: %(levels)d) {
                          edges {
                            node {
                              location {
                                id
                                name
                              }
                              quantities(names: ["available", "incoming", "reserved", "damaged", "on_hand"]) {
                                name
                                quantity
                              }
                            }
                          }
                        }
                      }
""" % {'levels': INVENTORY_LEVELS_PAGE_SIZE}

FULL_INVENTORY_QUERY = """
query FullInventory($cursor: String) {
  products(first: %(products)d, after: $cursor) {
    pageInfo {
      hasNextPage
      endCursor
    }
    edges {
      node {
        id
        title
        variants(first: %(variants)d) {
          edges {
            node {%(variant_fields)s            }
          }
        }
      }
    }
  }
}
""" % {
    'products': PRODUCTS_PAGE_SIZE,
    'variants': VARIANTS_PAGE_SIZE,
    'variant_fields': _INVENTORY_VARIANT_FIELDS,
}

INCREMENTAL_INVENTORY_QUERY = """
query IncrementalInventory($cursor: String, $query: String) {
  products(first: %(products)d, after: $cursor, query: $query) {
    pageInfo {
      hasNextPage
      endCursor
    }
    edges {
      node {
        id
        title
        updatedAt
        variants(first: %(variants)d) {
          edges {
            node {%(variant_fields)s            }
          }
        }
      }
    }
  }
}
""" % {
    'products': PRODUCTS_PAGE_SIZE,
    'variants': VARIANTS_PAGE_SIZE,
    'variant_fields': _INVENTORY_VARIANT_FIELDS,
}

PRICE_QUERY = """
query Prices($cursor: String) {
  products(first: %(products)d, after: $cursor) {
    pageInfo {
      hasNextPage
      endCursor
    }
    edges {
      node {
        id
        variants(first: %(variants)d) {
          edges {
            node {
              id
              sku
              barcode
              price
              compareAtPrice
            }
          }
        }
      }
    }
  }
}
""" % {
    'products': PRODUCTS_PAGE_SIZE,
    'variants': VARIANTS_PAGE_SIZE,
}

CONNECTION_TEST_QUERY = """
query ConnectionTest {
  shop {
    name
  }
}
"""
