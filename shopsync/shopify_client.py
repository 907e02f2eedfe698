"""
Shopify GraphQL API Client Module
Handles all communication with the Shopify Admin GraphQL API.
"""

import threading
import time
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from shopsync.config_manager import ConfigManager, resolve_store_settings
from shopsync.dtos import InventoryFact, SyncType
from shopsync.fact_mapper import map_inventory_fact, map_price_fact
from shopsync.graphql_queries import (
    CONNECTION_TEST_QUERY, FULL_INVENTORY_QUERY, INCREMENTAL_INVENTORY_QUERY, PRICE_QUERY
)
from shopsync.utils.helpers import previous_utc_day, safe_get
from shopsync.utils.logger import get_logger

logger = get_logger(__name__)

RETRYABLE_STATUS_CODES = [429, 500, 502, 503, 504]


class ShopifyAPIError(Exception):
    """Extraction failed for a store; raised once retries are exhausted or on a hard error."""

    def __init__(self, message: str, status_code: int = None, response: dict = None):
        self.message = message
        self.status_code = status_code
        self.response = response
        super().__init__(self.message)


class GraphQLError(ShopifyAPIError):
    """A successful HTTP response carrying a GraphQL ``errors`` list."""

    def __init__(self, messages: List[str], status_code: int = None, response: dict = None):
        self.messages = messages
        super().__init__(f"GraphQL errors: {', '.join(messages)}", status_code, response)


class ShopifyConfigError(ShopifyAPIError):
    """Store has no base URL or access token configured."""


class DoublingRetry(Retry):
    """Retry that waits ``backoff_factor`` before the first retry and doubles it after."""

    def get_backoff_time(self) -> float:
        backoff = super().get_backoff_time()
        if backoff <= 0 and self.history:
            return self.backoff_factor
        return backoff


class ShopifyClient:
    """
    Shopify GraphQL client with cursor pagination, retry with backoff and
    inter-page pacing.
    """

    def __init__(self, shopify_config: Dict = None):
        """
        Initialize Shopify client.

        Args:
            shopify_config: ``shopify`` config section; read from ConfigManager when omitted
        """
        if shopify_config is None:
            shopify_config = ConfigManager().get_shopify_config()

        self.config = shopify_config
        self.timeout = shopify_config.get('timeout', 60)

        # Rate limiting
        self.page_delay = shopify_config.get('page_delay', 0.25)
        self.max_retries = max(int(shopify_config.get('max_retries', 3)), 1)
        self.retry_delay = shopify_config.get('retry_delay', 2)

        self._session = self._create_session()

        logger.info("Shopify client initialized")

    def _create_session(self) -> requests.Session:
        """Create requests session with retry logic."""
        session = requests.Session()

        session.headers.update({
            'Accept': 'application/json',
            'Content-Type': 'application/json'
        })

        # max_retries counts attempts, Retry.total counts retries after the first
        retry_strategy = DoublingRetry(
            total=self.max_retries - 1,
            backoff_factor=self.retry_delay,
            status_forcelist=RETRYABLE_STATUS_CODES,
            allowed_methods=['POST'],
            raise_on_status=False
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount('https://', adapter)
        session.mount('http://', adapter)

        return session

    def _store_endpoint(self, store_name: str) -> Tuple[str, str]:
        """
        Resolve GraphQL endpoint and access token for a store.

        Raises:
            ShopifyConfigError: If the store has no base URL or token
        """
        settings = resolve_store_settings(self.config, store_name)

        if not settings['base_url']:
            raise ShopifyConfigError(f"Shopify base_url not configured for store '{store_name}'")
        if not settings['access_token']:
            raise ShopifyConfigError(f"Shopify access_token not configured for store '{store_name}'")

        url = urljoin(settings['base_url'].rstrip('/') + '/', 'graphql.json')
        return url, settings['access_token']

    def _post(self, url: str, access_token: str, payload: Dict) -> Dict:
        """
        Make one GraphQL POST. Transient failures are retried by the session adapter.

        Returns:
            Response JSON

        Raises:
            GraphQLError: If the response carries an errors list
            ShopifyAPIError: On any other failure
        """
        try:
            response = self._session.post(
                url,
                json=payload,
                headers={'X-Shopify-Access-Token': access_token},
                timeout=self.timeout
            )
        except (
            requests.exceptions.ConnectionError,
            requests.exceptions.Timeout,
            requests.exceptions.RetryError
        ) as e:
            raise ShopifyAPIError(f"Request failed after {self.max_retries} attempts: {e}")
        except requests.exceptions.RequestException as e:
            raise ShopifyAPIError(f"Request failed: {e}")

        if response.status_code in RETRYABLE_STATUS_CODES:
            raise ShopifyAPIError(
                f"Request failed after {self.max_retries} attempts: HTTP {response.status_code}",
                response.status_code
            )
        elif response.status_code == 401:
            raise ShopifyAPIError("Authentication failed. Check the access token.", 401)
        elif response.status_code == 403:
            raise ShopifyAPIError("Access forbidden. Check app scopes.", 403)
        elif response.status_code == 404:
            raise ShopifyAPIError(f"GraphQL endpoint not found: {url}", 404)
        elif response.status_code >= 400:
            raise ShopifyAPIError(f"API error: {response.text}", response.status_code)

        try:
            body = response.json()
        except ValueError:
            raise ShopifyAPIError("Invalid JSON in Shopify response", response.status_code)

        if not isinstance(body, dict):
            raise ShopifyAPIError("Unexpected Shopify response", response.status_code)

        errors = body.get('errors')
        if errors:
            if isinstance(errors, list):
                messages = [
                    (e.get('message') if isinstance(e, dict) else None) or str(e)
                    for e in errors
                ]
            else:
                messages = [str(errors)]
            raise GraphQLError(messages, response.status_code, body)

        return body

    def execute_graphql(self, store_name: str, query: str, variables: Dict = None) -> Dict:
        """
        Execute a GraphQL query against a store.

        Args:
            store_name: Store to query
            query: GraphQL document
            variables: Query variables

        Returns:
            The ``data`` object of the response

        Raises:
            ShopifyAPIError: If the request fails after retries or hits a hard error
        """
        url, access_token = self._store_endpoint(store_name)
        payload = {'query': query, 'variables': variables}

        try:
            body = self._post(url, access_token, payload)
        except ShopifyAPIError as e:
            logger.error(f"Shopify request for {store_name} failed: {e.message}")
            raise

        return body.get('data') or {}

    def _paginate(
        self,
        store_name: str,
        query: str,
        extract: Callable[[str, Dict], List[InventoryFact]],
        variables: Dict = None,
        cancel_event: Optional[threading.Event] = None,
        label: str = 'products'
    ) -> List[InventoryFact]:
        """
        Page through ``products`` and flatten every page into facts.

        Args:
            store_name: Store to query
            query: GraphQL document taking ``$cursor``
            extract: Turns one product node into facts
            variables: Extra variables sent with every page
            cancel_event: Checked between pages; when set, stops and returns what was collected
            label: Name used in log lines

        Returns:
            Facts in page order
        """
        results: List[InventoryFact] = []
        cursor = None
        page = 0

        while True:
            page_variables = dict(variables or {})
            if cursor:
                page_variables['cursor'] = cursor

            data = self.execute_graphql(store_name, query, page_variables or None)
            page += 1

            products = data.get('products') or {}
            for edge in products.get('edges') or []:
                results.extend(extract(store_name, edge.get('node') or {}))

            page_info = products.get('pageInfo') or {}
            has_next_page = bool(page_info.get('hasNextPage'))
            cursor = page_info.get('endCursor')

            logger.info(f"[{label}] Page {page}: {len(results)} items so far for {store_name}")

            # Pace requests to stay under the API throughput ceiling
            time.sleep(self.page_delay)

            if not has_next_page:
                break
            if not cursor:
                logger.warning(f"[{label}] hasNextPage without endCursor for {store_name}; stopping")
                break
            if cancel_event is not None and cancel_event.is_set():
                logger.warning(f"[{label}] Cancelled after page {page} for {store_name}")
                break

        return results

    # ========================================
    # Inventory Methods
    # ========================================

    def fetch_full_inventory(
        self,
        store_name: str,
        cancel_event: Optional[threading.Event] = None
    ) -> List[InventoryFact]:
        """Fetch one fact per variant and location for every product."""
        logger.info(f"[FullInventory] Fetching inventory for {store_name}")
        facts = self._paginate(
            store_name,
            FULL_INVENTORY_QUERY,
            inventory_facts_from_product,
            cancel_event=cancel_event,
            label='FullInventory'
        )
        logger.info(f"[FullInventory] Total items extracted: {len(facts)} for {store_name}")
        return facts

    def fetch_incremental_inventory(
        self,
        store_name: str,
        window: Tuple[datetime, datetime] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> List[InventoryFact]:
        """
        Fetch inventory for products updated since the start of the window.

        Args:
            store_name: Store to query
            window: (start, end) in UTC; defaults to the previous UTC day
            cancel_event: Advisory cancellation signal

        Returns:
            Facts for products updated on or after the window start
        """
        if window is None:
            window = previous_utc_day()
        start, end = window

        query_filter = f"updated_at:>={start.strftime('%Y-%m-%d')}"
        logger.info(
            f"[IncrementalInventory] Fetching inventory changed between "
            f"{start.isoformat()} and {end.isoformat()} for {store_name}"
        )

        facts = self._paginate(
            store_name,
            INCREMENTAL_INVENTORY_QUERY,
            inventory_facts_from_product,
            variables={'query': query_filter},
            cancel_event=cancel_event,
            label='IncrementalInventory'
        )
        logger.info(f"[IncrementalInventory] Total items updated: {len(facts)} for {store_name}")
        return facts

    def fetch_prices(
        self,
        store_name: str,
        cancel_event: Optional[threading.Event] = None
    ) -> List[InventoryFact]:
        """Fetch one price-only fact per variant."""
        logger.info(f"[PriceUpdate] Fetching prices for {store_name}")
        facts = self._paginate(
            store_name,
            PRICE_QUERY,
            price_facts_from_product,
            cancel_event=cancel_event,
            label='PriceUpdate'
        )
        logger.info(f"[PriceUpdate] Total prices extracted: {len(facts)} for {store_name}")
        return facts

    def fetch_inventory(
        self,
        store_name: str,
        sync_type: str,
        window: Tuple[datetime, datetime] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> List[InventoryFact]:
        """
        Fetch the complete fact set for one store and one sync flavor.

        Args:
            store_name: Store to query
            sync_type: One of SyncType.ALL
            window: Time window for incremental syncs
            cancel_event: Advisory cancellation signal

        Returns:
            Facts in page order
        """
        if sync_type == SyncType.FULL_INVENTORY:
            return self.fetch_full_inventory(store_name, cancel_event=cancel_event)
        elif sync_type == SyncType.INCREMENTAL_INVENTORY:
            return self.fetch_incremental_inventory(store_name, window=window, cancel_event=cancel_event)
        elif sync_type == SyncType.PRICE_UPDATE:
            return self.fetch_prices(store_name, cancel_event=cancel_event)

        raise ValueError(f"Unknown sync type: {sync_type}")

    # ========================================
    # Utility Methods
    # ========================================

    def test_connection(self, store_name: str) -> bool:
        """Test connection to a store's GraphQL API."""
        try:
            data = self.execute_graphql(store_name, CONNECTION_TEST_QUERY)
            logger.info(f"Shopify connection test successful for {safe_get(data, 'shop', 'name', default=store_name)}")
            return True
        except ShopifyAPIError as e:
            logger.error(f"Shopify connection test failed for {store_name}: {e.message}")
            return False


def inventory_facts_from_product(store_name: str, product: Dict) -> List[InventoryFact]:
    """One fact per (variant, location) pair of a product node."""
    facts = []
    for variant_edge in safe_get(product, 'variants', 'edges', default=[]):
        variant = variant_edge.get('node') or {}
        levels = safe_get(variant, 'inventoryItem', 'inventoryLevels', 'edges', default=[])
        for level_edge in levels:
            facts.append(map_inventory_fact(store_name, product, variant, level_edge.get('node') or {}))
    return facts


def price_facts_from_product(store_name: str, product: Dict) -> List[InventoryFact]:
    """One price-only fact per variant of a product node."""
    return [
        map_price_fact(store_name, product, variant_edge.get('node') or {})
        for variant_edge in safe_get(product, 'variants', 'edges', default=[])
    ]


# Convenience function
def get_shopify_client() -> ShopifyClient:
    """Get Shopify client instance."""
    return ShopifyClient()
