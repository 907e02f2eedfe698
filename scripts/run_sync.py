#!/usr/bin/env python
"""
Run Sync Script
Command-line script for running one sync flavor.
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from shopsync.dtos import SyncStatus, SyncType
from shopsync.shopify_client import ShopifyClient
from shopsync.sync_pipeline import InventorySyncPipeline
from shopsync.utils.logger import setup_logging, get_logger

SYNC_TYPES = {
    'full': SyncType.FULL_INVENTORY,
    'incremental': SyncType.INCREMENTAL_INVENTORY,
    'prices': SyncType.PRICE_UPDATE,
}


def main():
    """Main entry point for sync script."""
    parser = argparse.ArgumentParser(description='Run Shopify inventory sync')
    parser.add_argument(
        'sync_type',
        choices=sorted(SYNC_TYPES),
        help='Sync flavor to run'
    )
    parser.add_argument(
        '--check',
        action='store_true',
        help='Only test the connection to every configured store'
    )

    args = parser.parse_args()

    setup_logging()
    logger = get_logger(__name__)

    try:
        pipeline = InventorySyncPipeline(client=ShopifyClient())

        if args.check:
            results = {store: pipeline.client.test_connection(store) for store in pipeline.stores}
            for store, ok in results.items():
                print(f"{store}: {'OK' if ok else 'FAILED'}")
            sys.exit(0 if all(results.values()) else 1)

        logger.info(f"Starting sync: {args.sync_type}")
        result = pipeline.run(SYNC_TYPES[args.sync_type])

        print(f"\n{'='*50}")
        print("Sync Run Complete")
        print(f"{'='*50}")
        print(f"Run ID: {result.run_id}")
        print(f"Type: {result.sync_type}")
        print(f"Status: {result.status}")
        print(f"Total Items: {result.counts.total_items}")
        print(f"Inserted: {result.counts.inserted}")
        print(f"Updated: {result.counts.updated}")
        print(f"Failed: {result.counts.failed}")
        print(f"Duration: {(result.completed_at - result.started_at).total_seconds():.2f}s")

        if result.message:
            print(f"Message: {result.message}")

        if result.status == SyncStatus.FAILED:
            sys.exit(1)

    except Exception as e:
        logger.error(f"Sync failed: {e}")
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
