"""
Sync Jobs Module
Background scheduling of sync runs: recurring cron jobs and one-off manual triggers.
"""

from typing import Dict
from uuid import uuid4

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from shopsync.config_manager import ConfigManager
from shopsync.dtos import SyncType
from shopsync.utils.logger import get_logger

logger = get_logger(__name__)

# Job id, config key, default crontab, sync type
RECURRING_JOBS = (
    ('shopify-full-inventory-sync', 'full_inventory_cron', '0 2 * * 0', SyncType.FULL_INVENTORY),
    ('shopify-daily-inventory-update', 'daily_inventory_cron', '0 12 * * *', SyncType.INCREMENTAL_INVENTORY),
    ('shopify-price-update', 'price_update_cron', '0 6 * * *', SyncType.PRICE_UPDATE),
)


def run_scheduled_sync(sync_type: str) -> None:
    """Job body: run one sync flavor and log the outcome."""
    logger.info(f"[{sync_type}] Sync job starting")
    try:
        from shopsync.sync_pipeline import run_sync
        summary = run_sync(sync_type)
        logger.info(f"[{sync_type}] Sync job finished: run {summary.run_id} {summary.status}")
    except Exception as e:
        logger.error(f"[{sync_type}] Sync job failed: {e}")


def enqueue_sync(scheduler: BackgroundScheduler, sync_type: str) -> str:
    """
    Queue one immediate run of a sync flavor.

    Args:
        scheduler: Running scheduler
        sync_type: One of SyncType.ALL

    Returns:
        Job id
    """
    if sync_type not in SyncType.ALL:
        raise ValueError(f"Unknown sync type: {sync_type}")

    job = scheduler.add_job(
        run_scheduled_sync,
        args=[sync_type],
        id=uuid4().hex,
        name=f"{sync_type} (manual)"
    )
    logger.info(f"[{sync_type}] Sync job queued with id {job.id}")
    return job.id


def create_scheduler(scheduler_config: Dict = None) -> BackgroundScheduler:
    """
    Create and configure the background scheduler.

    Args:
        scheduler_config: ``scheduler`` config section; read from ConfigManager when omitted

    Returns:
        Configured (not yet started) scheduler
    """
    if scheduler_config is None:
        scheduler_config = ConfigManager().get_scheduler_config()

    scheduler = BackgroundScheduler(timezone='UTC')

    if not scheduler_config.get('enabled', True):
        logger.info("Recurring sync jobs are disabled")
        return scheduler

    for job_id, config_key, default_cron, sync_type in RECURRING_JOBS:
        crontab = scheduler_config.get(config_key, default_cron)
        scheduler.add_job(
            run_scheduled_sync,
            CronTrigger.from_crontab(crontab, timezone='UTC'),
            args=[sync_type],
            id=job_id,
            name=sync_type,
            replace_existing=True
        )
        logger.info(f"Scheduled {sync_type} with cron '{crontab}'")

    return scheduler
