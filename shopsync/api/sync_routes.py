"""
Sync API Blueprint
Provides REST endpoints for triggering and monitoring sync runs.
"""

from flask import Blueprint, current_app, jsonify, request

from shopsync.dtos import SyncType
from shopsync.jobs import enqueue_sync
from shopsync.utils.logger import get_logger

logger = get_logger(__name__)

sync_bp = Blueprint('sync', __name__, url_prefix='/api/sync')


def _trigger(sync_type: str, description: str):
    """Queue a sync job and describe it."""
    try:
        scheduler = current_app.extensions['sync_scheduler']
        job_id = enqueue_sync(scheduler, sync_type)

        return jsonify({
            'success': True,
            'job_id': job_id,
            'sync_type': sync_type,
            'message': f"{description} started"
        })

    except Exception as e:
        logger.error(f"Failed to queue {sync_type}: {e}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500


@sync_bp.route('/full-inventory', methods=['POST'])
def trigger_full_inventory():
    """Queue a full inventory sync of all stores."""
    return _trigger(SyncType.FULL_INVENTORY, 'Full inventory sync')


@sync_bp.route('/daily-inventory', methods=['POST'])
def trigger_daily_inventory():
    """Queue an incremental inventory sync for the previous UTC day."""
    return _trigger(SyncType.INCREMENTAL_INVENTORY, 'Incremental inventory sync')


@sync_bp.route('/price-update', methods=['POST'])
def trigger_price_update():
    """Queue a price update of all stores."""
    return _trigger(SyncType.PRICE_UPDATE, 'Price update')


@sync_bp.route('/status', methods=['GET'])
def get_sync_status():
    """
    Get status of recent sync runs.

    Query params:
        limit: Number of runs to return (default 10)
    """
    try:
        limit = int(request.args.get('limit', 10))
        tracker = current_app.extensions['sync_tracker']

        return jsonify({
            'success': True,
            'runs': [run.to_dict() for run in tracker.recent_runs(limit)]
        })

    except Exception as e:
        logger.error(f"Failed to get sync status: {e}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500


@sync_bp.route('/status/<int:run_id>', methods=['GET'])
def get_sync_run(run_id: int):
    """Get details and log entries of one sync run."""
    try:
        tracker = current_app.extensions['sync_tracker']
        run = tracker.get_run(run_id)

        if not run:
            return jsonify({
                'success': False,
                'error': 'Run not found'
            }), 404

        return jsonify({
            'success': True,
            'run': run.to_dict(),
            'logs': tracker.get_logs(run_id)
        })

    except Exception as e:
        logger.error(f"Failed to get sync run {run_id}: {e}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500
