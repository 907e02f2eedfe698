"""
Flask Application Factory
Control plane for triggering and monitoring inventory sync runs.
"""

import os
from datetime import datetime

import pytz
from apscheduler.schedulers.background import BackgroundScheduler
from flask import Flask, jsonify
from flask_cors import CORS

from shopsync.database.connection import get_db
from shopsync.jobs import create_scheduler
from shopsync.run_tracker import SyncRunTracker
from shopsync.utils.logger import get_logger, setup_logging


def create_app(scheduler: BackgroundScheduler = None, tracker: SyncRunTracker = None) -> Flask:
    """
    Application factory for Flask app.

    Args:
        scheduler: Scheduler that runs queued and recurring sync jobs
        tracker: Run tracker backing the status endpoints

    Returns:
        Configured Flask application
    """
    setup_logging()
    logger = get_logger(__name__)

    app = Flask(__name__)
    app.config['JSON_SORT_KEYS'] = False

    CORS(app)

    app.extensions['sync_scheduler'] = scheduler or create_scheduler()
    app.extensions['sync_tracker'] = tracker or SyncRunTracker()

    from shopsync.api.sync_routes import sync_bp
    app.register_blueprint(sync_bp)

    @app.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint."""
        db_healthy = get_db().check_connection()
        scheduler_running = app.extensions['sync_scheduler'].running

        return jsonify({
            'status': 'healthy' if db_healthy and scheduler_running else 'degraded',
            'timestamp': datetime.now(pytz.UTC).isoformat(),
            'database': 'connected' if db_healthy else 'disconnected',
            'scheduler': 'running' if scheduler_running else 'stopped'
        })

    @app.route('/', methods=['GET'])
    def root():
        """Root endpoint with API info."""
        return jsonify({
            'name': 'Shopify Inventory Sync API',
            'version': '1.0.0',
            'endpoints': {
                '/health': 'Health check',
                '/api/sync/full-inventory': 'Queue full inventory sync (POST)',
                '/api/sync/daily-inventory': 'Queue incremental sync of the previous UTC day (POST)',
                '/api/sync/price-update': 'Queue price update (POST)',
                '/api/sync/status': 'Recent sync runs (GET)',
                '/api/sync/status/<run_id>': 'Sync run details and logs (GET)'
            }
        })

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'success': False,
            'error': 'Not found'
        }), 404

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify({
            'success': False,
            'error': 'Internal server error'
        }), 500

    logger.info("Flask application created")

    return app


if __name__ == '__main__':
    app = create_app()
    scheduler = app.extensions['sync_scheduler']
    scheduler.start()

    try:
        app.run(
            host='0.0.0.0',
            port=int(os.getenv('FLASK_PORT', 6922)),
            debug=os.getenv('FLASK_DEBUG', 'false').lower() == 'true',
            use_reloader=False
        )
    except (KeyboardInterrupt, SystemExit):
        scheduler.shutdown()
