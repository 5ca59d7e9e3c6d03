"""
VulnSweep - Web Application Attack-Surface Scanner
Version: 1.0.0

Crawls a target site, replays every discovered parameter with XSS and SQL
injection payloads, checks forms for CSRF tokens and reports findings.

The Flask application here is the calling layer: it validates requests,
rate-limits clients and caches reports around the stateless scanner core
in `vulnsweep.scanner`.
"""

import os
import logging
from flask import Flask, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_talisman import Talisman

from vulnsweep.services.cache import ScanCache


def client_address() -> str:
    """Rate-limit key: first X-Forwarded-For hop, else the peer address."""
    forwarded = request.headers.get('X-Forwarded-For', '')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return get_remote_address()


# Initialize extensions
limiter = Limiter(key_func=client_address, default_limits=[])

logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
logger = logging.getLogger(__name__)


def create_app(config_name=None, scan_cache=None):
    """
    Application factory pattern for Flask app.

    Args:
        config_name: 'development', 'testing' or 'production'
            (defaults to $FLASK_ENV, then development)
        scan_cache: ScanCache to use instead of a fresh one
    """
    app = Flask(__name__)

    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    app.config.from_object(f'vulnsweep.config.{config_name.capitalize()}Config')

    logging.getLogger('vulnsweep').setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    if config_name == 'production':
        app.config['DEBUG'] = False
        app.config['TESTING'] = False

    limiter.init_app(app)

    app.extensions['scan_cache'] = scan_cache or ScanCache(ttl_seconds=app.config['SCAN_CACHE_TTL'])

    if config_name == 'production':
        Talisman(app,
                 force_https=True,
                 strict_transport_security=True,
                 strict_transport_security_max_age=31536000,
                 content_security_policy={'default-src': "'none'", 'frame-ancestors': "'none'"},
                 x_content_type_options=True,
                 referrer_policy='no-referrer'
                 )
    else:
        Talisman(app,
                 force_https=False,
                 strict_transport_security=False,
                 content_security_policy=None,
                 x_content_type_options=True
                 )

    from vulnsweep.api import api_bp
    app.register_blueprint(api_bp, url_prefix='/api')

    register_error_handlers(app)

    return app


def register_error_handlers(app):
    """Register JSON error handlers."""

    @app.errorhandler(400)
    def bad_request(error):
        return {'error': 'Bad Request', 'message': 'Invalid request parameters'}, 400

    @app.errorhandler(403)
    def forbidden(error):
        return {'error': 'Forbidden', 'message': 'Access denied'}, 403

    @app.errorhandler(404)
    def not_found(error):
        return {'error': 'Not Found', 'message': 'Resource not found'}, 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return {'error': 'Method Not Allowed', 'message': 'Method not supported for this endpoint'}, 405

    @app.errorhandler(429)
    def rate_limit_exceeded(error):
        logging.getLogger('security').warning(f"Rate limit exceeded for {client_address()}")
        limit = app.config.get('SCAN_RATE_LIMIT', '5 per minute')
        return {'error': f"Rate limit exceeded. Maximum {limit.replace(' per ', ' scans per ')}."}, 429

    @app.errorhandler(500)
    def internal_error(error):
        return {'error': 'Internal Server Error', 'message': 'An unexpected error occurred'}, 500
