"""
VulnSweep REST API Routes

POST /api/scan runs one scan per request. Rate limiting, caching and API-key
checks live here; the scanner core stays stateless.
"""

import asyncio
import hmac
import logging
from datetime import datetime, timezone
from functools import wraps
from flask import request, jsonify, current_app, Response

from vulnsweep.api import api_bp
from vulnsweep import limiter
from vulnsweep.reports import generate_html_report
from vulnsweep.scanner.core.engine import ScanConfig, run_scan_request
from vulnsweep.scanner.core.validation import ScanRequest
from vulnsweep.scanner.exceptions import InputError, OrchestratorError

logger = logging.getLogger(__name__)

# Security logger
security_logger = logging.getLogger('security')

REPORT_FORMATS = ('json', 'html')


def async_route(f):
    """Decorator to run async functions in Flask routes."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            return loop.run_until_complete(f(*args, **kwargs))
        finally:
            loop.close()
    return wrapper


@api_bp.before_request
def check_api_key():
    """Require X-API-Key on everything but health checks when API_KEY is set."""
    expected = current_app.config.get('API_KEY')
    if not expected or request.method == 'OPTIONS' or request.endpoint == 'api.health_check':
        return None

    provided = request.headers.get('X-API-Key', '')
    if not hmac.compare_digest(provided.encode(), expected.encode()):
        security_logger.warning(f"Rejected API key from {request.remote_addr} on {request.path}")
        return jsonify({'error': 'Forbidden: Invalid API key'}), 403
    return None


@api_bp.after_request
def add_cors_headers(response):
    response.headers['Access-Control-Allow-Origin'] = current_app.config.get('CORS_ALLOWED_ORIGIN', '*')
    response.headers['Access-Control-Allow-Methods'] = 'GET, POST, OPTIONS'
    response.headers['Access-Control-Allow-Headers'] = 'Content-Type, Authorization, X-API-Key'
    response.headers['Access-Control-Max-Age'] = '86400'
    return response


# ==================== Health Check ====================

@api_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'ok',
        'service': current_app.config.get('APP_NAME', 'VulnSweep'),
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'version': current_app.config.get('APP_VERSION', '1.0.0')
    })


# ==================== Scan Endpoint ====================

def _render(report, report_format: str, from_cache: bool):
    if report_format == 'html':
        return Response(generate_html_report(report), mimetype='text/html')
    payload = report.to_dict()
    payload['fromCache'] = from_cache
    return jsonify(payload)


@api_bp.route('/scan', methods=['POST'])
@limiter.limit(lambda: current_app.config['SCAN_RATE_LIMIT'], methods=['POST'])
@async_route
async def scan():
    """
    Run a scan.

    Request body:
    {
        "targetUrl": "https://example.com",
        "depth": 2,
        "timeoutMs": 10000,
        "format": "json"
    }
    """
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({'error': 'Invalid JSON in request body'}), 400

    try:
        scan_request = ScanRequest.from_dict(data)
    except InputError as e:
        return jsonify({'error': str(e)}), 400

    max_depth = current_app.config['SCANNER_MAX_DEPTH']
    if scan_request.depth > max_depth:
        return jsonify({'error': f'depth must be at most {max_depth}'}), 400

    report_format = data.get('format', 'json')
    if report_format not in REPORT_FORMATS:
        return jsonify({'error': f"format must be one of: {', '.join(REPORT_FORMATS)}"}), 400

    cache = current_app.extensions['scan_cache']
    cached = cache.get(scan_request.target_url, scan_request.depth)
    if cached is not None:
        logger.info(f"Returning cached result for {scan_request.target_url}")
        return _render(cached, report_format, from_cache=True)

    cache.purge()
    logger.info(f"Starting scan for {scan_request.target_url} (depth {scan_request.depth})")

    try:
        report = await run_scan_request(
            {
                'targetUrl': scan_request.target_url,
                'depth': scan_request.depth,
                'timeoutMs': scan_request.timeout_ms,
            },
            config=ScanConfig.from_app_config(current_app.config)
        )
    except InputError as e:
        return jsonify({'error': str(e)}), 400
    except OrchestratorError as e:
        logger.error(f"Scan of {scan_request.target_url} failed: {e}")
        message = str(e)
        if not message.startswith('Scan failed'):
            message = f"Scan failed: {message}"
        return jsonify({'error': message}), 500

    cache.set(scan_request.target_url, scan_request.depth, report)
    return _render(report, report_format, from_cache=False)
