"""
VulnSweep Configuration Module

All sensitive values are loaded from environment variables.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class BaseConfig:
    """Base configuration with secure defaults."""

    # Application
    APP_NAME = 'VulnSweep'
    APP_VERSION = '1.0.0'

    # When set, every API route except /health requires a matching X-API-Key
    API_KEY = os.environ.get('API_KEY')

    # CORS
    CORS_ALLOWED_ORIGIN = os.environ.get('CORS_ALLOWED_ORIGIN', '*')

    # Rate Limiting (sliding window per client address)
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL', 'memory://')
    RATELIMIT_STRATEGY = 'moving-window'
    RATELIMIT_HEADERS_ENABLED = True
    SCAN_RATE_LIMIT = '5 per minute'

    # Scan result cache, keyed by (targetUrl, depth)
    SCAN_CACHE_TTL = 300  # seconds

    # Scanner Configuration
    SCANNER_DEFAULT_DEPTH = 2
    SCANNER_MAX_DEPTH = 5
    SCANNER_DEFAULT_TIMEOUT_MS = 10000
    SCANNER_MAX_PAGES = 100
    SCANNER_CONCURRENT_REQUESTS = 10
    SCANNER_SCAN_TIMEOUT = 300  # seconds, whole scan
    SCANNER_MAX_RETRIES = 1
    SCANNER_VERIFY_SSL = True
    SCANNER_USER_AGENT = os.environ.get('SCANNER_USER_AGENT')
    SCANNER_MODULES = ['xss', 'sqli', 'csrf']

    LOG_LEVEL = 'INFO'


class DevelopmentConfig(BaseConfig):
    """Development configuration."""

    DEBUG = True
    TESTING = False

    LOG_LEVEL = 'DEBUG'


class TestingConfig(BaseConfig):
    """Testing configuration."""

    DEBUG = True
    TESTING = True

    API_KEY = None
    RATELIMIT_STORAGE_URI = 'memory://'

    # Faster scans for testing
    SCANNER_MAX_PAGES = 10
    SCANNER_SCAN_TIMEOUT = 30
    SCANNER_DEFAULT_TIMEOUT_MS = 5000


class ProductionConfig(BaseConfig):
    """Production configuration."""

    DEBUG = False
    TESTING = False

    SCANNER_VERIFY_SSL = True

    LOG_LEVEL = 'WARNING'


# Configuration dictionary for easy access
config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
