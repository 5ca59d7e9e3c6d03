"""
VulnSweep REST API

Provides programmatic access to the scanner.
"""

from flask import Blueprint

api_bp = Blueprint('api', __name__)

from vulnsweep.api import routes
