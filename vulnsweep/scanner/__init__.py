"""
VulnSweep Scanner Engine

Crawl -> inject -> detect pipeline.
"""

from vulnsweep.scanner.core.engine import ScannerEngine, ScanConfig, ScanReport, run_scan, run_scan_request
from vulnsweep.scanner.exceptions import (
    ScannerError, InputError, NetworkError, ParseError, OrchestratorError
)

__all__ = [
    'ScannerEngine', 'ScanConfig', 'ScanReport', 'run_scan', 'run_scan_request',
    'ScannerError', 'InputError', 'NetworkError', 'ParseError', 'OrchestratorError',
]
