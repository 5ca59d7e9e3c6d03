"""
VulnSweep Scanner Core Components

Contains the scanning engine, crawler, injector, HTTP requester and parser.
"""

from vulnsweep.scanner.core.engine import ScannerEngine, ScanConfig, ScanReport, run_scan, run_scan_request
from vulnsweep.scanner.core.crawler import AsyncCrawler, CrawlResult, Parameter
from vulnsweep.scanner.core.injector import RequestInjector
from vulnsweep.scanner.core.requester import AsyncRequester, Response
from vulnsweep.scanner.core.parser import HTMLParser

__all__ = [
    'ScannerEngine', 'ScanConfig', 'ScanReport', 'run_scan', 'run_scan_request',
    'AsyncCrawler', 'CrawlResult', 'Parameter', 'RequestInjector',
    'AsyncRequester', 'Response', 'HTMLParser',
]
