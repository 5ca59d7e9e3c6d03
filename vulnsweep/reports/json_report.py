"""
JSON report generation.
"""

import json

from vulnsweep.scanner.core.engine import ScanReport


def generate_json_report(report: ScanReport, indent: int = 2) -> str:
    """Serialize a scan report to its JSON wire form."""
    return json.dumps(report.to_dict(), indent=indent)
