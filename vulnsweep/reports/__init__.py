"""
Report rendering for finished scans.
"""

from vulnsweep.reports.json_report import generate_json_report
from vulnsweep.reports.html_report import generate_html_report

__all__ = ['generate_json_report', 'generate_html_report']
