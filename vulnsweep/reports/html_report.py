"""
HTML report generation.

Rendered with Jinja2; every value coming from the scanned site is autoescaped.
"""

from jinja2 import Environment, PackageLoader, select_autoescape

from vulnsweep.scanner.core.engine import ScanReport

SEVERITY_COLORS = {
    'critical': '#dc2626',
    'high': '#ea580c',
    'medium': '#eab308',
    'low': '#0284c7',
    'info': '#06b6d4',
}

_env = Environment(
    loader=PackageLoader('vulnsweep', 'reports/templates'),
    autoescape=select_autoescape(['html'])
)


def generate_html_report(report: ScanReport) -> str:
    """Render a scan report as a standalone HTML page."""
    template = _env.get_template('report.html')
    return template.render(
        report=report.to_dict(),
        severity_colors=SEVERITY_COLORS,
        severities=['critical', 'high', 'medium', 'low'],
    )
