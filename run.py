#!/usr/bin/env python3
"""
VulnSweep - Web Application Attack-Surface Scanner

Main entry point for the application.
"""

import sys
import logging
import click
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

SEVERITY_COLORS = {
    'critical': 'red',
    'high': 'red',
    'medium': 'yellow',
    'low': 'green',
}


@click.group()
@click.version_option(version='1.0.0', prog_name='VulnSweep')
def cli():
    """VulnSweep - Web Application Attack-Surface Scanner"""
    pass


@cli.command()
@click.option('--host', default='127.0.0.1', help='Host to bind to')
@click.option('--port', default=5000, help='Port to bind to')
@click.option('--debug', is_flag=True, help='Enable debug mode')
def web(host, port, debug):
    """Start the scan API server."""
    from vulnsweep import create_app

    app = create_app('development' if debug else 'production')

    click.echo(f"VulnSweep API listening on http://{host}:{port}/api (Ctrl+C to stop)")
    app.run(host=host, port=port, debug=debug)


@cli.command()
@click.argument('url')
@click.option('--depth', default=2, show_default=True, help='Maximum crawl depth')
@click.option('--timeout-ms', default=10000, show_default=True, help='Per-request timeout in milliseconds')
@click.option('--pages', default=100, show_default=True, help='Maximum pages to crawl')
@click.option('--scan-timeout', default=300.0, show_default=True, help='Deadline for the whole scan in seconds')
@click.option('--modules', '-m', multiple=True,
              type=click.Choice(['xss', 'sqli', 'csrf', 'open_redirect', 'headers', 'weak_auth']),
              help='Scan modules to use (default: xss, sqli, csrf)')
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Output file for report')
@click.option('--format', '-f', 'report_format', type=click.Choice(['json', 'html']), default='json', help='Report format')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
def scan(url, depth, timeout_ms, pages, scan_timeout, modules, output, report_format, verbose):
    """Run a vulnerability scan against a target URL."""
    import asyncio
    from vulnsweep.scanner import run_scan, ScanConfig, InputError, OrchestratorError
    from vulnsweep.reports import generate_json_report, generate_html_report

    logging.getLogger().setLevel(logging.DEBUG if verbose else logging.WARNING)

    click.echo(f"Target: {url}")
    click.echo(f"Modules: {', '.join(modules) if modules else 'xss, sqli, csrf'}")
    click.echo(f"Max Depth: {depth}  Max Pages: {pages}")
    click.echo("-" * 50)

    def on_progress(data):
        if verbose:
            click.echo(f"  [{data['progress']}%] {data.get('message', '')}")

    def on_finding(finding):
        severity = finding.severity.value
        click.secho(
            f"  [!] {severity.upper()} - {finding.type} at {finding.url} ({finding.parameter})",
            fg=SEVERITY_COLORS.get(severity, 'blue')
        )

    try:
        config = ScanConfig(
            max_pages=pages,
            scan_timeout=scan_timeout,
            scan_modules=list(modules) if modules else None
        )
        report = asyncio.run(run_scan(
            url, depth=depth, timeout_ms=timeout_ms, config=config,
            progress_callback=on_progress, finding_callback=on_finding
        ))
    except InputError as e:
        raise click.BadParameter(str(e), param_hint='URL')
    except OrchestratorError as e:
        click.secho(f"Scan failed: {e}", fg='red', err=True)
        sys.exit(1)

    click.echo("-" * 50)
    if report.partial:
        click.secho("Scan deadline reached: results are partial.", fg='yellow')

    click.echo("VULNERABILITY SUMMARY")
    for severity, color in SEVERITY_COLORS.items():
        click.secho(f"  {severity.capitalize():<9} {report.summary[severity]}", fg=color)
    click.echo(f"  {'Total':<9} {report.summary['total']}")
    stats = report.crawl_stats
    click.echo(f"Crawled {stats['urlsFound']} URLs, {stats['formsFound']} forms, "
               f"{stats['parametersFound']} parameters in {report.duration_seconds}s")

    if output:
        rendered = generate_html_report(report) if report_format == 'html' else generate_json_report(report)
        with open(output, 'w', encoding='utf-8') as f:
            f.write(rendered)
        click.echo(f"Report saved to: {output}")


@cli.command()
@click.option('--host', default='127.0.0.1', help='Host to bind to')
@click.option('--port', default=5001, help='Port to bind to')
def demo(host, port):
    """Start the deliberately vulnerable demo target."""
    from aiohttp import web as aiohttp_web
    from tests.vulnerable_app import create_vulnerable_app

    click.secho("WARNING: this app is intentionally vulnerable. Bind it to localhost only.", fg='red')
    aiohttp_web.run_app(create_vulnerable_app(), host=host, port=port)


if __name__ == '__main__':
    cli()
