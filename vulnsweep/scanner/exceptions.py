"""
Scanner error taxonomy.

InputError is raised before any network activity. NetworkError and ParseError
are recovered locally by the crawler and the injection sweep. OrchestratorError
is fatal to a scan.
"""


class ScannerError(Exception):
    """Base class for all scanner errors."""


class InputError(ScannerError):
    """Malformed target URL or scan option."""


class NetworkError(ScannerError):
    """Transport failure: timeout, DNS, refused connection."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{reason} ({url})")
        self.url = url
        self.reason = reason


class ParseError(ScannerError):
    """Markup could not be parsed."""


class OrchestratorError(ScannerError):
    """Unexpected failure outside the isolated per-step boundaries."""
