"""
Scan request validation.

Everything here runs before any network activity and raises InputError.
"""

from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import urlparse

from vulnsweep.scanner.exceptions import InputError

DEFAULT_DEPTH = 2
DEFAULT_TIMEOUT_MS = 10000


def validate_target_url(url: Any) -> str:
    """Return the URL if it is an absolute http(s) URL with a host."""
    if not url or not isinstance(url, str):
        raise InputError("Target URL required")

    url = url.strip()
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        raise InputError("Invalid URL format")

    if parsed.scheme not in ('http', 'https') or not hostname:
        raise InputError("Invalid URL format")

    return url


def _int_option(value: Any, name: str, minimum: int) -> int:
    if isinstance(value, bool):
        raise InputError(f"{name} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InputError(f"{name} must be an integer")
    if number != value and not isinstance(value, str):
        raise InputError(f"{name} must be an integer")
    if number < minimum:
        raise InputError(f"{name} must be at least {minimum}")
    return number


@dataclass(frozen=True)
class ScanRequest:
    """A validated scan request: {targetUrl, depth, timeoutMs}."""
    target_url: str
    depth: int = DEFAULT_DEPTH
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    @property
    def timeout(self) -> float:
        """Per-request timeout in seconds."""
        return self.timeout_ms / 1000.0

    @classmethod
    def create(cls, target_url: Any, depth: Any = DEFAULT_DEPTH,
               timeout_ms: Any = DEFAULT_TIMEOUT_MS) -> 'ScanRequest':
        return cls(
            target_url=validate_target_url(target_url),
            depth=_int_option(depth, 'depth', 0),
            timeout_ms=_int_option(timeout_ms, 'timeoutMs', 1),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ScanRequest':
        if not isinstance(data, Mapping):
            raise InputError("Request body must be a JSON object")
        return cls.create(
            data.get('targetUrl'),
            data.get('depth', DEFAULT_DEPTH),
            data.get('timeoutMs', DEFAULT_TIMEOUT_MS),
        )
