"""
Security Headers Detection Module

Checks a response header map for missing security headers.
"""

from typing import Dict, List, Mapping, Optional
import logging

from vulnsweep.scanner.modules.base import BaseModule, Finding, Severity, VulnerabilityClass

logger = logging.getLogger(__name__)


# Security headers to check
SECURITY_HEADERS = {
    'Content-Security-Policy': {
        'severity': Severity.HIGH,
        'description': 'CSP header is missing. CSP restricts which resources can be loaded and blunts XSS.',
    },
    'X-Content-Type-Options': {
        'severity': Severity.MEDIUM,
        'description': 'X-Content-Type-Options header is missing. It prevents MIME type sniffing.',
    },
    'X-Frame-Options': {
        'severity': Severity.HIGH,
        'description': 'X-Frame-Options header is missing. It prevents clickjacking through framing.',
    },
    'Strict-Transport-Security': {
        'severity': Severity.HIGH,
        'description': 'HSTS header is missing. It forces browsers to use HTTPS.',
    },
}


class SecurityHeadersModule(BaseModule):
    """
    Security Headers Detection Module

    One finding per missing header. Header names are matched
    case-insensitively and an empty value counts as missing.
    """

    vulnerability_class = VulnerabilityClass.SECURITY_HEADERS

    def detect(self, headers: Optional[Mapping[str, str]], url: str) -> List[Finding]:
        present = {k.lower(): v for k, v in (headers or {}).items() if v}
        results = []

        for header, info in SECURITY_HEADERS.items():
            if header.lower() in present:
                continue
            results.append(self.create_finding(
                type=f"Missing {header}",
                severity=info['severity'],
                url=url,
                parameter="header",
                payload="N/A",
                evidence="Header not found in response",
                description=info['description']
            ))

        return results


_module = SecurityHeadersModule()


# Module interface function
def detect_missing_security_headers(headers: Dict[str, str], url: str) -> List[Finding]:
    """Check a response header map for missing security headers."""
    return _module.detect(headers, url)
