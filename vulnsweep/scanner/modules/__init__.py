"""
VulnSweep Detector Modules

One pure classification function per vulnerability class.
"""

from typing import Callable, Dict, Optional

from vulnsweep.scanner.modules.base import Finding, Severity, VulnerabilityClass
from vulnsweep.scanner.modules.xss import detect_xss
from vulnsweep.scanner.modules.sqli import detect_sqli
from vulnsweep.scanner.modules.csrf import detect_csrf_risk
from vulnsweep.scanner.modules.open_redirect import detect_open_redirect
from vulnsweep.scanner.modules.headers import detect_missing_security_headers
from vulnsweep.scanner.modules.weak_auth import detect_weak_auth

# Classes tested by replaying parameters with payloads, in sweep order
INJECTION_CLASSES = (
    VulnerabilityClass.XSS,
    VulnerabilityClass.SQLI,
    VulnerabilityClass.OPEN_REDIRECT,
)

# (body, headers, payload, url, parameter) -> Optional[Finding]
INJECTION_DETECTORS: Dict[VulnerabilityClass, Callable[..., Optional[Finding]]] = {
    VulnerabilityClass.XSS:
        lambda body, headers, payload, url, parameter: detect_xss(body, payload, url, parameter),
    VulnerabilityClass.SQLI:
        lambda body, headers, payload, url, parameter: detect_sqli(body, payload, url, parameter),
    VulnerabilityClass.OPEN_REDIRECT:
        lambda body, headers, payload, url, parameter: detect_open_redirect(body, payload, url, parameter, headers),
}


def classify_injection(
        vulnerability_class: VulnerabilityClass,
        body: str,
        headers: dict,
        payload: str,
        url: str,
        parameter: str
) -> Optional[Finding]:
    """Run the detector for an injection class against one response."""
    detector = INJECTION_DETECTORS.get(vulnerability_class)
    if detector is None:
        raise ValueError(f"{vulnerability_class} is not an injection class")
    return detector(body, headers, payload, url, parameter)


__all__ = [
    'Finding', 'Severity', 'VulnerabilityClass', 'INJECTION_CLASSES', 'INJECTION_DETECTORS',
    'classify_injection', 'detect_xss', 'detect_sqli', 'detect_csrf_risk',
    'detect_open_redirect', 'detect_missing_security_headers', 'detect_weak_auth',
]
