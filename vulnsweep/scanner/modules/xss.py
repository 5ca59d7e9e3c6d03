"""
XSS (Cross-Site Scripting) Detection Module

Classifies an injection response as reflected, pattern-based or DOM-based XSS.
"""

import re
from typing import Optional
import logging

from vulnsweep.scanner.modules.base import BaseModule, Finding, Severity, VulnerabilityClass

logger = logging.getLogger(__name__)


# Dangerous constructs in a response
XSS_DETECTION_PATTERNS = [
    re.compile(r'<script[^>]*>.*?</script>', re.IGNORECASE | re.DOTALL),
    re.compile(r'\bon[a-z]+\s*=', re.IGNORECASE),
    re.compile(r'javascript:', re.IGNORECASE),
    re.compile(r'eval\(', re.IGNORECASE),
]

# DOM sinks
DOM_SINK_PATTERN = re.compile(r'document\.write|innerHTML|eval\(', re.IGNORECASE)


class XSSModule(BaseModule):
    """
    XSS Detection Module

    First match wins:
    1. Reflected XSS - payload appears verbatim in the body
    2. Potential XSS - body contains a dangerous construct
    3. DOM-based XSS - body contains a DOM sink
    """

    vulnerability_class = VulnerabilityClass.XSS

    def detect(self, body: str, payload: str, url: str, parameter: str) -> Optional[Finding]:
        body = body or ''

        if payload:
            idx = body.find(payload)
            if idx != -1:
                return self.create_finding(
                    type="Reflected XSS",
                    severity=Severity.HIGH,
                    url=url,
                    parameter=parameter,
                    payload=payload,
                    evidence=self.excerpt(body, idx, idx + len(payload)),
                    description=f"The parameter '{parameter}' reflects the payload in the response without encoding."
                )

        for pattern in XSS_DETECTION_PATTERNS:
            match = pattern.search(body)
            if match:
                return self.create_finding(
                    type="Potential XSS",
                    severity=Severity.MEDIUM,
                    url=url,
                    parameter=parameter,
                    payload=payload,
                    evidence=self.excerpt(body, match.start(), match.end()),
                    description="Dangerous JavaScript constructs detected in the response."
                )

        match = DOM_SINK_PATTERN.search(body)
        if match:
            return self.create_finding(
                type="DOM-based XSS",
                severity=Severity.HIGH,
                url=url,
                parameter=parameter,
                payload=payload,
                evidence=self.excerpt(body, match.start(), match.end()),
                description="DOM manipulation patterns detected that could lead to XSS."
            )

        return None


_module = XSSModule()


# Module interface function
def detect_xss(response_body: str, payload: str, url: str, parameter: str) -> Optional[Finding]:
    """Classify an injection response for XSS."""
    return _module.detect(response_body, payload, url, parameter)
