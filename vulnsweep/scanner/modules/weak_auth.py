"""
Weak Authentication Detection Module

Text heuristic for default or trivial credentials mentioned in a page.
Noisy by nature; only run when explicitly enabled.
"""

import re
from typing import Optional
import logging

from vulnsweep.scanner.modules.base import BaseModule, Finding, Severity, VulnerabilityClass

logger = logging.getLogger(__name__)


WEAK_CREDENTIAL_PATTERNS = [
    re.compile(r'admin.{0,40}admin', re.IGNORECASE),
    re.compile(r'password.{0,40}123', re.IGNORECASE),
    re.compile(r'default.{0,20}credentials', re.IGNORECASE),
    re.compile(r'test.{0,20}test', re.IGNORECASE),
]


class WeakAuthModule(BaseModule):
    vulnerability_class = VulnerabilityClass.WEAK_AUTH

    def detect(self, body: str, url: str) -> Optional[Finding]:
        body = body or ''

        for pattern in WEAK_CREDENTIAL_PATTERNS:
            match = pattern.search(body)
            if match:
                return self.create_finding(
                    type="Weak Authentication",
                    severity=Severity.HIGH,
                    url=url,
                    parameter="auth",
                    payload="N/A",
                    evidence=self.excerpt(body, match.start(), match.end()),
                    description="Page text suggests default or weak credentials."
                )

        return None


_module = WeakAuthModule()


def detect_weak_auth(response_body: str, url: str) -> Optional[Finding]:
    """Look for weak-credential hints in a response body."""
    return _module.detect(response_body, url)
