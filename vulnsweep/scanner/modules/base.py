"""
Base Module for VulnSweep Vulnerability Detection

Provides the finding record and common helpers for all detector modules.
Detectors are pure: they look only at their arguments and never raise.
"""

from typing import Dict, Optional, Any
from dataclasses import dataclass, field
from enum import Enum
import logging
import uuid

logger = logging.getLogger(__name__)

EVIDENCE_LENGTH = 200


class Severity(Enum):
    """Vulnerability severity levels."""
    CRITICAL = 'critical'
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'
    INFO = 'info'


class VulnerabilityClass(Enum):
    """The closed set of vulnerability classes the scanner knows about."""
    XSS = 'xss'
    SQLI = 'sqli'
    CSRF = 'csrf'
    OPEN_REDIRECT = 'open_redirect'
    SECURITY_HEADERS = 'headers'
    WEAK_AUTH = 'weak_auth'


@dataclass(frozen=True)
class Finding:
    """
    Represents a discovered vulnerability.

    The id is not derived from the inputs, so it is left out of equality:
    two findings for the same evidence compare equal.
    """
    type: str
    severity: Severity
    url: str
    parameter: str
    payload: str
    evidence: str
    description: str
    vulnerability_class: VulnerabilityClass
    id: str = field(default_factory=lambda: uuid.uuid4().hex, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'type': self.type,
            'severity': self.severity.value,
            'url': self.url,
            'parameter': self.parameter,
            'payload': self.payload,
            'evidence': self.evidence,
            'description': self.description,
            'class': self.vulnerability_class.value,
        }


class BaseModule:
    """
    Base class for detector modules.

    Subclasses set `vulnerability_class` and implement `detect`.
    """

    vulnerability_class: Optional[VulnerabilityClass] = None

    def create_finding(
            self,
            type: str,
            severity: Severity,
            url: str,
            description: str,
            parameter: str = '',
            payload: str = 'N/A',
            evidence: str = ''
    ) -> Finding:
        """Helper to create a Finding tagged with this module's class."""
        return Finding(
            type=type,
            severity=severity,
            url=url,
            parameter=parameter,
            payload=payload,
            evidence=self.truncate(evidence, EVIDENCE_LENGTH),
            description=description,
            vulnerability_class=self.vulnerability_class
        )

    @staticmethod
    def truncate(text: str, max_length: int = 500) -> str:
        """Truncate text to maximum length."""
        text = text or ''
        if len(text) <= max_length:
            return text
        return text[:max_length]

    @staticmethod
    def excerpt(body: str, start: int, end: int, max_length: int = EVIDENCE_LENGTH) -> str:
        """Slice of `body` around [start, end), at most `max_length` long."""
        if start < 0:
            return (body or '')[:max_length]
        margin = max(0, (max_length - (end - start)) // 2)
        begin = max(0, start - margin)
        return body[begin:begin + max_length]
