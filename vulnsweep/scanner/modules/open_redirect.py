"""
Open Redirect Detection Module

Detects a payload URL echoed back as a redirect target.
"""

import re
from typing import Mapping, Optional
import logging

from vulnsweep.scanner.modules.base import BaseModule, Finding, Severity, VulnerabilityClass

logger = logging.getLogger(__name__)


class OpenRedirectModule(BaseModule):
    """
    Open Redirect Detection Module

    Redirect channels checked, in order:
    - Location header (or a literal "Location:" line in the body)
    - <meta http-equiv="refresh"> pointing at the payload
    - script assignment to window/document location
    """

    vulnerability_class = VulnerabilityClass.OPEN_REDIRECT

    def detect(
            self,
            body: str,
            payload: str,
            url: str,
            parameter: str,
            headers: Optional[Mapping[str, str]] = None
    ) -> Optional[Finding]:
        body = body or ''
        if not payload:
            return None

        location = ''
        for key, value in (headers or {}).items():
            if key.lower() == 'location':
                location = value or ''
                break

        if location.startswith(payload):
            return self._finding(url, parameter, payload, f"Location: {location}", "Location header")

        escaped = re.escape(payload)
        channels = [
            ('Location header', re.compile(r'Location:\s*' + escaped, re.IGNORECASE)),
            ('meta refresh', re.compile(
                r'<meta[^>]*http-equiv\s*=\s*["\']?refresh[^>]*url\s*=\s*["\']?' + escaped,
                re.IGNORECASE)),
            ('script redirect', re.compile(
                r'(?:window|document)\.location(?:\.href)?\s*=\s*["\']' + escaped
                + r'|location\.(?:replace|assign)\(\s*["\']' + escaped,
                re.IGNORECASE)),
        ]

        for channel, regex in channels:
            match = regex.search(body)
            if match:
                return self._finding(
                    url, parameter, payload,
                    self.excerpt(body, match.start(), match.end()),
                    channel
                )

        return None

    def _finding(self, url: str, parameter: str, payload: str, evidence: str, channel: str) -> Finding:
        return self.create_finding(
            type="Open Redirect",
            severity=Severity.MEDIUM,
            url=url,
            parameter=parameter,
            payload=payload,
            evidence=evidence,
            description=f"Application redirects to the user-supplied URL via {channel} without validation."
        )


_module = OpenRedirectModule()


# Module interface function
def detect_open_redirect(
        response_body: str,
        payload: str,
        url: str,
        parameter: str,
        headers: Optional[Mapping[str, str]] = None
) -> Optional[Finding]:
    """Check an injection response for an open redirect to `payload`."""
    return _module.detect(response_body, payload, url, parameter, headers)
