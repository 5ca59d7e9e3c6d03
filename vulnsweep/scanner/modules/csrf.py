"""
CSRF (Cross-Site Request Forgery) Detection Module

Detects state-changing forms without an anti-forgery token.
"""

import re
from typing import List, Optional
import logging

from bs4 import BeautifulSoup

from vulnsweep.scanner.modules.base import BaseModule, Finding, Severity, VulnerabilityClass

logger = logging.getLogger(__name__)


# Field names that carry an anti-CSRF token
CSRF_TOKEN_PATTERNS = [
    re.compile(p, re.IGNORECASE) for p in (
        r'csrf',
        r'xsrf',
        r'authenticity[_-]?token',
        r'nonce',
        r'request[_-]?(verification[_-]?)?token',
        r'^_token$',
    )
]

FIELD_TAGS = ['input', 'textarea', 'select']


def _form_tag(markup: str):
    """First <form> element in the markup, or None."""
    if not markup:
        return None
    try:
        soup = BeautifulSoup(markup, 'lxml')
    except Exception:
        # Fallback to html.parser if lxml is unavailable
        soup = BeautifulSoup(markup, 'html.parser')
    return soup.find('form')


def _method_of(form) -> str:
    if form is None:
        return 'GET'
    return (form.get('method') or 'GET').strip().upper() or 'GET'


def _names_of(form) -> List[str]:
    if form is None:
        return []
    names = []
    for tag in form.find_all(FIELD_TAGS):
        name = (tag.get('name') or '').strip()
        if name:
            names.append(name)
    return names


def form_method(markup: str) -> str:
    """Method declared on the <form> tag, GET when absent."""
    return _method_of(_form_tag(markup))


def field_names(markup: str) -> List[str]:
    """Names of the input, textarea and select fields inside the form."""
    return _names_of(_form_tag(markup))


def is_token_name(name: str) -> bool:
    return any(p.search(name) for p in CSRF_TOKEN_PATTERNS)


class CSRFModule(BaseModule):
    """
    CSRF Detection Module

    A form is flagged when it submits with POST and none of its fields looks
    like an anti-CSRF token. GET forms are never flagged.
    """

    vulnerability_class = VulnerabilityClass.CSRF

    def detect(self, markup: str, url: str) -> Optional[Finding]:
        form = _form_tag(markup)

        if _method_of(form) != 'POST':
            return None

        if any(is_token_name(name) for name in _names_of(form)):
            return None

        return self.create_finding(
            type="Missing CSRF Token",
            severity=Severity.HIGH,
            url=url,
            parameter="form",
            payload="N/A",
            evidence=markup,
            description="POST form lacks a CSRF protection token and can be submitted cross-site."
        )


_module = CSRFModule()


# Module interface function
def detect_csrf_risk(form_markup: str, url: str) -> Optional[Finding]:
    """Check raw <form> markup for missing CSRF protection."""
    return _module.detect(form_markup, url)
