"""
HTML Parser for VulnSweep

Extracts the attack surface of a page:
- Hyperlink targets
- Forms with their method, action and named fields
"""

from typing import List, Optional, Tuple
from dataclasses import dataclass, field
from urllib.parse import urljoin
from bs4 import BeautifulSoup
import logging

from vulnsweep.scanner.exceptions import ParseError

logger = logging.getLogger(__name__)

FIELD_TAGS = ['input', 'textarea', 'select']


@dataclass(frozen=True)
class FormField:
    """Represents a named HTML form field."""
    name: str
    kind: str = 'text'
    default_value: str = ''


@dataclass(frozen=True)
class FormDescriptor:
    """
    Represents an HTML form.

    `url` is the action resolved against the page the form was found on,
    `markup` the raw <form> element as it appeared in the document.
    """
    url: str
    method: str
    fields: Tuple[FormField, ...] = ()
    markup: str = ''

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]


@dataclass
class ParsedPage:
    """Represents parsed HTML page data."""
    url: str
    links: List[str] = field(default_factory=list)
    forms: List[FormDescriptor] = field(default_factory=list)


class HTMLParser:
    """
    HTML Parser for attack-surface discovery.

    Links come back resolved to absolute URLs with pure in-page fragment
    references (href="#...") left out; scope filtering is the crawler's job.
    """

    def __init__(self, page_url: str):
        """
        Initialize parser with the URL of the page being parsed.

        Args:
            page_url: Base URL for resolving relative links and form actions
        """
        self.page_url = page_url

    def parse(self, html: Optional[str]) -> ParsedPage:
        """
        Parse HTML content.

        Raises:
            ParseError: when the markup cannot be parsed at all
        """
        parsed = ParsedPage(url=self.page_url)
        if not html:
            return parsed

        try:
            soup = BeautifulSoup(html, 'lxml')
        except Exception:
            # Fallback to html.parser if lxml is unavailable or chokes
            try:
                soup = BeautifulSoup(html, 'html.parser')
            except Exception as e:
                raise ParseError(f"Unparseable markup at {self.page_url}: {e}") from e

        parsed.links = self._extract_links(soup)
        parsed.forms = self._extract_forms(soup)
        return parsed

    def _extract_links(self, soup: BeautifulSoup) -> List[str]:
        """Extract anchor targets in document order."""
        links = []

        for a_tag in soup.find_all('a', href=True):
            href = a_tag['href'].strip()
            if not href or href.startswith('#'):
                continue
            try:
                links.append(urljoin(self.page_url, href))
            except ValueError:
                logger.debug(f"Skipping malformed link {href!r} on {self.page_url}")

        return links

    def _extract_forms(self, soup: BeautifulSoup) -> List[FormDescriptor]:
        """Extract all forms with their named fields."""
        forms = []

        for form_tag in soup.find_all('form'):
            action = (form_tag.get('action') or '').strip()
            try:
                action_url = urljoin(self.page_url, action) if action else self.page_url
            except ValueError:
                action_url = self.page_url

            method = (form_tag.get('method') or 'GET').strip().upper() or 'GET'

            fields = []
            for tag in form_tag.find_all(FIELD_TAGS):
                form_field = self._parse_field(tag)
                if form_field:
                    fields.append(form_field)

            forms.append(FormDescriptor(
                url=action_url,
                method=method,
                fields=tuple(fields),
                markup=str(form_tag)
            ))

        return forms

    def _parse_field(self, tag) -> Optional[FormField]:
        """Parse an input, textarea or select tag into a FormField."""
        name = (tag.get('name') or '').strip()
        if not name:
            return None

        if tag.name == 'textarea':
            return FormField(name=name, kind='textarea', default_value=tag.get_text() or '')

        if tag.name == 'select':
            selected = tag.find('option', selected=True) or tag.find('option')
            value = selected.get('value', selected.get_text(strip=True)) if selected else ''
            return FormField(name=name, kind='select', default_value=value)

        return FormField(
            name=name,
            kind=(tag.get('type') or 'text').lower(),
            default_value=tag.get('value', '')
        )
