"""
SQL Injection Detection Module

Detects SQL injection from a single response:
- Error-based detection (database error signatures)
- Boolean heuristic (boolean operator in payload plus a non-trivial body)

The boolean heuristic has no baseline to compare against and is prone to
false positives; it is kept as a low-confidence fallback signal.
"""

import re
from typing import Optional
import logging

from vulnsweep.scanner.modules.base import BaseModule, Finding, Severity, VulnerabilityClass

logger = logging.getLogger(__name__)


# SQL Error Patterns
SQL_ERROR_PATTERNS = [
    # Generic
    r"SQL syntax",
    r"Syntax error",
    r"Unclosed quotation mark",
    r"quoted string not properly terminated",

    # MySQL
    r"mysql_fetch",
    r"Warning.*mysql",
    r"MySqlException",
    r"valid MySQL result",

    # PostgreSQL
    r"PostgreSQL.*ERROR",
    r"Warning.*\Wpg_",
    r"PG::SyntaxError",

    # Oracle
    r"ORA-\d+",

    # SQL Server
    r"SQLServer.*error",
    r"Microsoft OLE DB Provider for SQL Server",
    r"ODBC SQL Server Driver",

    # SQLite
    r"SQLite3?::",
    r"sqlite3\.OperationalError",
    r"SQLITE_ERROR",
]

SQL_ERROR_REGEXES = [re.compile(p, re.IGNORECASE) for p in SQL_ERROR_PATTERNS]

BOOLEAN_OPERATOR = re.compile(r'\b(AND|OR)\b')

# Body length above which a boolean payload is reported
BOOLEAN_LENGTH_THRESHOLD = 100


class SQLiModule(BaseModule):
    """
    SQL Injection Detection Module
    """

    vulnerability_class = VulnerabilityClass.SQLI

    def detect(self, body: str, payload: str, url: str, parameter: str) -> Optional[Finding]:
        body = body or ''
        payload = payload or ''

        for regex in SQL_ERROR_REGEXES:
            match = regex.search(body)
            if match:
                return self.create_finding(
                    type="SQL Injection",
                    severity=Severity.CRITICAL,
                    url=url,
                    parameter=parameter,
                    payload=payload,
                    evidence=self.excerpt(body, match.start(), match.end()),
                    description=f"Database error message detected in the response to parameter '{parameter}'."
                )

        if BOOLEAN_OPERATOR.search(payload) and len(body) > BOOLEAN_LENGTH_THRESHOLD:
            return self.create_finding(
                type="Potential SQL Injection",
                severity=Severity.HIGH,
                url=url,
                parameter=parameter,
                payload=payload,
                evidence=self.truncate(body, 200),
                description="Boolean-based SQL injection pattern detected (unconfirmed, no baseline comparison)."
            )

        return None


_module = SQLiModule()


# Module interface function
def detect_sqli(response_body: str, payload: str, url: str, parameter: str) -> Optional[Finding]:
    """Classify an injection response for SQL injection."""
    return _module.detect(response_body, payload, url, parameter)
