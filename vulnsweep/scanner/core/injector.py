"""
Request Injector for VulnSweep

Replays a single parameter with a single payload value against an endpoint.
"""

from typing import Optional
from urllib.parse import urlparse, parse_qs, urlencode, urlunparse
import logging

from vulnsweep.scanner.core.requester import AsyncRequester, RequestMethod, Response
from vulnsweep.scanner.exceptions import NetworkError

logger = logging.getLogger(__name__)


def build_injection_url(url: str, parameter: str, payload: str) -> str:
    """Set `parameter` to `payload` in the query string, keeping other keys."""
    parsed = urlparse(url)
    params = parse_qs(parsed.query, keep_blank_values=True)
    params[parameter] = [payload]
    return urlunparse(parsed._replace(query=urlencode(params, doseq=True)))


class RequestInjector:
    """
    Sends one adversarial value per request.

    Only the tested parameter is supplied; other fields of the original form
    are not replayed. Redirects are not followed so that redirect targets stay
    visible in the response headers.
    """

    def __init__(self, requester: AsyncRequester, timeout: Optional[float] = None):
        self.requester = requester
        self.timeout = timeout

    async def inject(
            self,
            url: str,
            method: str,
            parameter: str,
            payload: str,
            timeout: Optional[float] = None
    ) -> Response:
        """
        Inject a payload into one parameter.

        Args:
            url: Target endpoint
            method: 'GET' or 'POST'
            parameter: Name of the parameter under test
            payload: Value to send
            timeout: Per-request timeout in seconds

        Returns:
            The response, whatever its status code

        Raises:
            NetworkError: when no HTTP response was received
        """
        request_method = RequestMethod.from_string(method)

        if request_method == RequestMethod.GET:
            response = await self.requester.request(
                build_injection_url(url, parameter, payload),
                RequestMethod.GET,
                allow_redirects=False,
                timeout=timeout or self.timeout
            )
        else:
            response = await self.requester.request(
                url,
                RequestMethod.POST,
                data={parameter: payload},
                headers={'Content-Type': 'application/x-www-form-urlencoded'},
                allow_redirects=False,
                timeout=timeout or self.timeout
            )

        if response.error:
            raise NetworkError(url, response.error)

        return response
