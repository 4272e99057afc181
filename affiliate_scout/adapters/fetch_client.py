"""
Fetch Client for Affiliate Scout.
Bounded-timeout GET requests that report HTTP status instead of raising.
"""
from dataclasses import dataclass
from typing import Optional

import httpx

from affiliate_scout.utils.logger import LayerLogger


# Timeout budgets (seconds). Probing many paths must fail fast.
PAGE_TIMEOUT = 15.0
AFFILIATE_PROBE_TIMEOUT = 8.0
CONTACT_PROBE_TIMEOUT = 5.0
CONTACT_PAGE_TIMEOUT = 10.0

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class FetchResult:
    """Outcome of a single GET request."""
    # Final URL after redirects; the requested URL on transport failure
    url: str
    status_code: Optional[int] = None
    body: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        """Only an exact 200 counts as a usable page."""
        return self.status_code == 200


class FetchClient:
    """
    HTTP GET client used by every discovery stage.

    Any HTTP response (4xx and 5xx included) is returned as a FetchResult
    with its status code; only transport failures (DNS, connection,
    timeout, malformed URL) produce a result with ``status_code=None``.
    Callers decide what a non-200 means.
    """

    def __init__(
        self,
        timeout: float = PAGE_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.transport = transport
        self.logger = LayerLogger("fetch_client")

    def _get_headers(self) -> dict:
        """Get request headers mimicking a browser."""
        return {
            "User-Agent": USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }

    async def fetch(self, url: str, timeout: Optional[float] = None) -> FetchResult:
        """
        GET a URL.

        Args:
            url: Absolute URL to fetch
            timeout: Per-call budget in seconds (defaults to the client's)

        Returns:
            FetchResult, never raises for transport or HTTP errors
        """
        budget = timeout if timeout is not None else self.timeout

        try:
            async with httpx.AsyncClient(
                timeout=budget,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                response = await client.get(url, headers=self._get_headers())

            self.logger.log_action(
                "fetch",
                "completed",
                url=url,
                status_code=response.status_code,
                content_length=len(response.content),
            )
            return FetchResult(url=str(response.url), status_code=response.status_code, body=response.text)

        except httpx.TimeoutException:
            self.logger.log_error("Timed out fetching URL", error_type="timeout", url=url, timeout=budget)
            return FetchResult(url=url, error="timeout")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self.logger.log_error(
                f"Failed to fetch URL: {str(e)}",
                error_type="transport_error",
                url=url,
            )
            return FetchResult(url=url, error=str(e) or e.__class__.__name__)
