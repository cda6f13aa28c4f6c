"""
Origin client for the Updater service.
"""

import time
from typing import Any, Dict, Optional, TYPE_CHECKING

import httpx

from shared.logging import get_logger
from shared.errors import InvalidResponse, OriginError, OriginTransportError, OriginUnavailable
from ..models import UpdateApiRetcode, UpdateContent

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class OriginClient:
    """Client for the upstream update distribution API.

    Holds no state beyond its base URL: every call opens its own HTTP
    client. A non-200 status means "no data" and yields ``None``; a
    non-success result code raises ``OriginError`` and a malformed body
    raises ``InvalidResponse``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.transport = transport
        self.metrics = metrics
        self.logger = get_logger("updater.origin_client")

    async def fetch_version(self) -> Optional[int]:
        """Fetch the current version only."""
        try:
            data = await self._fetch_data("/version")
        except OriginUnavailable as exc:
            self.logger.info("Origin version unavailable", status_code=exc.status_code)
            return None

        version = data.get("v")
        if not _is_version(version):
            raise InvalidResponse(details={"endpoint": "/version"})
        return version

    async def fetch_content(self) -> Optional[UpdateContent]:
        """Fetch version, payload and signature."""
        try:
            data = await self._fetch_data("/get")
        except OriginUnavailable as exc:
            self.logger.info("Origin content unavailable", status_code=exc.status_code)
            return None

        v, c, s = data.get("v"), data.get("c"), data.get("s")
        if not _is_version(v) or not isinstance(c, str) or not isinstance(s, str):
            raise InvalidResponse(details={"endpoint": "/get"})
        return UpdateContent(v=v, c=c, s=s)

    async def _fetch_data(self, path: str) -> Dict[str, Any]:
        """Execute the request and unwrap the origin envelope."""
        url = f"{self.base_url}{path}"
        start = time.perf_counter()
        outcome = "error"

        try:
            try:
                async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                    response = await client.get(url)
            except httpx.HTTPError as exc:
                self.logger.error("Origin request failed", url=url, error=str(exc))
                raise OriginTransportError(str(exc) or exc.__class__.__name__, {"url": url})

            if response.status_code != 200:
                outcome = "unavailable"
                self.logger.warning("Origin returned non-success status", url=url, status_code=response.status_code)
                raise OriginUnavailable(response.status_code, {"url": url})

            try:
                body = response.json()
            except ValueError:
                raise InvalidResponse(details={"url": url, "reason": "body is not JSON"})
            if not isinstance(body, dict):
                raise InvalidResponse(details={"url": url, "reason": "body is not an object"})

            code, msg, data = body.get("code"), body.get("msg"), body.get("data")
            if code != UpdateApiRetcode.SUCC or data is None:
                self.logger.warning("Origin reported failure", url=url, code=code, msg=msg)
                raise OriginError(msg or "Unknown origin error", {"url": url, "code": code})
            if not isinstance(data, dict):
                raise InvalidResponse(details={"url": url, "reason": "data is not an object"})

            outcome = "success"
            self.logger.debug("Origin data retrieved", url=url)
            return data
        finally:
            self._record(path, outcome, time.perf_counter() - start)

    def _record(self, endpoint: str, outcome: str, duration: float) -> None:
        if not self.metrics:
            return
        self.metrics.increment_counter("origin_requests_total", endpoint=endpoint, outcome=outcome)
        self.metrics.observe_histogram("origin_request_duration_seconds", duration, endpoint=endpoint)


def _is_version(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
