"""
Streaming request forwarder for the reverse proxy.
"""

from typing import AsyncIterator, List, Optional, Tuple, TYPE_CHECKING

import httpx
from fastapi import Request, Response
from fastapi.responses import PlainTextResponse, StreamingResponse
from starlette.background import BackgroundTask
from starlette.requests import ClientDisconnect

from shared.logging import get_logger

from .target import ProxyTarget

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


# Tells tunnel providers (localtunnel) to skip their interstitial page
BYPASS_HEADER = (b"bypass-tunnel-reminder", b"1")

# Dropped so the proxy's own framing is the only one the client sees
DROPPED_RESPONSE_HEADERS = frozenset({b"transfer-encoding"})

CLIENT_CLOSED_REQUEST = 499

RawHeaders = List[Tuple[bytes, bytes]]


class ReverseProxy:
    """Forward every request to one fixed upstream, streaming both bodies."""

    def __init__(
        self,
        target: ProxyTarget,
        *,
        timeout: float = 60.0,
        connect_timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.target = target
        self.metrics = metrics
        self.logger = get_logger("proxy.forwarder")
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=connect_timeout),
            transport=transport,
            follow_redirects=False,
        )

    async def close(self) -> None:
        """Close the upstream connection pool."""
        await self._client.aclose()

    def build_headers(self, request: Request) -> RawHeaders:
        """Clone inbound headers, pointing Host at the upstream."""
        overridden = {b"host", BYPASS_HEADER[0]}
        headers = [(name, value) for name, value in request.headers.raw if name.lower() not in overridden]
        headers.append((b"host", self.target.host_header.encode("idna")))
        headers.append(BYPASS_HEADER)
        return headers

    @staticmethod
    def path_and_query(request: Request) -> str:
        raw_path = request.scope.get("raw_path") or request.url.path.encode("utf-8")
        path = raw_path.split(b"?", 1)[0].decode("latin-1")
        query = request.scope.get("query_string", b"").decode("latin-1")
        return f"{path}?{query}" if query else path

    @staticmethod
    def _has_body(request: Request) -> bool:
        return "content-length" in request.headers or "transfer-encoding" in request.headers

    async def forward(self, request: Request) -> Response:
        """Relay ``request`` upstream and stream the answer back."""
        try:
            url = self.target.url_for(self.path_and_query(request))
            outbound = self._client.build_request(
                request.method,
                url,
                headers=self.build_headers(request),
                content=request.stream() if self._has_body(request) else None,
            )
        except Exception as exc:
            self.logger.error("Failed to build upstream request", method=request.method,
                              path=request.url.path, error=str(exc), exc_info=exc)
            self._count("internal_error")
            return PlainTextResponse("Internal server error", status_code=500)

        try:
            upstream = await self._client.send(outbound, stream=True)
        except httpx.TransportError as exc:
            self.logger.error("Upstream request failed", method=request.method, url=url,
                              error=str(exc) or exc.__class__.__name__)
            self._count("upstream_unavailable")
            return PlainTextResponse("Bad gateway", status_code=502)
        except ClientDisconnect:
            self.logger.info("Client disconnected during upload", method=request.method, path=request.url.path)
            self._count("client_disconnected")
            return Response(status_code=CLIENT_CLOSED_REQUEST)
        except Exception as exc:
            self.logger.error("Failed to dispatch upstream request", method=request.method, url=url,
                              error=str(exc), exc_info=exc)
            self._count("internal_error")
            return PlainTextResponse("Internal server error", status_code=500)

        self._count("ok")
        self.logger.debug("Upstream responded", method=request.method, url=url, status_code=upstream.status_code)

        response = StreamingResponse(
            self._relay(upstream),
            status_code=upstream.status_code,
            background=BackgroundTask(upstream.aclose),
        )
        response.raw_headers = [
            (name, value) for name, value in upstream.headers.raw
            if name.lower() not in DROPPED_RESPONSE_HEADERS
        ]
        return response

    async def _relay(self, upstream: httpx.Response) -> AsyncIterator[bytes]:
        try:
            async for chunk in upstream.aiter_raw():
                yield chunk
        except httpx.TransportError as exc:
            self.logger.error("Upstream body stream interrupted", url=str(upstream.request.url), error=str(exc))
            raise
        finally:
            await upstream.aclose()

    def _count(self, outcome: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("upstream_requests_total", outcome=outcome)
