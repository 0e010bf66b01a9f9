"""
Content gateway service for Lenslearn.
"""

import asyncio
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import httpx
from fastapi import Request, Response
from fastapi.responses import FileResponse, JSONResponse

from shared.base_service import BaseService
from shared.config import GatewayConfig, get_gateway_config
from shared.errors import ValidationError

from .adapters.provider_client import GenerationProviderClient
from .caching import TTLCache
from .domain import ContentResponse, ContentService


DISCONNECT_POLL_SECONDS = 0.25
CLIENT_CLOSED_REQUEST = 499


class GatewayService(BaseService):
    """Content gateway service implementation."""

    def __init__(
        self,
        config: Optional[GatewayConfig] = None,
        *,
        provider_transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        config = config or get_gateway_config()
        super().__init__("gateway", config, cors_origins=config.cors_origins)

        cache_kwargs = {"clock": clock} if clock is not None else {}
        self.cache: TTLCache[ContentResponse] = TTLCache(config.cache_max_entries, **cache_kwargs)
        self.provider = GenerationProviderClient(
            config.provider_base_url,
            config.openai_api_key,
            model=config.provider_model,
            timeout=config.provider_timeout_seconds,
            transport=provider_transport,
        )
        self.content_service = ContentService(
            self.provider,
            self.cache,
            ttl_seconds=config.cache_ttl_seconds,
            allowed_domains=config.allowed_link_domains,
            metrics=self.metrics,
        )
        self._sweep_task: Optional[asyncio.Task] = None

        self._setup_gateway_routes()
        self._setup_static_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.gateway_service = self

    async def on_startup(self) -> None:
        interval = self.config.cache_sweep_interval_seconds
        if interval > 0:
            self._sweep_task = asyncio.create_task(self._sweep_loop(interval))
            self.logger.info("Cache sweeper started", interval_seconds=interval)

    async def on_shutdown(self) -> None:
        if self._sweep_task:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None
        await self.provider.close()

    async def _sweep_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self.cache.sweep_expired()

    async def _unless_disconnected(self, request: Request, work: Awaitable[Any]) -> Any:
        """Await ``work`` but abandon it if the client goes away first."""
        task = asyncio.ensure_future(work)
        while True:
            done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
            if done:
                return task.result()
            if await request.is_disconnected():
                task.cancel()
                self.logger.info("Client disconnected, abandoning content request", path=request.url.path)
                return Response(status_code=CLIENT_CLOSED_REQUEST)

    def _setup_gateway_routes(self):
        """Set up content gateway routes."""

        @self.app.get("/api/health")
        async def health():
            """Liveness probe."""
            return {"ok": True, "time": int(time.time() * 1000)}

        @self.app.post("/api/ai")
        async def generate_content(request: Request):
            """Generate (or serve cached) educational content for an object."""
            try:
                payload = await request.json()
            except ValueError:
                raise ValidationError("Request body must be a JSON object")

            result = await self._unless_disconnected(request, self.content_service.handle(payload))
            if isinstance(result, Response):
                return result
            return JSONResponse(result.to_wire())

        @self.app.get("/api/cache/stats")
        async def cache_stats():
            """Content cache statistics."""
            return self.cache.stats()

    def _setup_static_routes(self):
        """Serve the built frontend with an SPA fallback, when configured."""
        if not self.config.static_dir:
            return
        root = Path(self.config.static_dir).resolve()
        index = root / "index.html"
        if not index.is_file():
            self.logger.warning("Static directory has no index.html, frontend disabled", static_dir=str(root))
            return

        @self.app.get("/{full_path:path}", include_in_schema=False)
        async def frontend(full_path: str):
            if full_path.startswith("api/"):
                return JSONResponse(status_code=404, content={"error": "Not found"})
            candidate = (root / full_path).resolve()
            if full_path and candidate.is_file() and candidate.is_relative_to(root):
                return FileResponse(candidate)
            return FileResponse(index)


def create_app(config: Optional[GatewayConfig] = None, **kwargs):
    """Create FastAPI application."""
    service = GatewayService(config, **kwargs)
    return service.app


def main() -> None:
    GatewayService().run()


if __name__ == "__main__":
    main()
