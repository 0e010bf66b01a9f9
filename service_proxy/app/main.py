"""
Reverse proxy service for Lenslearn.

Forwards every request to a single fixed target (typically a localtunnel
URL), rewriting Host and adding the tunnel bypass header.
"""

import argparse
import sys
from typing import List, Optional

import httpx
from fastapi import Request
from pydantic import ValidationError as PydanticValidationError

from shared.base_service import BaseService
from shared.config import ProxyConfig, get_proxy_config
from shared.errors import ConfigurationError

from .forwarder import BYPASS_HEADER, ReverseProxy
from .target import ProxyTarget


USAGE = (
    "Usage: TARGET=https://your-tunnel.loca.lt python -m service_proxy.app.main\n"
    "Or:    python -m service_proxy.app.main https://your-tunnel.loca.lt"
)


class ForwardingEndpoint:
    """ASGI endpoint relaying any method to the forwarder."""

    def __init__(self, forwarder: ReverseProxy):
        self.forwarder = forwarder

    async def __call__(self, scope, receive, send):
        response = await self.forwarder.forward(Request(scope, receive, send))
        await response(scope, receive, send)


class ProxyService(BaseService):
    """Reverse proxy service implementation."""

    def __init__(
        self,
        config: ProxyConfig,
        target: ProxyTarget,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        # Every path belongs to the upstream, so no /metrics or docs here
        super().__init__("proxy", config, expose_internal_routes=False)

        self.target = target
        self.forwarder = ReverseProxy(
            target,
            timeout=config.timeout_seconds,
            connect_timeout=config.connect_timeout_seconds,
            transport=transport,
            metrics=self.metrics,
        )

        self._setup_proxy_routes()

    async def on_shutdown(self) -> None:
        await self.forwarder.close()

    def _setup_proxy_routes(self):
        """Route everything through the forwarder."""

        # An ASGI endpoint, unlike a request function, keeps the route open to every method
        self.app.add_route("/{path:path}", ForwardingEndpoint(self.forwarder), include_in_schema=False)


def create_app(target: str, config: Optional[ProxyConfig] = None, **kwargs):
    """Create FastAPI application for ``target``."""
    config = config or get_proxy_config()
    service = ProxyService(config, ProxyTarget.from_url(target), **kwargs)
    return service.app


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Forward all traffic to a fixed tunnel target.")
    parser.add_argument("target", nargs="?", help="Upstream URL; TARGET in the environment wins")
    args = parser.parse_args(argv)

    try:
        config = get_proxy_config()
    except PydanticValidationError as exc:
        print(f"Invalid proxy configuration:\n{exc}", file=sys.stderr)
        return 1

    raw_target = config.target or args.target
    if not raw_target:
        print("Missing TARGET.", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return 1

    try:
        target = ProxyTarget.from_url(raw_target)
    except ConfigurationError as exc:
        print(exc.message, file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return 1

    service = ProxyService(config, target)
    service.logger.info(
        "Proxy starting",
        port=config.port,
        target=str(target),
        injected_header=BYPASS_HEADER[0].decode(),
    )
    service.run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
