"""
Content generation service: validation, caching and provider orchestration.
"""

import time
from typing import Any, Optional, Sequence, TYPE_CHECKING

from pydantic import ValidationError as PydanticValidationError

from shared.errors import UpstreamError, ValidationError
from shared.logging import get_logger

from ..caching import SingleFlight, TTLCache
from .content import ParseFailure, build_response, fallback_content, fingerprint, parse_model_output
from .models import ContentRequest, ContentResponse
from .prompts import SYSTEM_MESSAGE, build_user_message

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..adapters.provider_client import GenerationProviderClient
    from shared.metrics import MetricsCollector


class ContentService:
    """Turn (objectName, subject) into safe, cached educational content."""

    def __init__(
        self,
        provider: "GenerationProviderClient",
        cache: "TTLCache[ContentResponse]",
        *,
        ttl_seconds: int,
        allowed_domains: Sequence[str],
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.provider = provider
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.allowed_domains = list(allowed_domains)
        self.metrics = metrics
        self.single_flight = SingleFlight("content")
        self.logger = get_logger("gateway.content_service")

    @staticmethod
    def validate(payload: Any) -> ContentRequest:
        """Build a ContentRequest from a decoded JSON body."""
        if not isinstance(payload, dict):
            raise ValidationError("Missing objectName or subject")
        try:
            return ContentRequest.model_validate(payload)
        except PydanticValidationError as exc:
            fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
            raise ValidationError("Missing objectName or subject", details={"fields": fields}) from exc

    async def handle(self, payload: Any) -> ContentResponse:
        """Serve content from cache or the provider, degrading to a fallback."""
        request = self.validate(payload)
        key = fingerprint(request.object_name, request.subject)

        cached = self.cache.get(key)
        if cached is not None:
            self._count("cache_hits_total", cache_type="content")
            self.logger.debug("Content cache hit", key=key)
            return cached
        self._count("cache_misses_total", cache_type="content")

        return await self.single_flight.do(key, lambda: self._generate(key, request))

    async def _generate(self, key: str, request: ContentRequest) -> ContentResponse:
        raw = await self._call_provider(request)

        try:
            generated = parse_model_output(raw)
        except ParseFailure as exc:
            self.logger.warning(
                "Provider output unusable, serving fallback",
                key=key,
                reason=str(exc),
                raw_length=len(raw),
            )
            return fallback_content(request.object_name, request.subject)

        response = build_response(generated, self.allowed_domains)
        self.cache.set(key, response, self.ttl_seconds)
        self.logger.info(
            "Content generated and cached",
            key=key,
            links=len(response.links),
            related_objects=len(response.related_objects),
            ttl_seconds=self.ttl_seconds,
        )
        return response

    async def _call_provider(self, request: ContentRequest) -> str:
        start = time.time()
        try:
            raw = await self.provider.complete(
                SYSTEM_MESSAGE,
                build_user_message(request.object_name, request.subject),
            )
        except UpstreamError:
            self._count("provider_requests_total", outcome="upstream_error")
            raise
        except Exception:
            self._count("provider_requests_total", outcome="failed")
            raise
        finally:
            if self.metrics:
                self.metrics.observe_histogram("provider_request_duration_seconds", time.time() - start)

        self._count("provider_requests_total", outcome="ok")
        return raw

    def _count(self, metric_name: str, **labels) -> None:
        if self.metrics:
            self.metrics.increment_counter(metric_name, **labels)
