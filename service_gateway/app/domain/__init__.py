"""
Domain logic for the content gateway.

Request validation, provider prompts, output parsing and sanitization,
and the content service that orchestrates cache and provider.
"""

from .content import ParseFailure, fingerprint
from .content_service import ContentService
from .models import ContentRequest, ContentResponse, GeneratedContent, LinkRef

__all__ = [
    "ContentRequest",
    "ContentResponse",
    "ContentService",
    "GeneratedContent",
    "LinkRef",
    "ParseFailure",
    "fingerprint",
]
