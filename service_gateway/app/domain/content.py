"""
Parsing, sanitization and fallback shaping of generated content.

Everything here is pure: no I/O, no cache access. The content service
composes these steps around the provider call.
"""

import json
from typing import Any, Iterable, List, Optional, Sequence
from urllib.parse import urlsplit

from pydantic import ValidationError as PydanticValidationError

from .models import ContentResponse, GeneratedContent, LinkRef


MAX_RELATED_OBJECTS = 3
FINGERPRINT_SEPARATOR = "::"


class ParseFailure(Exception):
    """Provider output could not be turned into usable content."""


def fingerprint(object_name: str, subject: str) -> str:
    """Cache key that ignores case and surrounding whitespace."""
    return f"{str(object_name).strip().lower()}{FINGERPRINT_SEPARATOR}{str(subject).strip().lower()}"


def _load_json(raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError:
        pass

    # Models sometimes wrap the object in prose or code fences
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise ParseFailure("no JSON object found in provider output")
    try:
        return json.loads(raw[start:end + 1])
    except ValueError as exc:
        raise ParseFailure(f"embedded JSON object is malformed: {exc}") from exc


def parse_model_output(raw: str) -> GeneratedContent:
    """Parse raw provider text into validated content or raise ParseFailure."""
    data = _load_json(raw or "")
    if not isinstance(data, dict):
        raise ParseFailure("provider output is not a JSON object")
    try:
        return GeneratedContent.model_validate(data)
    except PydanticValidationError as exc:
        raise ParseFailure(f"provider output failed schema validation: {exc.error_count()} error(s)") from exc


def _host_allowed(hostname: str, allowed_domains: Iterable[str]) -> bool:
    return any(domain in hostname for domain in allowed_domains)


def sanitize_link(candidate: Any, allowed_domains: Sequence[str]) -> Optional[LinkRef]:
    """Return a cleaned link, or None when it must be dropped."""
    if not isinstance(candidate, dict):
        return None
    url = candidate.get("url")
    if not isinstance(url, str):
        return None

    try:
        parts = urlsplit(url.strip())
        parts.port  # raises ValueError on a malformed port
    except ValueError:
        return None

    hostname = parts.hostname
    if parts.scheme not in ("http", "https") or not hostname:
        return None
    if not _host_allowed(hostname, allowed_domains):
        return None

    title = candidate.get("title")
    source = candidate.get("source")
    return LinkRef(
        title=str(title) if title else hostname,
        url=parts.geturl(),
        source=str(source) if source else "",
    )


def sanitize_links(candidates: Iterable[Any], allowed_domains: Sequence[str]) -> List[LinkRef]:
    """Keep only well-formed links whose hostname is allow-listed."""
    links = []
    for candidate in candidates:
        link = sanitize_link(candidate, allowed_domains)
        if link is not None:
            links.append(link)
    return links


def normalize_related(values: Iterable[Any]) -> List[str]:
    """Trim, drop empties and keep at most three related object names."""
    cleaned = []
    for value in values:
        if value is None or isinstance(value, (dict, list)):
            continue
        text = str(value).strip()
        if text:
            cleaned.append(text)
    return cleaned[:MAX_RELATED_OBJECTS]


def build_response(generated: GeneratedContent, allowed_domains: Sequence[str]) -> ContentResponse:
    """Shape validated provider content into the outbound response."""
    return ContentResponse(
        title=generated.title,
        text=generated.text,
        explanation=generated.explanation,
        fun_facts=list(generated.fun_facts),
        links=sanitize_links(generated.links, allowed_domains),
        related_objects=normalize_related(generated.related_objects),
    )


def fallback_content(object_name: str, subject: str) -> ContentResponse:
    """Deterministic content used when the provider output is unusable."""
    return ContentResponse(
        title=f"{subject}: Getting to know {object_name}",
        text=f"Let's discover what {object_name} is and why it's interesting from the {subject} perspective.",
        explanation=f"Observe {object_name} and ask: what is it, how does it work and why does it matter?",
        fun_facts=["Ask curious questions and try simple experiments or drawings."],
        links=[],
        related_objects=[],
    )
