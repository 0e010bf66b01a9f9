"""
Shared fixtures for content gateway tests.
"""

import json
from typing import Any, Callable, Dict, List

import httpx
import pytest


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def completion(content: str) -> Dict[str, Any]:
    """Chat completion envelope wrapping ``content``."""
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


VALID_CONTENT = {
    "title": "Sunflowers and Light",
    "text": "Sunflowers turn to follow the sun while they are young.",
    "explanation": "Growth hormones collect on the shaded side of the stem.",
    "funFacts": ["A sunflower head holds up to 2,000 seeds."],
    "links": [
        {"title": "Phototropism", "url": "https://www.khanacademy.org/science/phototropism", "source": "Khan Academy"},
        {"title": "Spam", "url": "https://evil.example.com/sunflower"},
    ],
    "relatedObjects": ["daisy", "  ", "seed", "bee", "pollen"],
}


class ProviderStub:
    """Scriptable OpenAI-compatible upstream backed by httpx.MockTransport."""

    def __init__(self):
        self.calls: List[httpx.Request] = []
        self.respond: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200, json=completion(json.dumps(VALID_CONTENT))
        )

    def reply_with(self, content: str, status_code: int = 200) -> None:
        self.respond = lambda request: httpx.Response(status_code, json=completion(content))

    def fail_with(self, status_code: int, body: str) -> None:
        self.respond = lambda request: httpx.Response(status_code, text=body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        return self.respond(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def clock():
    """Controllable clock for cache expiry."""
    return FakeClock()


@pytest.fixture
def provider_stub():
    """Upstream generation provider double."""
    return ProviderStub()


@pytest.fixture
def valid_content():
    """Well-formed provider content, as a dict."""
    return json.loads(json.dumps(VALID_CONTENT))


@pytest.fixture
def make_completion():
    """Factory for chat completion envelopes."""
    return completion
