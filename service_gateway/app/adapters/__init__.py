"""
Adapters package for the content gateway.

Contains HTTP client wrappers for external dependencies. Adapters
encapsulate base URLs, request shapes, timeouts and the mapping of
transport failures onto shared errors. Keep adapters thin and side-effect
free outside of explicit calls.
"""

from .provider_client import GenerationProviderClient

__all__ = ["GenerationProviderClient"]
