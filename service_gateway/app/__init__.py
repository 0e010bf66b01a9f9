"""
Content gateway service package for Lenslearn.

The gateway turns "tell me about this object" requests from the camera app
into child-friendly educational content:
- Validation: objectName and subject are required
- Caching: process-local TTL cache keyed by a normalized fingerprint
- Coalescing: concurrent misses for one fingerprint share a provider call
- Sanitization: links are allow-listed, related objects bounded
- Degradation: unusable provider output yields a templated fallback

Structure:
- app.main: FastAPI app, routes, and lifecycle wiring.
- app.adapters: HTTP client for the generation provider.
- app.caching: TTL cache and single-flight primitives.
- app.domain: Models, prompts, parsing and the content service.
"""
