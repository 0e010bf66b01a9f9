"""
Fixed upstream target for the reverse proxy.
"""

from dataclasses import dataclass
from urllib.parse import urlsplit

from shared.errors import ConfigurationError


DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class ProxyTarget:
    """Where every request is forwarded. Built once at startup, never mutated."""

    scheme: str
    host: str
    port: int
    base_path: str = ""

    @classmethod
    def from_url(cls, url: str) -> "ProxyTarget":
        """Parse a target such as ``https://my-tunnel.loca.lt/prefix/``."""
        raw = (url or "").strip()
        if raw.endswith("/"):
            raw = raw[:-1]

        try:
            parts = urlsplit(raw)
            port = parts.port
        except ValueError as exc:
            raise ConfigurationError(f"Invalid target URL: {url!r}") from exc

        scheme = parts.scheme.lower()
        if scheme not in DEFAULT_PORTS or not parts.hostname:
            raise ConfigurationError(
                f"Target must be an absolute http(s) URL, got {url!r}",
                details={"target": url},
            )

        base_path = "" if parts.path in ("", "/") else parts.path.rstrip("/")
        return cls(
            scheme=scheme,
            host=parts.hostname,
            port=port or DEFAULT_PORTS[scheme],
            base_path=base_path,
        )

    @property
    def netloc(self) -> str:
        if self.port == DEFAULT_PORTS[self.scheme]:
            return self.host_header
        return f"{self.host_header}:{self.port}"

    @property
    def host_header(self) -> str:
        return f"[{self.host}]" if ":" in self.host else self.host

    def build_path(self, path_and_query: str) -> str:
        """Prefix the inbound path with the target base path; never empty."""
        return f"{self.base_path}{path_and_query}" or "/"

    def url_for(self, path_and_query: str) -> str:
        return f"{self.scheme}://{self.netloc}{self.build_path(path_and_query)}"

    def __str__(self) -> str:
        return f"{self.scheme}://{self.netloc}{self.base_path}"
