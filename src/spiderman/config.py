"""
Crawl configuration.
"""
from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse

DEFAULT_DEPTH = 0
DEFAULT_PARALLEL = 5
DEFAULT_WAIT = 1.0
DEFAULT_TIMEOUT = 15.0
DEFAULT_USER_AGENT = "spider-man/1.0"


class ConfigurationError(ValueError):
    """Raised when a crawl is started with an unusable configuration."""


@dataclass(frozen=True, slots=True)
class CrawlConfig:
    """Settings for one crawl session. Depth 0 means unlimited."""
    domain: str
    depth: int = DEFAULT_DEPTH
    parallel: int = DEFAULT_PARALLEL
    wait: float = DEFAULT_WAIT
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    retries: int = 0

    def validate(self) -> None:
        """Raise ConfigurationError if the session cannot run with these values."""
        try:
            parsed = urlparse(self.domain)
            # Accessing .port validates it
            parsed.port
        except ValueError as e:
            raise ConfigurationError(f"Invalid root URL {self.domain!r}: {e}") from e
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ConfigurationError(f"Root URL must be an absolute http(s) URL: {self.domain!r}")
        if self.depth < 0:
            raise ConfigurationError(f"Depth must not be negative, got {self.depth}")
        if self.parallel < 1:
            raise ConfigurationError(f"Parallel must be a positive integer, got {self.parallel}")
        if self.wait < 0:
            raise ConfigurationError(f"Wait must not be negative, got {self.wait}")
        if self.timeout <= 0:
            raise ConfigurationError(f"Timeout must be positive, got {self.timeout}")
        if self.retries < 0:
            raise ConfigurationError(f"Retries must not be negative, got {self.retries}")
