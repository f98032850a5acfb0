"""
Configuration management for the Runway session client.

Centralizes all configuration including:
- Runway endpoint and browser origin
- API key pool and optional pinned key
- Proxy endpoints and proxy authentication
- Fixed request timeouts
"""

import os
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlsplit


def _split_env(name: str) -> list[str]:
    """Read a comma separated environment variable into a list."""
    raw = os.getenv(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class RunwayAPIConfig:
    """Runway web API configuration."""

    base_url: str = field(
        default_factory=lambda: os.getenv("RUNWAY_BASE_URL", "https://api.runwayml.com")
    )
    origin: str = field(
        default_factory=lambda: os.getenv("RUNWAY_ORIGIN", "https://app.runwayml.com")
    )

    # "key" or "key:weight" entries
    api_keys: list[str] = field(default_factory=lambda: _split_env("RUNWAY_API_KEYS"))
    pinned_api_key: Optional[str] = field(
        default_factory=lambda: os.getenv("RUNWAY_API_KEY") or None
    )

    # Timeouts are fixed, not configurable per call
    request_timeout: float = 60.0
    download_timeout: float = 600.0

    @property
    def target_host(self) -> str:
        """Upstream host announced to proxies via X-Target-Host."""
        return urlsplit(self.base_url).netloc


@dataclass
class ProxyConfig:
    """Reverse proxy configuration."""
    api_key: str = field(default_factory=lambda: os.getenv("PROXY_API_KEY", ""))
    servers: list[str] = field(default_factory=lambda: _split_env("PROXY_SERVERS"))


@dataclass
class Config:
    """Main configuration class."""

    runway: RunwayAPIConfig = field(default_factory=RunwayAPIConfig)
    proxy: ProxyConfig = field(default_factory=ProxyConfig)

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls()

    def validate(self) -> list[str]:
        """Validate configuration and return list of issues."""
        issues = []

        if not self.runway.api_keys and not self.runway.pinned_api_key:
            issues.append("No Runway API key configured (RUNWAY_API_KEYS or RUNWAY_API_KEY)")

        if not self.runway.target_host:
            issues.append(f"RUNWAY_BASE_URL has no host: {self.runway.base_url!r}")

        if self.proxy.servers and not self.proxy.api_key:
            issues.append("PROXY_SERVERS configured without PROXY_API_KEY")

        return issues


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reload_config():
    """Reload configuration from environment."""
    global _config
    _config = Config.from_env()
