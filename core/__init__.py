"""
Runway Client Core Components

Provides foundational infrastructure shared by the client and CLI:
- Environment-driven configuration
- Logging setup
"""

from .config import Config, get_config, reload_config
from .logs import configure_logging

__all__ = ["Config", "get_config", "reload_config", "configure_logging"]
