"""
Runway Client Services

- runway: Runway Gen-2 web API client
"""

from .runway import RunwayClient, new_runway_client

__all__ = [
    "RunwayClient",
    "new_runway_client",
]
