"""
Request plumbing for the Runway web API.

- ProxySelector picks a proxy endpoint (or the direct API) per attempt
- RequestConfigBuilder assembles headers, timeout and a cancel handle
- ApiSession sends requests through a cookie-carrying httpx client
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

import httpx

from core.config import Config, get_config

from .errors import NetworkError
from .fetch import short_id
from .fingerprint import FingerprintProvider, RandomFingerprint
from .models import ProxyEndpoint, ServiceCredential

logger = logging.getLogger(__name__)

SENTRY_TRACE = "555124acd49d49909707a4bcb9faccd3-aa18517b9717e519-0"


class ProxySelector:
    """Uniform random choice over the proxy pool, falling back to the direct URL."""

    def __init__(self, pool: Sequence[ProxyEndpoint], direct_base_url: str):
        self.pool = list(pool)
        self.direct_base_url = direct_base_url

    def select(self) -> tuple[Optional[ProxyEndpoint], str]:
        """Return (proxy, base URL); proxy is None for direct requests."""
        if not self.pool:
            return None, self.direct_base_url
        proxy = random.choice(self.pool)
        return proxy, proxy.server


class CancelHandle:
    """Cancels the request attempt it is bound to."""

    def __init__(self):
        self._task: Optional[asyncio.Future] = None
        self.cancelled = False

    def bind(self, task: asyncio.Future):
        self._task = task
        if self.cancelled:
            task.cancel()

    def cancel(self):
        self.cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()


@dataclass
class RequestConfig:
    """Per-attempt HTTP configuration."""
    timeout: float
    headers: dict[str, str]
    proxied: bool = False
    cancel: CancelHandle = field(default_factory=CancelHandle)
    # httpx enforces no request/response body limit
    max_body_length: Optional[int] = None
    max_content_length: Optional[int] = None


class RequestConfigBuilder:
    """Builds browser-like request configuration for direct or proxied calls."""

    def __init__(self, config: Config, fingerprint: FingerprintProvider):
        self.config = config
        self.fingerprint = fingerprint

    def build(self, trace_id: Optional[str] = None, via_proxy: bool = False) -> RequestConfig:
        origin = self.config.runway.origin
        headers = {
            "Content-Type": "application/json",
            "Accept-Encoding": "gzip, deflate, br, zstd",
            "Accept-Language": "zh-CN,zh;q=0.9",
            "Origin": origin,
            "Referer": f"{origin}/",
            "Sec-Ch-Ua": self.fingerprint.sec_ch_ua(),
            "Sec-Ch-Ua-Mobile": "?0",
            "Sec-Ch-Ua-Platform": '"macOS"',
            "Sec-Fetch-Dest": "empty",
            "Sec-Fetch-Mode": "cors",
            "Sec-Fetch-Site": "same-site",
            "Sentry-Trace": SENTRY_TRACE,
        }
        if via_proxy:
            headers.update({
                "X-Proxy-Api-Key": self.config.proxy.api_key,
                "X-Target-Host": self.config.runway.target_host,
                "x-trace-id": trace_id or short_id(16),
                "x-start-at": str(int(time.time() * 1000)),
            })

        return RequestConfig(
            timeout=self.config.runway.request_timeout,
            headers=headers,
            proxied=via_proxy,
        )


class ApiSession:
    """
    Authenticated session against the Runway web API.

    Usage:
        session = ApiSession(credential, proxies)
        response, base_url = await session.request("GET", "/v1/profile")
        await session.close()
    """

    def __init__(
        self,
        credential: ServiceCredential,
        proxies: Sequence[ProxyEndpoint] = (),
        config: Optional[Config] = None,
        fingerprint: Optional[FingerprintProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.credential = credential
        self.config = config or get_config()
        self.fingerprint = fingerprint or RandomFingerprint()
        self.transport = transport

        self.proxy_selector = ProxySelector(proxies, self.config.runway.base_url)
        self.config_builder = RequestConfigBuilder(self.config, self.fingerprint)

        # Cookies persist across calls like a browser session
        self._http = httpx.AsyncClient(
            transport=transport,
            headers={
                "User-Agent": self.fingerprint.user_agent(),
                "Authorization": f"Bearer {credential.api_key}",
            },
        )

    async def close(self):
        """Close the HTTP client."""
        await self._http.aclose()

    async def request(
        self,
        method: str,
        path: str,
        json: Optional[Any] = None,
        trace_id: Optional[str] = None,
        cancel: Optional[CancelHandle] = None,
    ) -> tuple[httpx.Response, str]:
        """
        Send one request attempt.

        Args:
            method: HTTP method
            path: API path starting with "/"
            json: Optional JSON body
            trace_id: Correlation id forwarded to proxies
            cancel: Handle the caller can use to abort this attempt

        Returns:
            Tuple of (response, base URL the request went to)
        """
        proxy, base_url = self.proxy_selector.select()
        config = self.config_builder.build(trace_id, via_proxy=proxy is not None)
        if cancel is not None:
            config.cancel = cancel
        url = f"{base_url.rstrip('/')}{path}"

        if proxy is not None:
            logger.debug(f"{method} {path} via proxy {proxy.id}")

        attempt = asyncio.ensure_future(
            self._http.request(
                method, url, json=json, headers=config.headers, timeout=config.timeout
            )
        )
        config.cancel.bind(attempt)
        try:
            response = await attempt
        except asyncio.CancelledError:
            if not config.cancel.cancelled:
                raise
            raise NetworkError(f"{method} {path} was cancelled") from None
        except httpx.TimeoutException as e:
            raise NetworkError(
                f"{method} {path} timed out after {config.timeout:.0f}s: {type(e).__name__}"
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"{method} {path} failed: {type(e).__name__}: {e}") from e

        return response, base_url

    async def get_profile(self, trace_id: Optional[str] = None) -> dict[str, Any]:
        """Fetch /v1/profile and return its ``user`` object."""
        response, _ = await self.request("GET", "/v1/profile", trace_id=trace_id)
        if response.status_code != 200:
            raise NetworkError(
                f"Failed to get Runway profile: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            user = response.json()["user"]
        except (ValueError, KeyError, TypeError) as e:
            raise NetworkError(f"Malformed Runway profile response: {e}") from e
        if not isinstance(user, dict):
            raise NetworkError(f"Malformed Runway profile response: user is {type(user).__name__}")
        return user
