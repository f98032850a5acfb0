"""Helpers for pulling remote files into memory and generating short ids."""

import logging
import random
import string
from typing import Optional

import httpx

from .errors import NetworkError

logger = logging.getLogger(__name__)

DEFAULT_DOWNLOAD_TIMEOUT = 600.0  # 10 min for video downloads

ALPHANUMERIC = string.digits + string.ascii_uppercase + string.ascii_lowercase


def short_id(size: int, numeric_only: bool = False) -> str:
    """Random id of ``size`` characters, digits only when ``numeric_only``."""
    alphabet = string.digits if numeric_only else ALPHANUMERIC
    return "".join(random.choices(alphabet, k=size))


async def url_as_bytes(
    url: str,
    timeout: float = DEFAULT_DOWNLOAD_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> tuple[bytes, Optional[str]]:
    """
    Download a URL into memory.

    Args:
        url: The URL to fetch
        timeout: Overall timeout in seconds
        transport: Optional httpx transport override

    Returns:
        Tuple of (content, content type)
    """
    try:
        async with httpx.AsyncClient(
            timeout=timeout, transport=transport, follow_redirects=True
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise NetworkError(
            f"Download of {url} failed: HTTP {e.response.status_code}",
            status_code=e.response.status_code,
        ) from e
    except httpx.HTTPError as e:
        raise NetworkError(f"Download of {url} failed: {type(e).__name__}: {e}") from e

    logger.debug(f"Downloaded {url} ({len(response.content) / 1024:.1f} KB)")
    return response.content, response.headers.get("content-type")
