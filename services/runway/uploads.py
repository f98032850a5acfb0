"""
Image upload pipeline.

Turns a public image URL into an asset URL hosted by Runway:

1. reserve:  POST /v1/uploads            -> file id, presigned part URLs
2. transfer: PUT <uploadUrls[0]>          -> ETag
3. commit:   POST /v1/uploads/{id}/complete -> hosted URL

Only single-part uploads are supported.
"""

import logging
import re
from typing import Awaitable, Callable, Optional

import httpx

from .errors import InvalidInputError, RunwayError, UploadError
from .fetch import url_as_bytes
from .models import UploadSession
from .transport import ApiSession

logger = logging.getLogger(__name__)

FILENAME_PATTERN = re.compile(r"/([^/?]+)(\?.*)?$")

Fetcher = Callable[..., Awaitable[tuple[bytes, Optional[str]]]]


def filename_from_url(url: str) -> str:
    """Extract the last path segment of ``url``, ignoring the query string."""
    match = FILENAME_PATTERN.search(url)
    if not match:
        raise InvalidInputError(f"Image prompt URL has no file name: {url}")
    return match.group(1)


class UploadPipeline:
    """
    Runs reserve / transfer / commit for one image.

    Usage:
        pipeline = UploadPipeline(session)
        asset_url = await pipeline.upload("https://example.com/cat.png")
    """

    def __init__(self, session: ApiSession, fetch: Fetcher = url_as_bytes):
        self.session = session
        self.fetch = fetch

    async def upload(self, image_url: str, trace_id: Optional[str] = None) -> str:
        """
        Upload an image and return its Runway-hosted URL.

        Raises:
            InvalidInputError: the URL has no file name
            UploadError: any phase failed
        """
        filename = filename_from_url(image_url)

        upload = await self._reserve(image_url, filename, trace_id)
        etag = await self._transfer(image_url, upload)
        url = await self._commit(image_url, upload, etag, trace_id)

        logger.info(f"Uploaded {filename} as {upload.file_id}")
        return url

    async def _reserve(
        self, image_url: str, filename: str, trace_id: Optional[str]
    ) -> UploadSession:
        payload = {"filename": filename, "numberOfParts": 1, "type": "DATASET"}
        try:
            response, _ = await self.session.request(
                "POST", "/v1/uploads", json=payload, trace_id=trace_id
            )
            response.raise_for_status()
            data = response.json()
            upload = UploadSession(
                file_id=data["id"],
                upload_urls=list(data["uploadUrls"]),
                upload_headers=dict(data.get("uploadHeaders") or {}),
            )
        except (RunwayError, httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            raise self._error("reserve", image_url, e) from e

        if not upload.upload_urls:
            raise UploadError(
                f"Error upload image {image_url}: reserve returned no upload URL",
                phase="reserve",
                source_url=image_url,
            )
        return upload

    async def _transfer(self, image_url: str, upload: UploadSession) -> str:
        try:
            content, _ = await self.fetch(image_url)
            headers = {**upload.upload_headers, "Content-Length": str(len(content))}

            # Presigned storage URL: no bearer token, no browser headers
            async with httpx.AsyncClient(
                timeout=self.session.config.runway.download_timeout,
                transport=self.session.transport,
            ) as client:
                response = await client.put(upload.upload_urls[0], content=content, headers=headers)
            response.raise_for_status()
        except (RunwayError, httpx.HTTPError) as e:
            raise self._error("transfer", image_url, e) from e

        etag = response.headers.get("etag")
        if not etag:
            raise UploadError(
                f"Error upload image {image_url}: storage returned no ETag",
                phase="transfer",
                source_url=image_url,
            )
        return etag

    async def _commit(
        self, image_url: str, upload: UploadSession, etag: str, trace_id: Optional[str]
    ) -> str:
        payload = {"parts": [{"PartNumber": 1, "ETag": etag}]}
        try:
            response, _ = await self.session.request(
                "POST",
                f"/v1/uploads/{upload.file_id}/complete",
                json=payload,
                trace_id=trace_id,
            )
            response.raise_for_status()
            url = response.json().get("url")
        except (RunwayError, httpx.HTTPError, ValueError, AttributeError) as e:
            raise self._error("commit", image_url, e) from e

        if not url:
            raise UploadError(
                f"Error upload image {image_url}: commit returned no URL",
                phase="commit",
                source_url=image_url,
            )
        return url

    @staticmethod
    def _error(phase: str, image_url: str, cause: Exception) -> UploadError:
        logger.error(f"Upload {phase} failed for {image_url}: {cause}")
        return UploadError(
            f"Error upload image {image_url} ({phase}): {type(cause).__name__}: {cause}",
            phase=phase,
            source_url=image_url,
        )
