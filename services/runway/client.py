"""
Runway Gen-2 Client

Single interface over the Runway web API session:
- Gen-2 job submission, one in flight per client
- Image prompt upload through Runway's object storage
- Task polling and video download
- Optional rotating proxies

Usage:
    client = new_runway_client(credentials, proxies)
    async with client:
        submitted = await client.generate_video(GenerationRequest(prompt="a cat", seed=7))
        result = await client.get_video_by_task(submitted.handle)
        if isinstance(result, Pending):
            ...  # poll again later
"""

import functools
import logging
from typing import Any, Optional, Sequence, Union

import httpx

from core.config import Config

from .credentials import resolve_credential
from .fetch import url_as_bytes
from .fingerprint import FingerprintProvider
from .models import (
    GenerationRequest,
    Pending,
    ProxyEndpoint,
    ServiceCredential,
    SubmitResult,
    TaskHandle,
    VideoAsset,
)
from .serializer import SerialTaskQueue
from .tasks import TaskPoller, TaskSubmitter
from .transport import ApiSession
from .uploads import UploadPipeline

logger = logging.getLogger(__name__)


class RunwayClient:
    """
    Client for one Runway credential.

    Submissions go through a per-instance serial queue. Polling, uploads and
    profile lookups are not serialized.
    """

    def __init__(
        self,
        credential: ServiceCredential,
        proxies: Sequence[ProxyEndpoint] = (),
        config: Optional[Config] = None,
        fingerprint: Optional[FingerprintProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the Runway client.

        Args:
            credential: The credential all requests authenticate with
            proxies: Proxy pool; empty means direct requests
            config: Optional config override
            fingerprint: Browser fingerprint provider (randomized by default)
            transport: Optional httpx transport, used by tests
        """
        self.credential = credential
        self.session = ApiSession(
            credential, proxies, config=config, fingerprint=fingerprint, transport=transport
        )
        fetch = functools.partial(
            url_as_bytes,
            timeout=self.session.config.runway.download_timeout,
            transport=transport,
        )

        self.queue = SerialTaskQueue(name=f"runway:{credential.api_key[:6]}")
        self.uploads = UploadPipeline(self.session, fetch=fetch)
        self.submitter = TaskSubmitter(self.session, self.queue, self.uploads)
        self.poller = TaskPoller(self.session, fetch=fetch)

    @property
    def api_key(self) -> str:
        return self.credential.api_key

    async def __aenter__(self) -> "RunwayClient":
        return self

    async def __aexit__(self, *exc_info: Any):
        await self.close()

    async def close(self):
        """Close the HTTP session."""
        await self.session.close()

    async def get_user_id(self, trace_id: Optional[str] = None) -> Optional[str]:
        """Return the id of the account behind the credential."""
        user = await self.session.get_profile(trace_id)
        user_id = user.get("id")
        return str(user_id) if user_id is not None else None

    async def get_credits(self, trace_id: Optional[str] = None) -> Optional[Union[int, float]]:
        """Return the remaining GPU credits."""
        user = await self.session.get_profile(trace_id)
        return user.get("gpuCredits")

    async def generate_video(self, request: GenerationRequest) -> SubmitResult:
        """Submit a Gen-2 job. See TaskSubmitter.submit."""
        return await self.submitter.submit(request)

    async def get_video_by_task(
        self, handle: TaskHandle, trace_id: Optional[str] = None
    ) -> Union[VideoAsset, Pending]:
        """Poll a job once. See TaskPoller.poll."""
        return await self.poller.poll(handle, trace_id=trace_id)

    async def upload_image(self, image_url: str, trace_id: Optional[str] = None) -> str:
        """Upload an image and return the Runway-hosted URL."""
        return await self.uploads.upload(image_url, trace_id=trace_id)


def new_runway_client(
    credentials: Sequence[ServiceCredential],
    proxies: Sequence[ProxyEndpoint] = (),
    api_key: Optional[str] = None,
    **kwargs: Any,
) -> RunwayClient:
    """
    Create a client for a weighted-random credential, or the pinned ``api_key``.

    Extra keyword arguments are passed to RunwayClient.
    """
    credential = resolve_credential(credentials, api_key=api_key)
    logger.info(
        f"Runway client using key {credential.api_key[:6]}... with {len(proxies)} proxies"
    )
    return RunwayClient(credential, proxies, **kwargs)
