"""
Gen-2 job submission and polling.

TaskSubmitter builds and posts the job payload inside the client's serial
queue. TaskPoller reads a job once and maps its status to a VideoAsset, a
Pending marker, or an exception. Neither retries; re-polling is up to the
caller.
"""

import logging
from typing import Optional, Union

from .errors import (
    AuthMismatchError,
    GenerationError,
    NetworkError,
    RunwayError,
    TaskFailureError,
)
from .fetch import url_as_bytes
from .models import (
    GenerationRequest,
    Pending,
    ServiceCredential,
    SubmitResult,
    TaskHandle,
    TaskStatus,
    VideoAsset,
)
from .payload import Gen2PayloadBuilder, TaskPayload
from .serializer import SerialTaskQueue
from .transport import ApiSession
from .uploads import Fetcher, UploadPipeline

logger = logging.getLogger(__name__)

PERMISSION_DENIED = "Permission denied."
PROVIDER = "runway"


class TaskSubmitter:
    """Submits Gen-2 jobs one at a time."""

    def __init__(
        self,
        session: ApiSession,
        queue: SerialTaskQueue,
        uploads: UploadPipeline,
    ):
        self.session = session
        self.queue = queue
        self.uploads = uploads

    async def submit(self, request: GenerationRequest) -> SubmitResult:
        """
        Submit a generation job.

        Args:
            request: The generation parameters

        Returns:
            SubmitResult with the credential's API key and the task handle

        Raises:
            GenerationError: the job could not be submitted
        """
        handle = await self.queue.submit(lambda: self._submit_now(request))
        return SubmitResult(api_key=self.session.credential.api_key, handle=handle)

    async def _submit_now(self, request: GenerationRequest) -> TaskHandle:
        try:
            user = await self.session.get_profile(request.trace_id)
            team_id = user.get("id")
            if not team_id:
                raise GenerationError("Failed to get Runway user id")

            payload = await self.build_payload(request, team_id)

            response, _ = await self.session.request(
                "POST", "/v1/tasks", json=payload.to_dict(), trace_id=request.trace_id
            )
            if not response.is_success:
                raise NetworkError(
                    f"POST /v1/tasks returned HTTP {response.status_code}: {response.text[:200]}",
                    status_code=response.status_code,
                )
            try:
                task_id = response.json()["task"]["id"]
            except (ValueError, KeyError, TypeError) as e:
                raise GenerationError(f"Malformed task response: {response.text[:200]}") from e
            if not task_id:
                raise GenerationError("Runway returned an empty task id")

        except GenerationError as e:
            logger.error(f"Gen-2 submission failed: {e}")
            raise
        except (RunwayError, ValueError) as e:
            logger.error(f"Gen-2 submission failed: {e}")
            raise GenerationError(f"Failed to generate video. Error: {e}") from e

        logger.info(f"Gen-2 task {task_id} submitted for team {team_id}")
        return TaskHandle(task_id=str(task_id), team_id=str(team_id))

    async def build_payload(self, request: GenerationRequest, team_id) -> TaskPayload:
        """Build the job payload, uploading the image prompt if there is one."""
        builder = (
            Gen2PayloadBuilder(team_id, seed=request.seed)
            .name(request.prompt, request.motion, with_image=bool(request.image_prompt))
            .flags(upscale=request.upscale, interpolate=request.interpolate)
            .text_prompt(request.prompt)
        )

        if request.image_prompt:
            url = await self.uploads.upload(request.image_prompt, trace_id=request.trace_id)
            builder.image(url)

        return (
            builder
            .dimensions(request.width, request.height)
            .motion(request.motion_vector())
            .style(request.style)
            .build()
        )


class TaskPoller:
    """Reads a job's status once and resolves finished jobs to a VideoAsset."""

    def __init__(self, session: ApiSession, fetch: Fetcher = url_as_bytes):
        self.session = session
        self.fetch = fetch

    @property
    def credential(self) -> ServiceCredential:
        return self.session.credential

    async def poll(
        self, handle: TaskHandle, trace_id: Optional[str] = None
    ) -> Union[VideoAsset, Pending]:
        """
        Poll a job.

        Returns:
            VideoAsset when the job succeeded, Pending while it is still running

        Raises:
            AuthMismatchError: the active credential does not own the job
            TaskFailureError: the job failed remotely
            NetworkError: the status, download or credit lookup failed
        """
        path = f"/v1/tasks/{handle.task_id}?asTeamId={handle.team_id}"
        response, base_url = await self.session.request("GET", path, trace_id=trace_id)

        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            data = {}

        if data.get("error") == PERMISSION_DENIED:
            raise AuthMismatchError(
                f"Task {handle.task_id} is not owned by key {self.credential.api_key[:6]}..."
            )

        if not response.is_success:
            raise NetworkError(
                f"GET task {handle.task_id} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        task = data.get("task") or {}
        if not isinstance(task, dict):
            raise NetworkError(
                f"Malformed task response for {handle.task_id}: task is {type(task).__name__}"
            )
        status = task.get("status")

        if status == TaskStatus.FAILED.value:
            progress_text = task.get("progressText")
            logger.warning(f"Gen-2 task {handle.task_id} failed: {progress_text}")
            raise TaskFailureError(
                f"Task {handle.task_id} FAILED: {progress_text}",
                progress_text=progress_text,
            )

        if status != TaskStatus.SUCCEEDED.value:
            return Pending(handle=handle, status=status, progress_text=task.get("progressText"))

        artifacts = task.get("artifacts") or []
        if not isinstance(artifacts, list) or (artifacts and not isinstance(artifacts[0], dict)):
            raise NetworkError(f"Malformed artifacts in task response for {handle.task_id}")
        if not artifacts or not artifacts[0].get("url"):
            raise TaskFailureError(f"Task {handle.task_id} SUCCEEDED without artifacts")

        return await self._resolve(artifacts[0], base_url, trace_id)

    async def _resolve(self, artifact: dict, base_url: str, trace_id: Optional[str]) -> VideoAsset:
        content, content_type = await self.fetch(artifact["url"])
        user = await self.session.get_profile(trace_id)

        asset = VideoAsset.from_artifact(
            artifact,
            content=content,
            content_type=content_type,
            provider=PROVIDER,
            model=self.credential.service_model.value,
            api_key=self.credential.api_key,
            proxy=base_url,
            remaining_credits=user.get("gpuCredits"),
        )
        logger.info(
            f"Gen-2 task {asset.id} resolved: {asset.width}x{asset.height}, "
            f"{asset.duration}s, {len(content) / 1024 / 1024:.1f} MB"
        )
        return asset
