"""
Data model for the Runway client.

Credentials and proxy endpoints are supplied by the caller; task handles,
upload sessions and video assets are produced by the client and never
mutated afterwards.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union


class ServiceModel(str, Enum):
    """Runway models a credential can be bound to."""
    RUNWAY_GEN2 = "runway-gen2"


class TaskStatus(str, Enum):
    """Remote job states reported by /v1/tasks."""
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    THROTTLED = "THROTTLED"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


@dataclass
class ServiceCredential:
    """An authentication identity for the Runway web API."""
    api_key: str
    weight: int = 1
    service_model: ServiceModel = ServiceModel.RUNWAY_GEN2


@dataclass(frozen=True)
class ProxyEndpoint:
    """A reverse proxy that forwards requests to the Runway API."""
    id: str
    server: str


@dataclass(frozen=True)
class MotionVector:
    """Camera motion components; every component is required."""
    x: float
    y: float
    z: float
    r: float
    pan_x: float
    pan_y: float


@dataclass
class GenerationRequest:
    """Request for a Gen-2 video."""
    prompt: Optional[str] = None
    image_prompt: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None

    # Motion vector mode is used only when all six are set
    x: Optional[float] = None
    y: Optional[float] = None
    z: Optional[float] = None
    r: Optional[float] = None
    pan_x: Optional[float] = None
    pan_y: Optional[float] = None

    style: Optional[str] = None
    upscale: bool = False
    interpolate: bool = False
    seed: Optional[int] = None
    motion: Optional[int] = None

    # Correlation id forwarded to proxies
    trace_id: Optional[str] = None

    def motion_vector(self) -> Optional[MotionVector]:
        """Return the motion vector if every component was supplied."""
        components = (self.x, self.y, self.z, self.r, self.pan_x, self.pan_y)
        if any(c is None for c in components):
            return None
        return MotionVector(*components)


@dataclass(frozen=True)
class TaskHandle:
    """Identifier pair needed to poll a submitted job."""
    task_id: str
    team_id: str


@dataclass(frozen=True)
class SubmitResult:
    """Result of a successful submission."""
    api_key: str
    handle: TaskHandle


@dataclass
class UploadSession:
    """State bridging the reserve and commit phases of an upload."""
    file_id: str
    upload_urls: list[str]
    upload_headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Pending:
    """Polling outcome for a job that has not finished yet."""
    handle: TaskHandle
    status: Optional[str] = None
    progress_text: Optional[str] = None


@dataclass(frozen=True)
class VideoAsset:
    """A finished Gen-2 video with its downloaded content."""
    id: str
    user: Optional[str]
    created_by: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    parent_asset_group_id: Optional[str]
    filename: Optional[str]
    url: str
    file_size: Optional[int]
    is_directory: bool
    private: bool
    private_in_team: bool
    deleted: bool
    reported: bool
    favorite: bool

    frame_rate: Optional[float]
    duration: Optional[float]
    width: Optional[int]
    height: Optional[int]

    content: bytes = field(repr=False)
    content_type: Optional[str]

    provider: str
    model: str
    api_key: str
    proxy: str
    remaining_credits: Optional[Union[int, float]]

    @classmethod
    def from_artifact(cls, artifact: dict[str, Any], **extra: Any) -> "VideoAsset":
        """Build an asset from a task artifact plus client-side fields."""
        metadata = artifact.get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}
        size = metadata.get("size")
        if not isinstance(size, dict):
            size = {}
        return cls(
            id=artifact.get("taskId"),
            user=artifact.get("userId"),
            created_by=artifact.get("createdBy"),
            created_at=_parse_timestamp(artifact.get("createdAt")),
            updated_at=_parse_timestamp(artifact.get("updatedAt")),
            parent_asset_group_id=artifact.get("parentAssetGroupId"),
            filename=artifact.get("filename"),
            url=artifact["url"],
            file_size=artifact.get("fileSize"),
            is_directory=bool(artifact.get("isDirectory", False)),
            private=bool(artifact.get("private", False)),
            private_in_team=bool(artifact.get("privateInTeam", False)),
            deleted=bool(artifact.get("deleted", False)),
            reported=bool(artifact.get("reported", False)),
            favorite=bool(artifact.get("favorite", False)),
            frame_rate=metadata.get("frameRate"),
            duration=metadata.get("duration"),
            width=size.get("width"),
            height=size.get("height"),
            **extra,
        )


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
