"""
Gen-2 job payload.

The payload is a typed pydantic model; optional fields stay None and are
dropped on serialization. Gen2PayloadBuilder sets each optional field only
when its precondition holds:

- width / height: text prompt without image prompt
- image_prompt / init_image: image prompt uploaded
- use_motion_vectors / motion_vector: all six motion components supplied
- use_motion_score / motion_score: otherwise
- style: text-only jobs
"""

from typing import Any, Optional, Union

from pydantic import BaseModel

from .fetch import short_id
from .models import MotionVector

DEFAULT_MOTION_SCORE = 22
SECONDS_PER_GENERATION = 4
ASSET_GROUP_NAME = "Gen-2"


class MotionVectorPayload(BaseModel):
    """Camera motion in Runway's wire format."""
    x: float
    y: float
    z: float
    r: float
    bg_x_pan: float
    bg_y_pan: float


class Gen2Options(BaseModel):
    mode: str = "gen2"
    seed: Optional[int] = None
    interpolate: bool = False
    upscale: bool = False
    watermark: bool = False

    text_prompt: Optional[str] = None
    image_prompt: Optional[str] = None
    init_image: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    style: Optional[str] = None

    use_motion_score: Optional[bool] = None
    motion_score: Optional[int] = None
    use_motion_vectors: Optional[bool] = None
    motion_vector: Optional[MotionVectorPayload] = None


class TaskOptions(BaseModel):
    name: str
    seconds: int = SECONDS_PER_GENERATION
    gen2Options: Gen2Options
    exploreMode: bool = True
    assetGroupName: str = ASSET_GROUP_NAME


class TaskPayload(BaseModel):
    """Body of POST /v1/tasks."""
    taskType: str = "gen2"
    internal: bool = False
    options: TaskOptions
    asTeamId: Union[int, str]

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


def job_name(
    seed: Optional[int],
    prompt: Optional[str],
    motion: Optional[int],
    with_image: bool = False,
) -> str:
    """Name shown in the Runway asset library."""
    if motion is None:
        motion = DEFAULT_MOTION_SCORE
    if with_image:
        return f"Gen-2 {seed}, {prompt}, IMG-{short_id(4, numeric_only=True)}, M {motion}"
    return f"Gen-2 {seed}, {prompt}, M {motion}"


class Gen2PayloadBuilder:
    """Step-wise construction of a TaskPayload."""

    def __init__(self, team_id: Union[int, str], seed: Optional[int] = None):
        self.team_id = team_id
        self._options = Gen2Options(seed=seed)
        self._name = ""
        self._has_image = False

    def name(self, prompt: Optional[str], motion: Optional[int], with_image: bool = False):
        self._name = job_name(self._options.seed, prompt, motion, with_image=with_image)
        return self

    def flags(self, upscale: bool = False, interpolate: bool = False):
        self._options.upscale = upscale
        self._options.interpolate = interpolate
        return self

    def text_prompt(self, prompt: Optional[str]):
        if prompt:
            self._options.text_prompt = prompt
        return self

    def image(self, url: str):
        """Use an uploaded asset URL as both the image prompt and the init image."""
        self._options.image_prompt = url
        self._options.init_image = url
        self._has_image = True
        return self

    def dimensions(self, width: Optional[int], height: Optional[int]):
        # Image-driven jobs take their size from the image
        if self._options.text_prompt and not self._has_image:
            self._options.width = width
            self._options.height = height
        return self

    def motion(self, vector: Optional[MotionVector]):
        if vector is not None:
            self._options.use_motion_vectors = True
            self._options.motion_vector = MotionVectorPayload(
                x=-vector.x,
                y=vector.y,
                z=vector.z,
                r=vector.r,
                bg_x_pan=vector.pan_x,
                bg_y_pan=vector.pan_y,
            )
            self._options.use_motion_score = None
            self._options.motion_score = None
        else:
            self._options.use_motion_score = True
            self._options.motion_score = DEFAULT_MOTION_SCORE
            self._options.use_motion_vectors = None
            self._options.motion_vector = None
        return self

    def style(self, style: Optional[str]):
        if style and not self._has_image:
            self._options.style = style
        return self

    def build(self) -> TaskPayload:
        return TaskPayload(
            options=TaskOptions(name=self._name, gen2Options=self._options),
            asTeamId=self.team_id,
        )
