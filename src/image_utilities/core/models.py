"""Shared data models for image utilities."""

import os
import tempfile
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .exceptions import ConfigurationError

ORIENTATION_UNDEFINED = 0


class Size(BaseModel):
    """Width/height pair. A missing dimension leaves that axis unconstrained."""

    model_config = ConfigDict(frozen=True)

    width: Optional[int] = Field(default=None, ge=0)
    height: Optional[int] = Field(default=None, ge=0)

    @property
    def is_complete(self) -> bool:
        return self.width is not None and self.height is not None

    def as_tuple(self) -> Tuple[int, int]:
        """Return ``(width, height)`` for APIs such as ``Image.resize``."""
        if self.width is None or self.height is None:
            raise ValueError(f"Size {self} has an unknown dimension")
        return self.width, self.height

    def __str__(self) -> str:
        width = "?" if self.width is None else self.width
        height = "?" if self.height is None else self.height
        return f"{width}x{height}"


class ScaleMode(str, Enum):
    """Directional scale modes. Values are the names used on the wire."""

    FIT_KEEP_ASPECT_RATIO = "FitKeepAspectRatio"
    FILL_KEEP_ASPECT_RATIO = "FillKeepAspectRatio"
    FIT_ANY_DIRECTION_KEEP_ASPECT_RATIO = "FitAnyDirectionKeepAspectRatio"
    FILL_ANY_DIRECTION_KEEP_ASPECT_RATIO = "FillAnyDirectionKeepAspectRatio"

    @property
    def is_any_direction(self) -> bool:
        return self in (
            ScaleMode.FIT_ANY_DIRECTION_KEEP_ASPECT_RATIO,
            ScaleMode.FILL_ANY_DIRECTION_KEEP_ASPECT_RATIO,
        )

    @property
    def is_fill(self) -> bool:
        return self in (
            ScaleMode.FILL_KEEP_ASPECT_RATIO,
            ScaleMode.FILL_ANY_DIRECTION_KEEP_ASPECT_RATIO,
        )


class DirectionalPolicy(BaseModel):
    """Downscale-only policy driven by one of the four scale modes."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["directional"] = "directional"
    mode: ScaleMode = ScaleMode.FIT_ANY_DIRECTION_KEEP_ASPECT_RATIO


class BoundedScalePolicy(BaseModel):
    """Single scale factor policy, optionally allowed to upscale."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["bounded_scale"] = "bounded_scale"
    allow_upscale: bool = False


ScalePolicy = Annotated[
    Union[DirectionalPolicy, BoundedScalePolicy], Field(discriminator="kind")
]


class TranscodeRequest(BaseModel):
    """A single save-as-JPEG request."""

    model_config = ConfigDict(frozen=True)

    source_path: str
    destination_path: Optional[str] = None
    quality: Optional[int] = None
    bound: Size = Field(default_factory=Size)
    policy: ScalePolicy

    @model_validator(mode="before")
    @classmethod
    def _default_policy(cls, data: Any) -> Any:
        """Pick the policy when none is given.

        A complete bound selects the directional default, anything else
        bounded scale without upscaling.
        """
        if not isinstance(data, dict) or data.get("policy") is not None:
            return data
        bound = data.get("bound")
        if isinstance(bound, dict):
            complete = bound.get("width") is not None and bound.get("height") is not None
        else:
            complete = isinstance(bound, Size) and bound.is_complete
        if complete:
            policy: Any = DirectionalPolicy()
        else:
            policy = BoundedScalePolicy()
        return {**data, "policy": policy}


class TranscodeResult(BaseModel):
    """Result of a successful transcode."""

    path: str
    source_path: str = ""
    size: Size = Field(default_factory=Size)
    quality: int = 100
    resampled: bool = False
    metadata_tags_copied: int = 0
    processing_time: float = 0.0


class ImageProperties(BaseModel):
    """Bounds and EXIF orientation of an image file."""

    model_config = ConfigDict(frozen=True)

    width: int
    height: int
    orientation: int = ORIENTATION_UNDEFINED


class PluginSettings(BaseModel):
    """Configuration shared by every request served by a plugin."""

    scratch_dir: str = Field(default_factory=tempfile.gettempdir)
    default_quality: int = Field(default=100, ge=1, le=100)
    max_workers: int = Field(default=4, ge=1)
    resample_filter: Literal["lanczos", "bicubic", "bilinear", "nearest"] = "lanczos"
    log_level: Optional[str] = None

    @classmethod
    def from_env(cls) -> "PluginSettings":
        """
        Build settings from environment variables.

        Environment Variables:
            IMAGE_UTILITIES_SCRATCH_DIR: Directory for generated output files
            IMAGE_UTILITIES_MAX_WORKERS: Background worker count
            IMAGE_UTILITIES_RESAMPLE_FILTER: lanczos, bicubic, bilinear or nearest
            LOG_LEVEL: Logging level

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        env_map = {
            "scratch_dir": "IMAGE_UTILITIES_SCRATCH_DIR",
            "max_workers": "IMAGE_UTILITIES_MAX_WORKERS",
            "resample_filter": "IMAGE_UTILITIES_RESAMPLE_FILTER",
            "log_level": "LOG_LEVEL",
        }
        values = {}
        for field_name, env_name in env_map.items():
            value = os.getenv(env_name)
            if value:
                values[field_name] = value

        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid settings in environment: {exc}") from exc
