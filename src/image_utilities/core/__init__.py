"""Core models, scaling and services for image utilities."""

from .image_utils import (
    generate_destination_path,
    prepare_for_jpeg,
    resolve_quality,
)
from .logging_config import get_logger, set_level, setup_logger
from .exceptions import (
    ImageUtilitiesError,
    ConfigurationError,
    InvalidArgumentError,
    TranscodeError,
    DecodeError,
    EncodeError,
    MetadataCopyError,
    MethodCallError,
    with_error_handling,
)
from .metadata import METADATA_TAGS, copy_metadata, read_metadata, read_orientation
from .models import (
    ORIENTATION_UNDEFINED,
    BoundedScalePolicy,
    DirectionalPolicy,
    ImageProperties,
    PluginSettings,
    ScaleMode,
    ScalePolicy,
    Size,
    TranscodeRequest,
    TranscodeResult,
)
from .scaling import resolve_target_size

__all__ = [
    "ORIENTATION_UNDEFINED",
    "Size",
    "ScaleMode",
    "ScalePolicy",
    "DirectionalPolicy",
    "BoundedScalePolicy",
    "TranscodeRequest",
    "TranscodeResult",
    "ImageProperties",
    "PluginSettings",
    "resolve_target_size",
    "METADATA_TAGS",
    "copy_metadata",
    "read_metadata",
    "read_orientation",
    "generate_destination_path",
    "prepare_for_jpeg",
    "resolve_quality",
    "setup_logger",
    "get_logger",
    "set_level",
    "ImageUtilitiesError",
    "ConfigurationError",
    "InvalidArgumentError",
    "TranscodeError",
    "DecodeError",
    "EncodeError",
    "MetadataCopyError",
    "MethodCallError",
    "with_error_handling",
]
