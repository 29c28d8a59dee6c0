"""Resize and re-encode images to JPEG while keeping selected EXIF tags."""

from .core import (
    BoundedScalePolicy,
    DirectionalPolicy,
    ImageProperties,
    PluginSettings,
    ScaleMode,
    Size,
    TranscodeRequest,
    TranscodeResult,
    resolve_target_size,
)
from .core.factories import ImageUtilitiesFactory
from .plugin import ImageUtilitiesPlugin, MethodCall

__version__ = "0.1.0"

__all__ = [
    "BoundedScalePolicy",
    "DirectionalPolicy",
    "ImageProperties",
    "PluginSettings",
    "ScaleMode",
    "Size",
    "TranscodeRequest",
    "TranscodeResult",
    "resolve_target_size",
    "ImageUtilitiesFactory",
    "ImageUtilitiesPlugin",
    "MethodCall",
]
