"""Image helper functions for image utilities."""

import os
from datetime import datetime
from typing import Optional

from PIL import Image

DEFAULT_QUALITY = 100

RESAMPLE_FILTERS = {
    "lanczos": Image.Resampling.LANCZOS,
    "bicubic": Image.Resampling.BICUBIC,
    "bilinear": Image.Resampling.BILINEAR,
    "nearest": Image.Resampling.NEAREST,
}

# Modes Pillow can write as JPEG without conversion
JPEG_MODES = ("RGB", "L", "CMYK")


def resolve_quality(quality: Optional[int], default: int = DEFAULT_QUALITY) -> int:
    """
    Clamp a requested JPEG quality to the supported range.

    Args:
        quality: Requested quality, 1-100
        default: Quality used when ``quality`` is absent or out of range

    Returns:
        ``quality`` if it lies in 1-100, otherwise ``default``
    """
    if quality is None or isinstance(quality, bool):
        return default
    if quality < 1 or quality > 100:
        return default
    return quality


def generate_destination_path(scratch_dir: str, now: Optional[datetime] = None) -> str:
    """
    Reserve a fresh ``<yyyyMMddHHmmss>.jpg`` path under ``scratch_dir``.

    Two requests within the same second would share a timestamp, so a
    counter suffix is appended until the name is unused. The name is
    claimed by creating an empty file, which keeps concurrent workers from
    picking the same one.

    Args:
        scratch_dir: Existing directory for generated files
        now: Timestamp override, defaults to the current local time

    Returns:
        Absolute path of the newly created, empty file
    """
    timestamp = (now or datetime.now()).strftime("%Y%m%d%H%M%S")
    base = os.path.join(os.path.abspath(scratch_dir), timestamp)

    path = f"{base}.jpg"
    counter = 1
    while True:
        try:
            fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            path = f"{base}_{counter}.jpg"
            counter += 1
            continue
        os.close(fd)
        return path


def prepare_for_jpeg(img: "Image.Image") -> "Image.Image":
    """
    Convert an image to a mode JPEG can store.

    Args:
        img: PIL Image in any mode

    Returns:
        ``img`` unchanged if already RGB, L or CMYK, otherwise an RGB copy.
        Transparent pixels are composited onto white.
    """
    if img.mode in JPEG_MODES:
        return img

    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background

    return img.convert("RGB")
