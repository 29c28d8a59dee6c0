"""EXIF tags carried over from the source image to the saved JPEG."""

import struct
from typing import Any, Dict, NamedTuple

import piexif
from PIL import ExifTags, Image, UnidentifiedImageError

from .exceptions import MetadataCopyError
from .logging_config import get_logger
from .models import ORIENTATION_UNDEFINED

ExifDict = Dict[str, Any]


class MetadataTag(NamedTuple):
    """An EXIF tag identified by its piexif IFD name and numeric id."""

    name: str
    ifd: str
    tag_id: int


METADATA_TAGS = (
    MetadataTag("FNumber", "Exif", piexif.ExifIFD.FNumber),
    MetadataTag("ExposureTime", "Exif", piexif.ExifIFD.ExposureTime),
    MetadataTag("ISOSpeedRatings", "Exif", piexif.ExifIFD.ISOSpeedRatings),
    MetadataTag("GPSAltitude", "GPS", piexif.GPSIFD.GPSAltitude),
    MetadataTag("GPSAltitudeRef", "GPS", piexif.GPSIFD.GPSAltitudeRef),
    MetadataTag("FocalLength", "Exif", piexif.ExifIFD.FocalLength),
    MetadataTag("GPSDateStamp", "GPS", piexif.GPSIFD.GPSDateStamp),
    MetadataTag("WhiteBalance", "Exif", piexif.ExifIFD.WhiteBalance),
    MetadataTag("GPSProcessingMethod", "GPS", piexif.GPSIFD.GPSProcessingMethod),
    MetadataTag("GPSTimeStamp", "GPS", piexif.GPSIFD.GPSTimeStamp),
    MetadataTag("DateTime", "0th", piexif.ImageIFD.DateTime),
    MetadataTag("Flash", "Exif", piexif.ExifIFD.Flash),
    MetadataTag("GPSLatitude", "GPS", piexif.GPSIFD.GPSLatitude),
    MetadataTag("GPSLatitudeRef", "GPS", piexif.GPSIFD.GPSLatitudeRef),
    MetadataTag("GPSLongitude", "GPS", piexif.GPSIFD.GPSLongitude),
    MetadataTag("GPSLongitudeRef", "GPS", piexif.GPSIFD.GPSLongitudeRef),
    MetadataTag("Make", "0th", piexif.ImageIFD.Make),
    MetadataTag("Model", "0th", piexif.ImageIFD.Model),
    MetadataTag("Orientation", "0th", piexif.ImageIFD.Orientation),
)

METADATA_TAG_NAMES = frozenset(tag.name for tag in METADATA_TAGS)

# piexif raises a mix of its own and low-level errors on malformed blocks
_EXIF_ERRORS = (
    piexif.InvalidImageDataError,
    UnidentifiedImageError,
    OSError,
    ValueError,
    KeyError,
    TypeError,
    struct.error,
)


def load_exif(path: str) -> ExifDict:
    """
    Load the EXIF block of any Pillow-readable image as a piexif dictionary.

    Args:
        path: Image file path

    Returns:
        piexif dictionary, or an empty dictionary if the image has no EXIF
    """
    with Image.open(path) as image:
        exif_bytes = image.info.get("exif")
    if not exif_bytes:
        return {}
    return piexif.load(exif_bytes)


def read_metadata(path: str) -> Dict[str, Any]:
    """Return the carried-over tags present in ``path``, keyed by tag name."""
    exif = load_exif(path)
    values = {}
    for tag in METADATA_TAGS:
        value = exif.get(tag.ifd, {}).get(tag.tag_id)
        if value is not None:
            values[tag.name] = value
    return values


def copy_metadata(source_path: str, destination_path: str) -> int:
    """
    Overlay the carried-over EXIF tags of ``source_path`` onto a JPEG.

    Tags present in the source replace the destination's tag with the same
    id. Tags absent from the source leave the destination untouched. The
    destination file is rewritten in place without re-encoding its pixels.

    Args:
        source_path: Original image the tags are read from
        destination_path: JPEG file the tags are written to

    Returns:
        Number of tags copied

    Raises:
        MetadataCopyError: If either EXIF block cannot be read or written
    """
    logger = get_logger("metadata")

    try:
        source_exif = load_exif(source_path)
        destination_exif = piexif.load(destination_path)

        copied = 0
        for tag in METADATA_TAGS:
            value = source_exif.get(tag.ifd, {}).get(tag.tag_id)
            if value is None:
                continue
            destination_exif.setdefault(tag.ifd, {})[tag.tag_id] = value
            copied += 1

        if copied:
            piexif.insert(piexif.dump(destination_exif), destination_path)
    except _EXIF_ERRORS as exc:
        raise MetadataCopyError(
            f"Error copying EXIF data from {source_path} to {destination_path}: {exc}"
        ) from exc

    logger.debug(f"Copied {copied} EXIF tags from {source_path} to {destination_path}")
    return copied


def read_orientation(path: str) -> int:
    """
    Read the EXIF orientation of an image.

    Returns:
        The orientation value, or ``ORIENTATION_UNDEFINED`` when the tag is
        absent or the EXIF block cannot be read
    """
    try:
        with Image.open(path) as image:
            orientation = image.getexif().get(ExifTags.Base.Orientation)
    except _EXIF_ERRORS:
        get_logger("metadata").debug(f"Ignoring unreadable EXIF in {path}")
        return ORIENTATION_UNDEFINED

    if not isinstance(orientation, int):
        return ORIENTATION_UNDEFINED
    return orientation
