"""Testing utilities and fakes for image utilities."""

from .fakes import (
    SAMPLE_TAG_VALUES,
    FakeLogger,
    FailingImageCodec,
    RecordingMethodResult,
    build_exif,
    create_test_image,
    create_test_image_file,
)

__all__ = [
    "SAMPLE_TAG_VALUES",
    "FakeLogger",
    "FailingImageCodec",
    "RecordingMethodResult",
    "build_exif",
    "create_test_image",
    "create_test_image_file",
]
