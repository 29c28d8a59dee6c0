"""Service implementations for JPEG transcoding and property queries."""

import io
import os
import tempfile
import time
from typing import Optional

from PIL import Image, UnidentifiedImageError

from .exceptions import DecodeError, EncodeError, with_error_handling
from .image_utils import (
    DEFAULT_QUALITY,
    RESAMPLE_FILTERS,
    generate_destination_path,
    prepare_for_jpeg,
    resolve_quality,
)
from .metadata import copy_metadata, read_orientation
from .models import ImageProperties, Size, TranscodeRequest, TranscodeResult
from .observability import LogContext, MetricsCollector, measure
from .protocols import ImageCodec, LoggerProtocol
from .scaling import resolve_target_size

_DECODE_ERRORS = (
    OSError,
    SyntaxError,
    ValueError,
    Image.DecompressionBombError,
    UnidentifiedImageError,
)


class PillowImageCodec:
    """Image codec backed by Pillow."""

    def __init__(self, resample_filter: str = "lanczos"):
        if resample_filter not in RESAMPLE_FILTERS:
            raise ValueError(f"Unknown resample filter: {resample_filter}")
        self._resample = RESAMPLE_FILTERS[resample_filter]

    def decode(self, path: str) -> Image.Image:
        """Fully decode the image at ``path``."""
        try:
            image = Image.open(path)
        except _DECODE_ERRORS as exc:
            raise DecodeError(f"Cannot decode image {path}: {exc}") from exc
        try:
            image.load()
        except _DECODE_ERRORS as exc:
            image.close()
            raise DecodeError(f"Cannot decode image {path}: {exc}") from exc
        return image

    def probe(self, path: str) -> Size:
        """Read image bounds from the header only."""
        try:
            with Image.open(path) as image:
                width, height = image.size
        except _DECODE_ERRORS as exc:
            raise DecodeError(f"Cannot read image bounds of {path}: {exc}") from exc
        return Size(width=width, height=height)

    def resize(self, image: Image.Image, size: Size) -> Image.Image:
        """Resample ``image`` to ``size``."""
        return image.resize(size.as_tuple(), self._resample)

    def encode(self, image: Image.Image, quality: int) -> bytes:
        """Compress ``image`` as JPEG bytes."""
        output_stream = io.BytesIO()
        try:
            prepare_for_jpeg(image).save(output_stream, format="JPEG", quality=quality)
        except (OSError, ValueError) as exc:
            raise EncodeError(f"Cannot encode JPEG: {exc}") from exc
        return output_stream.getvalue()


class TranscodingService:
    """Saves an image as a resized JPEG that keeps selected EXIF tags."""

    def __init__(
        self,
        scratch_dir: str,
        codec: ImageCodec,
        logger: LoggerProtocol,
        metrics_collector: Optional[MetricsCollector] = None,
        default_quality: int = DEFAULT_QUALITY,
    ):
        self._scratch_dir = scratch_dir
        self._codec = codec
        self._logger = logger
        self._metrics_collector = metrics_collector
        self._default_quality = default_quality

    @with_error_handling
    def transcode(self, request: TranscodeRequest) -> TranscodeResult:
        """
        Decode, resize, encode and tag one image.

        Steps:
            1. Reserve a generated destination, or delete any file at the given one
            2. Decode the source
            3. Resolve the target size from the request's bound and policy
            4. Resample only if the target differs from the decoded size
            5. Encode to a temporary file, move it into place, copy EXIF tags

        Args:
            request: The transcode request

        Returns:
            TranscodeResult describing the written file

        Raises:
            DecodeError: If the source cannot be decoded; nothing is written
            EncodeError: If the JPEG cannot be written; no partial file is left
            InvalidArgumentError: If the bound does not suit the policy
        """
        start_time = time.time()
        log_context = LogContext.for_request(
            "transcode", "transcoding_service", request.source_path
        )

        try:
            with measure(self._metrics_collector, "transcode"):
                result = self._transcode(request, log_context)
        except Exception as e:
            self._logger.debug("Transcode failed", log_context.with_metadata(error=str(e)))
            raise

        result.processing_time = time.time() - start_time
        self._logger.info(
            "Saved JPEG",
            log_context,
            destination=result.path,
            size=str(result.size),
            processing_time_ms=result.processing_time * 1000,
        )
        return result

    def _transcode(self, request: TranscodeRequest, log_context: LogContext) -> TranscodeResult:
        if request.destination_path:
            destination = os.path.abspath(request.destination_path)
            # Destination is always fully overwritten
            if os.path.lexists(destination):
                os.remove(destination)
            return self._save(request, destination, log_context)

        os.makedirs(self._scratch_dir, exist_ok=True)
        destination = generate_destination_path(self._scratch_dir)
        try:
            return self._save(request, destination, log_context)
        except Exception:
            # Release the reserved name
            if os.path.exists(destination):
                os.remove(destination)
            raise

    def _save(
        self, request: TranscodeRequest, destination: str, log_context: LogContext
    ) -> TranscodeResult:
        self._logger.debug("Decoding source", log_context.with_operation("decode"))
        image = self._codec.decode(request.source_path)
        try:
            return self._encode(request, image, destination, log_context)
        finally:
            image.close()

    def _encode(
        self,
        request: TranscodeRequest,
        image: Image.Image,
        destination: str,
        log_context: LogContext,
    ) -> TranscodeResult:
        original_size = Size(width=image.width, height=image.height)

        target_size = resolve_target_size(original_size, request.bound, request.policy)
        quality = resolve_quality(request.quality, self._default_quality)

        resampled = target_size != original_size
        if resampled:
            self._logger.debug(
                "Resampling",
                log_context.with_operation("resize"),
                original=str(original_size),
                target=str(target_size),
            )
            resized = self._codec.resize(image, target_size)
            try:
                data = self._codec.encode(resized, quality)
            finally:
                resized.close()
        else:
            data = self._codec.encode(image, quality)

        self._logger.debug(
            f"Saving image to {destination}",
            log_context.with_operation("encode"),
            quality=quality,
            width=target_size.width,
            height=target_size.height,
        )
        self._write_atomically(destination, data)

        tags_copied = self._copy_metadata(request.source_path, destination, log_context)

        return TranscodeResult(
            path=destination,
            source_path=request.source_path,
            size=target_size,
            quality=quality,
            resampled=resampled,
            metadata_tags_copied=tags_copied,
        )

    def _write_atomically(self, destination: str, data: bytes) -> None:
        directory = os.path.dirname(destination)
        temp_path = None
        try:
            fd, temp_path = tempfile.mkstemp(prefix=".", suffix=".jpg.part", dir=directory)
            with os.fdopen(fd, "wb") as stream:
                stream.write(data)
            os.replace(temp_path, destination)
        except OSError as exc:
            if temp_path and os.path.exists(temp_path):
                os.remove(temp_path)
            raise EncodeError(f"Cannot write JPEG to {destination}: {exc}") from exc

    def _copy_metadata(
        self, source_path: str, destination: str, log_context: LogContext
    ) -> int:
        try:
            return copy_metadata(source_path, destination)
        except Exception as e:  # noqa: BLE001
            self._logger.warning(
                "Error copying EXIF data, keeping JPEG without it",
                log_context.with_operation("copy_metadata").with_metadata(error=str(e)),
            )
            return 0


class ImagePropertiesService:
    """Reads width, height and EXIF orientation of an image file."""

    def __init__(
        self,
        codec: ImageCodec,
        logger: LoggerProtocol,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self._codec = codec
        self._logger = logger
        self._metrics_collector = metrics_collector

    @with_error_handling
    def get_properties(self, path: str) -> ImageProperties:
        """Return the bounds and orientation of ``path`` without decoding pixels."""
        log_context = LogContext.for_request("get_properties", "properties_service", path)
        with measure(self._metrics_collector, "get_properties"):
            size = self._codec.probe(path)
            orientation = read_orientation(path)
        self._logger.debug(
            "Read image properties", log_context, size=str(size), orientation=orientation
        )
        width, height = size.as_tuple()
        return ImageProperties(width=width, height=height, orientation=orientation)
