"""Factory classes for creating configured service instances."""

from typing import Optional

from .models import PluginSettings
from .observability import MetricsCollector, StructuredLogger
from .protocols import Dispatcher, ImageCodec, LoggerProtocol
from .services import ImagePropertiesService, PillowImageCodec, TranscodingService


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(name: str, level: Optional[str] = None) -> LoggerProtocol:
        """Create a structured logger, optionally overriding its level."""
        return StructuredLogger(name, level)


class ImageUtilitiesFactory:
    """Factory for creating the complete method-call gateway."""

    @staticmethod
    def create_plugin(
        settings: Optional[PluginSettings] = None,
        codec: Optional[ImageCodec] = None,
        dispatcher: Optional[Dispatcher] = None,
        logger: Optional[LoggerProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        """Create a fully configured ``ImageUtilitiesPlugin``.

        Missing collaborators are built from ``settings``, which default to
        ``PluginSettings.from_env()``.
        """
        # Imported here because the plugin module depends on this package
        from ..dispatchers import ThreadPoolDispatcher
        from ..plugin import ImageUtilitiesPlugin

        if settings is None:
            settings = PluginSettings.from_env()

        if codec is None:
            codec = PillowImageCodec(settings.resample_filter)

        if logger is None:
            logger = LoggerFactory.create_logger("plugin", settings.log_level)

        if dispatcher is None:
            dispatcher = ThreadPoolDispatcher(max_workers=settings.max_workers)

        transcoding_service = TranscodingService(
            scratch_dir=settings.scratch_dir,
            codec=codec,
            logger=logger,
            metrics_collector=metrics_collector,
            default_quality=settings.default_quality,
        )
        properties_service = ImagePropertiesService(
            codec=codec, logger=logger, metrics_collector=metrics_collector
        )

        return ImageUtilitiesPlugin(
            transcoding_service=transcoding_service,
            properties_service=properties_service,
            dispatcher=dispatcher,
            logger=logger,
        )
