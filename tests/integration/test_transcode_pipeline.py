"""Integration tests for the complete transcode pipeline."""

import asyncio
import os

import pytest

from image_utilities import ImageUtilitiesFactory, MethodCall, resolve_target_size
from image_utilities.core.metadata import read_metadata
from image_utilities.core.models import DirectionalPolicy, PluginSettings, ScaleMode, Size
from image_utilities.core.observability import MetricsCollector
from image_utilities.dispatchers import AsyncioDispatcher, SerialDispatcher
from image_utilities.testing.fakes import (
    SAMPLE_TAG_VALUES,
    FakeLogger,
    RecordingMethodResult,
    create_test_image_file,
)


@pytest.fixture
def settings(tmp_path):
    return PluginSettings(scratch_dir=str(tmp_path / "scratch"), max_workers=3)


class TestPipelineIntegration:
    """Integration tests for the complete pipeline."""

    def test_end_to_end_with_default_dispatcher(self, tmp_path, settings):
        """Test many concurrent requests through the default thread pool."""
        metrics = MetricsCollector()
        plugin = ImageUtilitiesFactory.create_plugin(
            settings=settings, logger=FakeLogger(), metrics_collector=metrics
        )

        results = []
        for index in range(6):
            source = create_test_image_file(
                str(tmp_path / f"source_{index}.jpg"),
                800 + index * 10,
                600,
                exif_tags=SAMPLE_TAG_VALUES,
            )
            result = RecordingMethodResult()
            plugin.on_method_call(
                MethodCall(
                    "saveAsJpeg",
                    {
                        "sourceFilePath": source,
                        "destinationFilePath": str(tmp_path / f"out_{index}.jpg"),
                        "maxWidth": 400,
                        "maxHeight": 400,
                        "quality": 80,
                    },
                ),
                result,
            )
            results.append(result)

        for result in results:
            assert result.wait(10)
            assert len(result.calls) == 1
            assert result.last["kind"] == "success"
            assert read_metadata(result.last["value"]) == SAMPLE_TAG_VALUES

        assert metrics.get_summary("transcode")["successful_operations"] == 6

    @pytest.mark.parametrize("mode", list(ScaleMode))
    @pytest.mark.parametrize("original", [(1200, 900), (900, 1200), (300, 200)])
    def test_saved_dimensions_match_resolved_size(self, tmp_path, settings, mode, original):
        """Test that re-querying a saved JPEG yields the resolved size."""
        plugin = ImageUtilitiesFactory.create_plugin(
            settings=settings, dispatcher=SerialDispatcher(), logger=FakeLogger()
        )
        source = create_test_image_file(str(tmp_path / "source.png"), *original, image_format="PNG")
        bound = Size(width=640, height=480)

        saved = RecordingMethodResult()
        plugin.on_method_call(
            MethodCall(
                "saveAsJpeg",
                {
                    "sourceFilePath": source,
                    "maxWidth": bound.width,
                    "maxHeight": bound.height,
                    "scaleMode": mode.value,
                },
            ),
            saved,
        )
        path = saved.last["value"]

        properties = RecordingMethodResult()
        plugin.on_method_call(MethodCall("getImageProperties", {"imageFile": path}), properties)

        expected = resolve_target_size(
            Size(width=original[0], height=original[1]), bound, DirectionalPolicy(mode=mode)
        )
        value = properties.last["value"]
        assert Size(width=value["width"], height=value["height"]) == expected

    def test_asyncio_dispatcher_with_invoke(self, tmp_path, settings):
        sources = [
            create_test_image_file(str(tmp_path / f"in_{index}.jpg"), 300, 200 + index)
            for index in range(4)
        ]

        async def run():
            plugin = ImageUtilitiesFactory.create_plugin(
                settings=settings, dispatcher=AsyncioDispatcher(), logger=FakeLogger()
            )
            return await asyncio.gather(
                *(
                    plugin.invoke(
                        "saveAsJpeg",
                        {"sourceFilePath": source, "maxHeight": 100, "canScaleUp": False},
                    )
                    for source in sources
                )
            )

        paths = asyncio.run(run())

        assert len(set(paths)) == 4
        for path in paths:
            assert os.path.dirname(path) == settings.scratch_dir
            assert os.path.exists(path)
