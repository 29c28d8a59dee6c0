"""Tests for EXIF tag carry-over."""

import os

import piexif
import pytest

from image_utilities.core.exceptions import MetadataCopyError
from image_utilities.core.metadata import (
    METADATA_TAG_NAMES,
    METADATA_TAGS,
    copy_metadata,
    load_exif,
    read_metadata,
    read_orientation,
)
from image_utilities.testing.fakes import SAMPLE_TAG_VALUES, create_test_image_file


def _write_jpeg(tmp_path, name, exif_tags=None, **kwargs):
    return create_test_image_file(
        os.path.join(str(tmp_path), name), 40, 30, exif_tags=exif_tags, **kwargs
    )


class TestMetadataTags:
    """Tests for the carried-over tag table."""

    def test_nineteen_distinct_tags(self):
        assert len(METADATA_TAGS) == 19
        assert len(METADATA_TAG_NAMES) == 19
        assert len({(tag.ifd, tag.tag_id) for tag in METADATA_TAGS}) == 19

    def test_sample_values_cover_every_tag(self):
        assert set(SAMPLE_TAG_VALUES) == METADATA_TAG_NAMES

    def test_tags_live_in_expected_ifds(self):
        ifds = {tag.name: tag.ifd for tag in METADATA_TAGS}
        assert ifds["Orientation"] == "0th"
        assert ifds["FNumber"] == "Exif"
        assert ifds["GPSLatitude"] == "GPS"


class TestReadMetadata:
    """Tests for read_metadata and load_exif."""

    def test_reads_all_tags(self, tmp_path):
        path = _write_jpeg(tmp_path, "all.jpg", exif_tags=SAMPLE_TAG_VALUES)
        assert read_metadata(path) == SAMPLE_TAG_VALUES

    def test_image_without_exif(self, tmp_path):
        path = _write_jpeg(tmp_path, "plain.jpg")
        assert load_exif(path) == {}
        assert read_metadata(path) == {}


class TestCopyMetadata:
    """Tests for copy_metadata."""

    def test_copies_every_present_tag(self, tmp_path):
        source = _write_jpeg(tmp_path, "source.jpg", exif_tags=SAMPLE_TAG_VALUES)
        destination = _write_jpeg(tmp_path, "destination.jpg")

        copied = copy_metadata(source, destination)

        assert copied == 19
        assert read_metadata(destination) == SAMPLE_TAG_VALUES

    def test_only_present_tags_overwrite(self, tmp_path):
        """Test that tags absent from the source leave the destination untouched."""
        source_tags = {
            name: SAMPLE_TAG_VALUES[name]
            for name in ("Make", "Orientation", "FNumber", "GPSLatitude", "GPSLatitudeRef")
        }
        source = _write_jpeg(tmp_path, "source.jpg", exif_tags=source_tags)
        destination = _write_jpeg(
            tmp_path,
            "destination.jpg",
            exif_tags={"Make": b"Other", "Model": b"Keep Me", "Flash": 0},
        )

        copied = copy_metadata(source, destination)

        assert copied == 5
        result = read_metadata(destination)
        assert result == {**source_tags, "Model": b"Keep Me", "Flash": 0}

    def test_source_without_exif_leaves_destination_alone(self, tmp_path):
        source = _write_jpeg(tmp_path, "source.jpg")
        destination = _write_jpeg(tmp_path, "destination.jpg", exif_tags={"Model": b"X"})
        with open(destination, "rb") as stream:
            before = stream.read()

        assert copy_metadata(source, destination) == 0

        with open(destination, "rb") as stream:
            assert stream.read() == before

    def test_non_carried_tags_are_not_copied(self, tmp_path):
        exif = {
            "0th": {
                piexif.ImageIFD.Make: b"KineCam",
                piexif.ImageIFD.Software: b"Editor 2.0",
            }
        }
        source = _write_jpeg(tmp_path, "source.jpg")
        piexif.insert(piexif.dump(exif), source)
        destination = _write_jpeg(tmp_path, "destination.jpg")

        assert copy_metadata(source, destination) == 1

        written = piexif.load(destination)
        assert written["0th"][piexif.ImageIFD.Make] == b"KineCam"
        assert piexif.ImageIFD.Software not in written["0th"]

    def test_png_source(self, tmp_path):
        source = _write_jpeg(tmp_path, "source.png", image_format="PNG")
        destination = _write_jpeg(tmp_path, "destination.jpg")
        assert copy_metadata(source, destination) == 0

    def test_missing_source_raises(self, tmp_path):
        destination = _write_jpeg(tmp_path, "destination.jpg")
        with pytest.raises(MetadataCopyError, match="Error copying EXIF data"):
            copy_metadata(os.path.join(str(tmp_path), "missing.jpg"), destination)

    def test_non_jpeg_destination_raises(self, tmp_path):
        source = _write_jpeg(tmp_path, "source.jpg", exif_tags={"Make": b"KineCam"})
        destination = _write_jpeg(tmp_path, "destination.png", image_format="PNG")
        with pytest.raises(MetadataCopyError):
            copy_metadata(source, destination)


class TestReadOrientation:
    """Tests for read_orientation."""

    @pytest.mark.parametrize("orientation", [1, 3, 6, 8])
    def test_reads_orientation(self, tmp_path, orientation):
        path = _write_jpeg(tmp_path, "rotated.jpg", exif_tags={"Orientation": orientation})
        assert read_orientation(path) == orientation

    def test_missing_tag_is_undefined(self, tmp_path):
        path = _write_jpeg(tmp_path, "plain.jpg", exif_tags={"Make": b"KineCam"})
        assert read_orientation(path) == 0

    def test_unreadable_file_is_undefined(self, tmp_path):
        path = os.path.join(str(tmp_path), "garbage.jpg")
        with open(path, "wb") as stream:
            stream.write(b"not an image")
        assert read_orientation(path) == 0
