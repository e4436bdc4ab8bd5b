"""
Tests for TransformService
"""

import pytest
from pydantic import ValidationError
from PIL import Image

from imagehandler.core.drivers import DriverSettings
from imagehandler.core.enums import Driver
from imagehandler.schemas import RenderRequest, SaveRequest, TextOperation
from imagehandler.services.transform_service import INVALID_ARGUMENT, TransformService


class TestApply:
    """Test apply (save pipelines)"""

    def test_operations_applied_in_order(self, transform_service, png_file, tmp_path):
        target = tmp_path / "out.png"
        request = SaveRequest(
            source=str(png_file),
            destination=str(target),
            operations=[
                {"op": "resize", "width": 50, "height": 50},
                {"op": "rotate", "degrees": 90},
                {"op": "grayscale"},
            ],
        )

        result = transform_service.apply(request)

        assert result.success
        assert result.error is None
        assert (result.width, result.height) == (25, 50)
        assert result.format == "png"
        assert result.mime_type == "image/png"
        assert result.path == str(target)
        with Image.open(target) as img:
            assert img.size == (25, 50)

    def test_output_format(self, transform_service, png_file, tmp_path):
        target = tmp_path / "out.jpg"
        request = SaveRequest(
            source=str(png_file), destination=str(target), output_format="jpeg", quality=60
        )

        result = transform_service.apply(request)

        assert result.success
        assert result.mime_type == "image/jpeg"
        with Image.open(target) as img:
            assert img.format == "JPEG"

    def test_missing_source(self, transform_service, tmp_path):
        result = transform_service.apply(
            SaveRequest(source=str(tmp_path / "missing.png"), destination=str(tmp_path / "out.png"))
        )

        assert not result.success
        assert result.error.kind == "load_failure"

    def test_unknown_driver(self, transform_service, png_file, tmp_path):
        result = transform_service.apply(
            SaveRequest(source=str(png_file), destination=str(tmp_path / "out.png"), driver="vips")
        )

        assert result.error.kind == "invalid_driver"

    @pytest.mark.parametrize(
        "corner, kind",
        [("nowhere", "invalid_enum_value"), ("tile", "unsupported_corner")],
    )
    def test_invalid_corner(self, transform_service, png_file, tmp_path, corner, kind):
        request = SaveRequest(
            source=str(png_file),
            destination=str(tmp_path / "out.png"),
            operations=[TextOperation(text="Hi", corner=corner)],
        )

        result = transform_service.apply(request)

        assert not result.success
        assert result.error.kind == kind

    def test_empty_crop_is_invalid_argument(self, transform_service, png_file, tmp_path):
        request = SaveRequest(
            source=str(png_file),
            destination=str(tmp_path / "out.png"),
            operations=[{"op": "crop", "width": 10, "height": 10, "x": 500}],
        )

        result = transform_service.apply(request)

        assert result.error.kind == INVALID_ARGUMENT

    def test_destination_is_required(self, png_file):
        with pytest.raises(ValidationError):
            SaveRequest(source=str(png_file))

    def test_deferred_failure_is_save_failure(self, png_file, tmp_path, fake_convert):
        fake_convert(returncode=1, stderr="boom")
        service = TransformService(DriverSettings(driver=Driver.DEFERRED))

        result = service.apply(
            SaveRequest(
                source=str(png_file),
                destination=str(tmp_path / "out.png"),
                operations=[{"op": "flip", "mode": "horizontal"}],
            )
        )

        assert result.error.kind == "save_failure"
        assert "boom" in result.error.message

    def test_deferred_save_reports_normalized_path(self, png_file, tmp_path, fake_convert):
        fake = fake_convert()
        service = TransformService(DriverSettings(driver=Driver.DEFERRED))

        result = service.apply(
            SaveRequest(
                source=str(png_file),
                destination=str(tmp_path / "out.jpeg"),
                output_format="jpg",
                operations=[{"op": "rotate", "degrees": 90}],
            )
        )

        assert result.success
        assert result.path == str(tmp_path / "out.jpg")
        assert (result.width, result.height) == (50, 100)
        assert len(fake.calls) == 1


class TestRender:
    """Test render (in-memory pipelines)"""

    def test_render(self, transform_service, png_file):
        request = RenderRequest(
            source=str(png_file),
            operations=[{"op": "adaptive_thumb", "width": 32, "height": 32}],
        )

        encoded, result = transform_service.render(request)

        assert result.success
        assert result.path is None
        assert encoded.data.startswith(b"\x89PNG")
        assert encoded.mime_type == "image/png"
        assert (result.width, result.height) == (32, 32)

    def test_render_gif(self, transform_service, jpeg_file):
        encoded, result = transform_service.render(
            RenderRequest(source=str(jpeg_file), output_format="gif")
        )

        assert encoded.data.startswith(b"GIF8")
        assert result.format == "gif"

    def test_render_failure_returns_no_image(self, transform_service, not_an_image):
        encoded, result = transform_service.render(RenderRequest(source=str(not_an_image)))

        assert encoded is None
        assert result.error.kind == "load_failure"

    def test_source_is_not_modified(self, transform_service, png_file):
        before = png_file.read_bytes()

        transform_service.render(
            RenderRequest(source=str(png_file), operations=[{"op": "grayscale"}])
        )

        assert png_file.read_bytes() == before


class TestStorageRoot:
    """Test confinement of request paths to the storage root"""

    @pytest.fixture
    def confined_service(self, tmp_path):
        return TransformService(storage_root=tmp_path)

    def test_relative_paths_resolve_against_root(self, confined_service, png_file, tmp_path):
        result = confined_service.apply(SaveRequest(source="test.png", destination="out/../copy.png"))

        assert result.success
        assert result.path == str((tmp_path / "copy.png").resolve())
        assert (tmp_path / "copy.png").exists()

    @pytest.mark.parametrize("source", ["../outside.png", "/etc/passwd"])
    def test_source_outside_root(self, confined_service, png_file, source):
        result = confined_service.apply(SaveRequest(source=source, destination="out.png"))

        assert not result.success
        assert result.error.kind == INVALID_ARGUMENT
        assert "outside the storage root" in result.error.message

    def test_destination_outside_root(self, confined_service, png_file, tmp_path):
        target = tmp_path.parent / "escaped.png"

        result = confined_service.apply(SaveRequest(source="test.png", destination=str(target)))

        assert result.error.kind == INVALID_ARGUMENT
        assert not target.exists()

    def test_watermark_outside_root(self, confined_service, png_file):
        encoded, result = confined_service.render(
            RenderRequest(
                source="test.png",
                operations=[{"op": "watermark", "file": "/etc/hosts"}],
            )
        )

        assert encoded is None
        assert result.error.kind == INVALID_ARGUMENT

    def test_font_outside_root(self, confined_service, png_file):
        _, result = confined_service.render(
            RenderRequest(
                source="test.png",
                operations=[TextOperation(text="Hi", font_file="../fonts/evil.ttf")],
            )
        )

        assert result.error.kind == INVALID_ARGUMENT

    def test_watermark_inside_root(self, confined_service, png_file, watermark_file):
        encoded, result = confined_service.render(
            RenderRequest(source="test.png", operations=[{"op": "watermark", "file": "watermark.png"}])
        )

        assert result.success
        assert encoded.mime_type == "image/png"
