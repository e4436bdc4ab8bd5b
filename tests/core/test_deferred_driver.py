"""
Tests for the deferred (convert command) driver
"""

import logging
import subprocess
from pathlib import Path

import pytest

from imagehandler.core.drivers import (
    DeferredDriver,
    DriverSettings,
    PendingCommand,
    RasterDriver,
    create_driver,
)
from imagehandler.core.drivers.base import TextOverlay
from imagehandler.core.drivers.deferred import escape_draw_text, normalize_extension
from imagehandler.core.enums import Corner, Driver, FlipMode, ImageFormat
from imagehandler.core.exceptions import InvalidDriver, SaveFailure
from imagehandler.core.session import ImageSession
from imagehandler.schemas.common import Color, Point


def pending(session):
    return session.backend.pending.args


class TestCreateDriver:
    """Test driver selection"""

    def test_default_is_raster(self):
        assert isinstance(create_driver(), RasterDriver)

    def test_by_name(self):
        assert isinstance(create_driver("deferred"), DeferredDriver)
        assert isinstance(create_driver(Driver.RASTER), RasterDriver)

    def test_legacy_names(self):
        assert isinstance(create_driver("ImageMagick"), DeferredDriver)
        assert isinstance(create_driver("GD"), RasterDriver)

    def test_from_settings(self):
        assert isinstance(create_driver(settings=DriverSettings(driver="deferred")), DeferredDriver)

    def test_unknown_driver(self):
        with pytest.raises(InvalidDriver):
            create_driver("vips")

    def test_unknown_driver_in_settings(self):
        with pytest.raises(InvalidDriver):
            DriverSettings(driver="vips")


class TestPendingCommand:
    """Test the command template"""

    def test_requires_one_placeholder(self):
        with pytest.raises(ValueError):
            PendingCommand(args=["convert", "in.png"])

        with pytest.raises(ValueError):
            PendingCommand(args=["convert", "%dest%", "%dest%"])

    def test_render_substitutes_destination(self):
        command = PendingCommand(args=["convert", "-flop", "in.png", "%dest%"])

        args = command.render(ImageFormat.JPEG, 80, Path("out.jpg"))

        assert args == ["convert", "-flop", "in.png", "-quality", "80", "JPG:out.jpg"]

    def test_to_string_quotes_arguments(self):
        command = PendingCommand(args=["convert", "my photo.png", "%dest%"])

        assert command.to_string() == "convert 'my photo.png' %dest%"

    def test_normalize_extension(self):
        assert normalize_extension(Path("a/b.jpeg"), ImageFormat.PNG) == Path("a/b.png")
        assert normalize_extension(Path("a/b"), ImageFormat.JPEG) == Path("a/b.jpg")


class TestCommands:
    """Test the command built for each transform"""

    def test_load_sets_identity_command(self, deferred_session, png_file):
        deferred_session.load(png_file)

        assert pending(deferred_session) == ["convert", str(png_file), "%dest%"]
        assert deferred_session.driver == Driver.DEFERRED

    def test_flip(self, deferred_session, png_file):
        src = str(png_file)
        deferred_session.load(png_file)

        assert pending(deferred_session.flip(FlipMode.HORIZONTAL)) == ["convert", "-flop", src, "%dest%"]
        assert pending(deferred_session.flip(FlipMode.VERTICAL)) == ["convert", "-flip", src, "%dest%"]
        assert pending(deferred_session.flip(FlipMode.BOTH)) == [
            "convert",
            "-flop",
            "-flip",
            src,
            "%dest%",
        ]

    def test_rotate(self, deferred_session, png_file):
        deferred_session.load(png_file).rotate(90)

        assert pending(deferred_session) == ["convert", "-rotate", "90", str(png_file), "%dest%"]
        assert (deferred_session.width, deferred_session.height) == (50, 100)

    def test_crop(self, deferred_session, png_file):
        deferred_session.load(png_file).crop(20, 10)

        assert pending(deferred_session) == [
            "convert",
            "-quiet",
            "-strip",
            "-crop",
            "20x10+40+20",
            str(png_file),
            "%dest%",
        ]
        assert (deferred_session.width, deferred_session.height) == (20, 10)

    def test_grayscale(self, deferred_session, png_file):
        deferred_session.load(png_file).grayscale()

        assert pending(deferred_session) == ["convert", "-colorspace", "Gray", str(png_file), "%dest%"]

    def test_resize(self, deferred_session, png_file):
        deferred_session.load(png_file).resize(50, 50)

        assert pending(deferred_session) == [
            "convert",
            "-quiet",
            "-strip",
            str(png_file),
            "-resize",
            "50x25!",
            "%dest%",
        ]
        assert (deferred_session.width, deferred_session.height) == (50, 25)

    def test_adaptive_thumb(self, deferred_session, png_file):
        deferred_session.load(png_file).adaptive_thumb(30, 30)

        assert pending(deferred_session) == [
            "convert",
            "-quiet",
            "-strip",
            "-define",
            "jpeg:size=30x30",
            str(png_file),
            "-thumbnail",
            "30x30>",
            "-background",
            "#000000",
            "-gravity",
            "center",
            "-extent",
            "30x30",
            "%dest%",
        ]
        assert (deferred_session.width, deferred_session.height) == (30, 30)

    def test_resize_canvas(self, deferred_session, png_file):
        deferred_session.load(png_file).resize_canvas(200, 200)

        args = pending(deferred_session)
        assert args[args.index("-background") + 1] == "#ffffff"
        assert args[args.index("-extent") + 1] == "200x200"
        assert (deferred_session.width, deferred_session.height) == (200, 200)

    def test_watermark(self, deferred_session, png_file, watermark_file):
        deferred_session.load(png_file).watermark(watermark_file, 5, 5, Corner.RIGHT_BOTTOM)

        assert pending(deferred_session) == [
            "convert",
            "-quiet",
            str(png_file),
            "(",
            str(watermark_file),
            "-resize",
            "20x10!",
            ")",
            "-geometry",
            "+75+35",
            "-composite",
            "%dest%",
        ]

    def test_text(self, deferred_session, png_file):
        deferred_session.load(png_file).text("Hello", color=(255, 0, 0), corner=Corner.LEFT_TOP)

        args = pending(deferred_session)
        assert args[:4] == ["convert", "-quiet", "-pointsize", "12"]
        draw = args[args.index("-draw") + 1]
        assert "fill '#ff0000'" in draw
        assert "text 0,0 'Hello'" in draw
        assert args[-2:] == [str(png_file), "%dest%"]

    def test_text_quotes_are_escaped(self, deferred_session, png_file):
        deferred_session.load(png_file).text("Don't")

        draw = pending(deferred_session)[pending(deferred_session).index("-draw") + 1]
        assert "text 0,0 'Don\\'t'" in draw

    def test_text_leading_at_is_not_a_file_reference(self, deferred_session, png_file):
        deferred_session.load(png_file).text("@/etc/passwd")

        draw = pending(deferred_session)[pending(deferred_session).index("-draw") + 1]
        assert "'\\@/etc/passwd'" in draw
        assert "'@" not in draw

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("plain", "plain"),
            ("Don't", "Don\\'t"),
            ("C:\\temp", "C:\\\\temp"),
            ("@file", "\\@file"),
            ("mail@example", "mail@example"),
        ],
    )
    def test_escape_draw_text(self, text, expected):
        assert escape_draw_text(text) == expected

    def test_text_with_font(self, deferred_session, png_file):
        """The font file is passed to convert as-is"""
        font = "/usr/share/fonts/custom.ttf"
        deferred_session.load(png_file)
        overlay = TextOverlay(
            text="Hi",
            font_file=font,
            size=14,
            color=Color(),
            angle=0,
            position=Point(x=3, y=4),
            layer=None,
        )

        deferred_session.backend.text(overlay)

        args = pending(deferred_session)
        assert args[args.index("-font") + 1] == font
        assert args[args.index("-pointsize") + 1] == "14"
        assert "text 3,4 'Hi'" in args[args.index("-draw") + 1]

    def test_transforms_use_original_geometry(self, deferred_session, png_file):
        """Each command reads the source file, so geometry ignores earlier transforms"""
        deferred_session.load(png_file).resize(50, 50).crop(20, 10)

        assert "20x10+40+20" in pending(deferred_session)

    def test_reload_resets_command(self, deferred_session, png_file):
        deferred_session.load(png_file).grayscale().reload()

        assert pending(deferred_session) == ["convert", str(png_file), "%dest%"]
        assert (deferred_session.width, deferred_session.height) == (100, 50)

    def test_custom_convert_path(self, png_file):
        settings = DriverSettings(driver=Driver.DEFERRED, convert_path="/opt/im/bin/magick")
        session = ImageSession(settings=settings).load(png_file)

        assert pending(session)[0] == "/opt/im/bin/magick"


class TestExecution:
    """Test save and render"""

    def test_only_last_transform_is_applied(self, deferred_session, png_file, tmp_path, fake_convert, caplog):
        fake = fake_convert()
        target = tmp_path / "out.png"

        with caplog.at_level(logging.WARNING):
            deferred_session.load(png_file).flip(FlipMode.HORIZONTAL).rotate(90).save(target)

        assert fake.calls == [
            ["convert", "-rotate", "90", str(png_file), "-quality", "75", f"PNG:{target}"]
        ]
        assert "Discarding pending command" in caplog.text

    def test_no_warning_for_single_transform(self, deferred_session, png_file, tmp_path, fake_convert, caplog):
        fake_convert()

        with caplog.at_level(logging.WARNING):
            deferred_session.load(png_file).grayscale().save(tmp_path / "out.png")

        assert "Discarding" not in caplog.text

    def test_save_normalizes_extension(self, deferred_session, png_file, tmp_path, fake_convert):
        fake = fake_convert()

        deferred_session.load(png_file).save(tmp_path / "out.jpeg", ImageFormat.JPEG)

        assert fake.calls[0][-1] == f"JPG:{tmp_path / 'out.jpg'}"
        assert deferred_session.saved_path == tmp_path / "out.jpg"

    def test_save_uses_configured_quality(self, png_file, tmp_path, fake_convert):
        fake = fake_convert()
        settings = DriverSettings(driver=Driver.DEFERRED, default_jpeg_quality=90)

        ImageSession(settings=settings).load(png_file).save(tmp_path / "out.jpg", ImageFormat.JPEG)

        assert fake.calls[0][-3:-1] == ["-quality", "90"]

    def test_saved_file_becomes_source(self, deferred_session, png_file, tmp_path, fake_convert):
        fake = fake_convert()
        first = tmp_path / "first.png"
        second = tmp_path / "second.png"

        deferred_session.load(png_file).rotate(90).save(first)
        deferred_session.flip(FlipMode.HORIZONTAL).save(second)

        assert deferred_session.file_name == second
        assert fake.calls[1] == ["convert", "-flop", str(first), "-quality", "75", f"PNG:{second}"]
        # Rotated dimensions carry over to the next command
        assert (deferred_session.width, deferred_session.height) == (50, 100)

    def test_reload_after_save_restores_saved_output(self, deferred_session, png_file, tmp_path, fake_convert):
        fake_convert()
        target = tmp_path / "rotated.png"

        deferred_session.load(png_file).rotate(90).save(target).grayscale().reload()

        assert pending(deferred_session) == ["convert", str(target), "%dest%"]
        assert (deferred_session.width, deferred_session.height) == (50, 100)

    def test_save_in_new_format_updates_session(self, deferred_session, png_file, tmp_path, fake_convert):
        fake_convert()

        deferred_session.load(png_file).save(tmp_path / "out.gif", ImageFormat.GIF)

        assert deferred_session.format == ImageFormat.GIF
        assert deferred_session.mime_type == "image/gif"

    def test_non_zero_exit_raises(self, deferred_session, png_file, tmp_path, fake_convert):
        fake_convert(returncode=1, stderr="convert: unable to open image")
        deferred_session.load(png_file).grayscale()

        with pytest.raises(SaveFailure, match="unable to open image"):
            deferred_session.save(tmp_path / "out.png")

    def test_non_zero_exit_unchecked_only_warns(self, png_file, tmp_path, fake_convert, caplog):
        fake = fake_convert(returncode=1)
        settings = DriverSettings(driver=Driver.DEFERRED, check_exit_status=False)
        session = ImageSession(settings=settings).load(png_file)

        with caplog.at_level(logging.WARNING):
            session.grayscale().save(tmp_path / "out.png")

        assert len(fake.calls) == 1
        assert "exit status not checked" in caplog.text

    def test_missing_binary(self, deferred_session, png_file, tmp_path, monkeypatch):
        def missing(args, **kwargs):
            raise FileNotFoundError(2, "No such file or directory", args[0])

        monkeypatch.setattr(subprocess, "run", missing)
        deferred_session.load(png_file)

        with pytest.raises(SaveFailure):
            deferred_session.save(tmp_path / "out.png")

    def test_render_reads_command_output(self, deferred_session, png_file, fake_convert):
        fake = fake_convert()

        encoded = deferred_session.load(png_file).flip(FlipMode.VERTICAL).render(ImageFormat.PNG)

        assert encoded.data == b"converted"
        assert encoded.mime_type == "image/png"
        assert fake.calls[0][:3] == ["convert", "-flip", str(png_file)]
        assert fake.calls[0][-1].startswith("PNG:")

    def test_render_keeps_pending_command(self, deferred_session, png_file, fake_convert):
        fake_convert()

        deferred_session.load(png_file).grayscale().render()

        assert pending(deferred_session)[1:3] == ["-colorspace", "Gray"]
