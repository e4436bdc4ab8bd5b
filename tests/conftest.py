"""
Pytest configuration and fixtures for image handler tests
"""

import subprocess
from pathlib import Path

import cv2
import numpy as np
import pytest
from PIL import Image

from imagehandler.core.drivers import DriverSettings
from imagehandler.core.enums import Driver
from imagehandler.core.session import ImageSession
from imagehandler.services.transform_service import TransformService


@pytest.fixture
def test_image():
    """Create a 100x50 opaque RGBA test image"""
    image = np.zeros((50, 100, 4), dtype=np.uint8)
    image[..., 3] = 255
    # Add some asymmetric content
    cv2.rectangle(image, (10, 10), (40, 40), (255, 255, 255, 255), -1)
    cv2.circle(image, (75, 25), 12, (0, 0, 255, 255), -1)
    return image


@pytest.fixture
def png_file(tmp_path, test_image):
    """Test image written as PNG"""
    path = tmp_path / "test.png"
    Image.fromarray(test_image).save(path, format="PNG")
    return path


@pytest.fixture
def jpeg_file(tmp_path, test_image):
    """Test image written as JPEG"""
    path = tmp_path / "test.jpg"
    Image.fromarray(test_image).convert("RGB").save(path, format="JPEG", quality=95)
    return path


@pytest.fixture
def gif_file(tmp_path, test_image):
    """Test image written as GIF"""
    path = tmp_path / "test.gif"
    Image.fromarray(test_image).convert("RGB").save(path, format="GIF")
    return path


@pytest.fixture
def watermark_file(tmp_path):
    """Opaque red 20x10 watermark"""
    watermark = np.zeros((10, 20, 4), dtype=np.uint8)
    watermark[...] = (255, 0, 0, 255)
    path = tmp_path / "watermark.png"
    Image.fromarray(watermark).save(path, format="PNG")
    return path


@pytest.fixture
def not_an_image(tmp_path):
    """File with an image extension but no image data"""
    path = tmp_path / "broken.png"
    path.write_bytes(b"this is not an image")
    return path


@pytest.fixture
def raster_session():
    """Create raster ImageSession for testing"""
    session = ImageSession(Driver.RASTER)
    yield session
    # Cleanup
    session.close()


@pytest.fixture
def deferred_settings():
    return DriverSettings(driver=Driver.DEFERRED)


@pytest.fixture
def deferred_session(deferred_settings):
    """Create deferred ImageSession for testing"""
    session = ImageSession(Driver.DEFERRED, deferred_settings)
    yield session
    session.close()


@pytest.fixture
def transform_service():
    """Create TransformService instance for testing"""
    return TransformService(DriverSettings())


class FakeConvert:
    """
    Stand-in for subprocess.run recording convert invocations.

    Writes a small placeholder file to the destination so reads succeed.
    """

    def __init__(self, returncode=0, stderr="", output=b"converted"):
        self.returncode = returncode
        self.stderr = stderr
        self.output = output
        self.calls = []

    def __call__(self, args, **kwargs):
        self.calls.append(list(args))
        if self.returncode == 0:
            _, _, destination = args[-1].partition(":")
            Path(destination).write_bytes(self.output)
        return subprocess.CompletedProcess(args, self.returncode, stdout="", stderr=self.stderr)


@pytest.fixture
def fake_convert(monkeypatch):
    """Factory replacing subprocess.run with a FakeConvert"""

    def install(returncode=0, stderr=""):
        fake = FakeConvert(returncode=returncode, stderr=stderr)
        monkeypatch.setattr(subprocess, "run", fake)
        return fake

    return install
