"""
Tests for configuration loading
"""

import pytest
from pydantic import ValidationError

from imagehandler.config import Settings
from imagehandler.core.enums import Driver
from imagehandler.core.exceptions import InvalidDriver


class TestSettings:
    """Test Settings.from_env"""

    def test_defaults(self):
        settings = Settings.from_env({})

        assert settings.environment == "development"
        assert settings.system.log_level == "INFO"
        assert settings.system.debug is False
        assert settings.api.port == 8000
        assert settings.api.storage_root == "."
        assert settings.drivers.driver == Driver.RASTER
        assert settings.drivers.convert_path == "convert"
        assert settings.drivers.check_exit_status is True
        assert settings.drivers.default_jpeg_quality == 75

    def test_environment_overrides(self):
        settings = Settings.from_env(
            {
                "IMAGEHANDLER_ENVIRONMENT": "production",
                "IMAGEHANDLER_LOG_LEVEL": "debug",
                "IMAGEHANDLER_DEBUG": "true",
                "IMAGEHANDLER_PORT": "9000",
                "IMAGEHANDLER_STORAGE_ROOT": "/srv/images",
                "IMAGEHANDLER_DRIVER": "ImageMagick",
                "IMAGEHANDLER_CONVERT_PATH": "/usr/local/bin/convert",
                "IMAGEHANDLER_CHECK_EXIT_STATUS": "false",
                "IMAGEHANDLER_JPEG_QUALITY": "90",
            }
        )

        assert settings.environment == "production"
        assert settings.system.log_level == "DEBUG"
        assert settings.system.debug is True
        assert settings.api.port == 9000
        assert settings.api.storage_root == "/srv/images"
        assert settings.drivers.driver == Driver.DEFERRED
        assert settings.drivers.convert_path == "/usr/local/bin/convert"
        assert settings.drivers.check_exit_status is False
        assert settings.drivers.default_jpeg_quality == 90

    def test_invalid_driver(self):
        with pytest.raises(InvalidDriver):
            Settings.from_env({"IMAGEHANDLER_DRIVER": "vips"})

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings.from_env({"IMAGEHANDLER_LOG_LEVEL": "chatty"})

    def test_invalid_quality(self):
        with pytest.raises(ValidationError):
            Settings.from_env({"IMAGEHANDLER_JPEG_QUALITY": "150"})

    def test_to_dict(self):
        data = Settings.from_env({}).to_dict()

        assert data["drivers"]["driver"] == "raster"
        assert data["system"]["log_level"] == "INFO"
