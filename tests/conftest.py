"""
Pytest configuration and shared fixtures

This module provides common fixtures and configuration for all tests.
"""

import io

import numpy as np
import pytest
from PIL import Image

from medenhance.configs.processing_config import EnhancementConfig
from medenhance.core.metrics import StaticMetricsEstimator
from medenhance.core.pipeline import EnhancementPipeline
from medenhance.core.raster import RasterBuffer
from medenhance.utils.logging_config import setup_logging


# Configure test logging
setup_logging(log_level="DEBUG")


class TestImageCreation:
    """Helper class for creating test images"""

    __test__ = False

    @staticmethod
    def create_test_image(image_type: str = "normal", width: int = 64, height: int = 48,
                          seed: int = 7) -> RasterBuffer:
        """Create different types of RGBA test rasters"""
        rng = np.random.default_rng(seed)
        if image_type == "gray":
            return RasterBuffer.blank(width, height, (128, 128, 128, 255))
        elif image_type == "noisy":
            base = np.full((height, width, 3), 120, dtype=np.float64)
            noisy = np.clip(base + rng.normal(0, 25, base.shape), 0, 255).astype(np.uint8)
            return RasterBuffer.from_array(noisy)
        elif image_type == "gradient":
            row = np.linspace(0, 255, width).astype(np.uint8)
            gray = np.tile(row, (height, 1))
            return RasterBuffer.from_array(gray)
        elif image_type == "translucent":
            data = rng.integers(0, 256, (height, width, 4), dtype=np.uint8)
            return RasterBuffer(data)
        else:
            return RasterBuffer.from_array(rng.integers(40, 200, (height, width, 3), dtype=np.uint8))

    @staticmethod
    def encode(image: RasterBuffer, fmt: str = "PNG") -> bytes:
        """Encode a raster with Pillow, as an upload would arrive"""
        buffer = io.BytesIO()
        mode = "RGBA" if fmt == "PNG" else "RGB"
        Image.fromarray(image.data).convert(mode).save(buffer, format=fmt)
        return buffer.getvalue()


@pytest.fixture
def images():
    return TestImageCreation()


@pytest.fixture
def config():
    """Fixture for enhancement configuration"""
    return EnhancementConfig()


@pytest.fixture
def estimator():
    return StaticMetricsEstimator(quality_score=91.4, interpretability_score=88.0,
                                  noise_reduction=84, contrast=90, sharpening=77)


@pytest.fixture
def pipeline(config, estimator):
    """Pipeline with deterministic quality scores"""
    return EnhancementPipeline(config, metrics_estimator=estimator)


@pytest.fixture
def progress():
    """Recording progress sink"""
    class Recorder(list):
        def __call__(self, percent):
            self.append(percent)
    return Recorder()
