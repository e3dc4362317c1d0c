"""
Unit tests for the raster buffer model
"""

import numpy as np
import pytest

from medenhance.core.raster import RasterBuffer, allocate
from medenhance.utils.image_utils import ValidationError


class TestRasterBuffer:

    def test_pixels_length_matches_dimensions(self):
        raster = RasterBuffer.blank(7, 5)
        assert raster.width == 7
        assert raster.height == 5
        assert len(raster.pixels) == 7 * 5 * 4

    def test_pixels_are_row_major_rgba(self):
        data = np.zeros((2, 3, 4), dtype=np.uint8)
        data[1, 2] = (10, 20, 30, 40)
        raster = RasterBuffer(data)

        offset = (1 * 3 + 2) * 4
        assert list(raster.pixels[offset:offset + 4]) == [10, 20, 30, 40]

    def test_from_gray_array_gets_opaque_alpha(self):
        gray = np.full((4, 6), 90, dtype=np.uint8)
        raster = RasterBuffer.from_array(gray)

        assert raster.size == (6, 4)
        assert np.all(raster.rgb == 90)
        assert np.all(raster.alpha == 255)

    def test_from_rgb_array(self):
        rgb = np.zeros((3, 3, 3), dtype=np.uint8)
        rgb[..., 0] = 200
        raster = RasterBuffer.from_array(rgb)

        assert np.all(raster.data[..., 0] == 200)
        assert np.all(raster.data[..., 1:3] == 0)
        assert np.all(raster.alpha == 255)

    def test_from_rgba_array_is_copied(self):
        rgba = np.full((2, 2, 4), 5, dtype=np.uint8)
        raster = RasterBuffer.from_array(rgba)
        rgba[0, 0, 0] = 99

        assert raster.data[0, 0, 0] == 5

    @pytest.mark.parametrize("bad", [
        np.zeros((4, 4, 4), dtype=np.float32),
        np.zeros((4, 4, 3), dtype=np.uint8),
        np.zeros((0, 4, 4), dtype=np.uint8),
        np.zeros(16, dtype=np.uint8),
    ])
    def test_rejects_malformed_data(self, bad):
        with pytest.raises(ValidationError):
            RasterBuffer(bad)

    def test_from_array_rejects_invalid_input(self):
        with pytest.raises(ValidationError):
            RasterBuffer.from_array(np.array([]))
        with pytest.raises(ValidationError):
            RasterBuffer.from_array(None)

    def test_copy_is_independent(self):
        raster = RasterBuffer.blank(3, 3, (1, 2, 3, 4))
        duplicate = raster.copy()
        duplicate.data[0, 0, 0] = 50

        assert raster.data[0, 0, 0] == 1
        assert raster != duplicate
        assert raster == RasterBuffer.blank(3, 3, (1, 2, 3, 4))

    def test_allocate_rejects_non_positive_size(self):
        with pytest.raises(ValidationError):
            allocate(0, 10)
