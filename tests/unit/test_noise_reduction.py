"""
Unit tests for bilateral noise reduction
"""

import math

import numpy as np
import pytest

from medenhance.core.noise_reduction import NoiseReducer
from medenhance.core.raster import RasterBuffer


def reference_bilateral(data: np.ndarray, half: int = 2, sigma_space: float = 2.0,
                        sigma_intensity: float = 50.0) -> np.ndarray:
    """Straightforward per-pixel bilateral filter used as an oracle"""
    height, width = data.shape[:2]
    output = data.copy()
    for y in range(half, height - half):
        for x in range(half, width - half):
            for c in range(3):
                center = float(data[y, x, c])
                total = weights = 0.0
                for dy in range(-half, half + 1):
                    for dx in range(-half, half + 1):
                        value = float(data[y + dy, x + dx, c])
                        spatial = math.exp(-(dx * dx + dy * dy) / (2 * sigma_space ** 2))
                        intensity = math.exp(-((value - center) ** 2) / (2 * sigma_intensity ** 2))
                        total += spatial * intensity * value
                        weights += spatial * intensity
                output[y, x, c] = math.floor(total / weights + 0.5)
    return output


@pytest.fixture
def reducer(config):
    return NoiseReducer(config)


class TestNoiseReducer:

    def test_matches_reference_filter(self, reducer, images):
        image = images.create_test_image("translucent", width=12, height=9)
        expected = reference_bilateral(image.data)

        result = reducer.reduce_noise(image)

        difference = np.abs(result.data.astype(int) - expected.astype(int))
        # Only last-bit differences in exp() may flip a rounding tie
        assert difference.max() <= 1
        assert np.count_nonzero(difference) <= 2

    def test_filters_in_place(self, reducer, images):
        image = images.create_test_image("noisy")
        assert reducer.reduce_noise(image) is image

    def test_border_pixels_are_untouched(self, reducer, images):
        image = images.create_test_image("noisy", width=20, height=15)
        before = image.data.copy()

        result = reducer.reduce_noise(image).data

        assert np.array_equal(result[:2], before[:2])
        assert np.array_equal(result[-2:], before[-2:])
        assert np.array_equal(result[:, :2], before[:, :2])
        assert np.array_equal(result[:, -2:], before[:, -2:])

    def test_alpha_is_untouched(self, reducer, images):
        image = images.create_test_image("translucent", width=16, height=16)
        alpha = image.alpha.copy()

        reducer.reduce_noise(image)

        assert np.array_equal(image.alpha, alpha)

    def test_reduces_noise(self, reducer, images):
        image = images.create_test_image("noisy", width=60, height=60)
        interior_before = image.rgb[2:-2, 2:-2].astype(float).std()

        reducer.reduce_noise(image)

        assert image.rgb[2:-2, 2:-2].astype(float).std() < interior_before

    def test_preserves_strong_edges(self, reducer):
        data = np.zeros((10, 10, 4), dtype=np.uint8)
        data[..., 3] = 255
        data[:, 5:, :3] = 250
        image = RasterBuffer(data)

        reducer.reduce_noise(image)

        # A 250-level step is far beyond sigma_intensity; both sides stay flat
        assert np.all(image.rgb[2:-2, 2:5] <= 1)
        assert np.all(image.rgb[2:-2, 5:8] >= 249)

    def test_uniform_image_is_unchanged(self, reducer, images):
        image = images.create_test_image("gray", width=9, height=9)
        before = image.data.copy()
        assert np.array_equal(reducer.reduce_noise(image).data, before)

    @pytest.mark.parametrize("size", [(3, 3), (4, 10), (10, 4), (1, 1)])
    def test_images_without_interior_are_unchanged(self, reducer, images, size):
        image = images.create_test_image("translucent", width=size[0], height=size[1])
        before = image.data.copy()
        assert np.array_equal(reducer.reduce_noise(image).data, before)

    def test_deterministic(self, reducer, images):
        first = reducer.reduce_noise(images.create_test_image("noisy")).data
        second = reducer.reduce_noise(images.create_test_image("noisy")).data
        assert np.array_equal(first, second)

    @pytest.mark.parametrize("workers", [2, 3, 8])
    def test_threaded_bands_match_single_band(self, config, images, workers):
        single = NoiseReducer(config, workers=1).reduce_noise(
            images.create_test_image("noisy", width=33, height=41)).data
        banded = NoiseReducer(config, workers=workers).reduce_noise(
            images.create_test_image("noisy", width=33, height=41)).data
        assert np.array_equal(single, banded)

    @pytest.mark.parametrize("overrides", [
        {'kernel_size': 4},
        {'kernel_size': 1},
        {'kernel_size': 0},
        {'sigma_space': 0.0},
        {'sigma_intensity': -5.0},
        {'workers': 0},
    ])
    def test_rejects_invalid_arguments(self, config, overrides):
        with pytest.raises(ValueError):
            NoiseReducer(config, **overrides)

    def test_explicit_arguments_override_config(self, config):
        reducer = NoiseReducer(config, kernel_size=7, sigma_space=1.5, workers=2)

        assert reducer.kernel_size == 7
        assert reducer.half == 3
        assert reducer.spatial_weights.shape == (7, 7)
        assert reducer.sigma_space == 1.5
        assert reducer.sigma_intensity == config.BILATERAL_SIGMA_INTENSITY
        assert reducer.workers == 2
