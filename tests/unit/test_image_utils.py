"""
Unit tests for image helpers and the error hierarchy
"""

import numpy as np
import pytest

from medenhance.core.bands import run_row_bands, split_rows
from medenhance.utils.image_utils import (
    calculate_image_metrics, classify_error, enhanced_filename, round_half_up, save_image,
    to_uint8, validate_image, ErrorType, ImageProcessingError, ValidationError, DecodeFailure,
    RenderTargetUnavailable, CanvasUnavailable, EncodeFailure, EnhancementCancelled, StageFailure
)


class TestRounding:

    def test_round_half_up(self):
        values = np.array([0.5, 1.5, 2.5, 2.4999, 254.5])
        assert list(round_half_up(values)) == [1.0, 2.0, 3.0, 2.0, 255.0]

    def test_to_uint8_clamps(self):
        result = to_uint8(np.array([-20.0, 12.5, 300.0]))
        assert result.dtype == np.uint8
        assert list(result) == [0, 13, 255]


class TestValidateImage:

    def test_accepts_supported_layouts(self):
        assert validate_image(np.zeros((4, 4), dtype=np.uint8))
        assert validate_image(np.zeros((4, 4, 3), dtype=np.uint8))
        assert validate_image(np.zeros((4, 4, 4), dtype=np.uint8))

    @pytest.mark.parametrize("image", [
        None,
        [[1, 2], [3, 4]],
        np.zeros((4, 4, 2), dtype=np.uint8),
        np.zeros((4, 4), dtype=np.float64),
        np.zeros((0, 4), dtype=np.uint8),
        np.zeros((2, 2, 2, 2), dtype=np.uint8),
    ])
    def test_rejects_invalid(self, image):
        assert not validate_image(image)


class TestErrors:

    def test_hierarchy(self):
        for error_class in (ValidationError, DecodeFailure, RenderTargetUnavailable,
                            EncodeFailure, EnhancementCancelled):
            assert issubclass(error_class, ImageProcessingError)
        assert CanvasUnavailable is RenderTargetUnavailable

    def test_stage_failure_keeps_cause(self):
        cause = RuntimeError("kernel exploded")
        error = StageFailure("sharpening", cause)

        assert error.stage == "sharpening"
        assert error.cause is cause
        assert str(error) == "sharpening failed: kernel exploded"

    @pytest.mark.parametrize("error,expected", [
        (DecodeFailure("x"), ErrorType.DECODE_ERROR),
        (RenderTargetUnavailable("x"), ErrorType.RENDER_TARGET_ERROR),
        (EncodeFailure("x"), ErrorType.ENCODE_ERROR),
        (ValidationError("x"), ErrorType.VALIDATION_ERROR),
        (EnhancementCancelled("x"), ErrorType.CANCELLED),
        (StageFailure("resize", ValueError("x")), ErrorType.STAGE_ERROR),
        (KeyError("x"), ErrorType.UNKNOWN_ERROR),
    ])
    def test_classify_error(self, error, expected):
        assert classify_error(error) is expected


class TestImageMetrics:

    def test_uniform_image(self):
        rgba = np.full((10, 12, 4), 100, dtype=np.uint8)
        metrics = calculate_image_metrics(rgba)

        assert metrics['mean_brightness'] == pytest.approx(100, abs=1)
        assert metrics['contrast'] == 0.0
        assert metrics['sharpness'] == 0.0
        assert metrics['noise_level'] == 0.0
        assert metrics['image_size'] == (10, 12)

    def test_tiny_image_skips_neighbourhood_statistics(self):
        metrics = calculate_image_metrics(np.full((3, 3, 4), 128, dtype=np.uint8))
        assert metrics['sharpness'] == 0.0
        assert metrics['noise_level'] == 0.0


class TestFiles:

    def test_enhanced_filename(self):
        assert enhanced_filename("chest_xray.png") == "enhanced_chest_xray.png"
        assert enhanced_filename("/uploads/scan.dcm") == "enhanced_scan.dcm"

    def test_save_image_creates_directories(self, tmp_path):
        target = tmp_path / "out" / "enhanced_scan.png"
        assert save_image(b"\x89PNG data", target) == target
        assert target.read_bytes() == b"\x89PNG data"


class TestRowBands:

    @pytest.mark.parametrize("start,stop,parts,expected", [
        (2, 10, 1, [(2, 10)]),
        (2, 10, 3, [(2, 5), (5, 8), (8, 10)]),
        (0, 2, 5, [(0, 1), (1, 2)]),
        (4, 4, 3, []),
    ])
    def test_split_rows(self, start, stop, parts, expected):
        assert split_rows(start, stop, parts) == expected

    def test_every_row_processed_once(self):
        seen = []
        run_row_bands(lambda a, b: seen.extend(range(a, b)), 1, 50, workers=4)
        assert sorted(seen) == list(range(1, 50))

    def test_worker_errors_propagate(self):
        def fail(a, b):
            raise RuntimeError("band failed")

        with pytest.raises(RuntimeError):
            run_row_bands(fail, 0, 10, workers=2)
