import numpy as np
from typing import Optional

from .raster import RasterBuffer
from ..utils.image_utils import timing_decorator, round_half_up, to_uint8
from ..utils.logging_config import get_logger
from ..configs.processing_config import EnhancementConfig

logger = get_logger(__name__)

LUMA_WEIGHTS = (0.299, 0.587, 0.114)


class ContrastEnhancer:
    """Adaptive contrast via luma histogram equalization blended with the original

    One histogram is built from the luma of the untouched image; its
    normalized cumulative distribution then remaps R, G and B alike.
    """

    def __init__(self, config: EnhancementConfig,
                 equalized_weight: Optional[float] = None,
                 original_weight: Optional[float] = None):
        self.config = config
        self.equalized_weight = (config.CONTRAST_EQUALIZED_WEIGHT
                                 if equalized_weight is None else equalized_weight)
        self.original_weight = (config.CONTRAST_ORIGINAL_WEIGHT
                                if original_weight is None else original_weight)
        logger.info(f"Initialized ContrastEnhancer: equalized_weight={self.equalized_weight}, "
                    f"original_weight={self.original_weight}")

    @staticmethod
    def luma(image: RasterBuffer) -> np.ndarray:
        """Rounded 8-bit luma of every pixel"""
        rgb = image.rgb.astype(np.float64)
        r, g, b = rgb[:, :, 0], rgb[:, :, 1], rgb[:, :, 2]
        value = LUMA_WEIGHTS[0] * r + LUMA_WEIGHTS[1] * g + LUMA_WEIGHTS[2] * b
        return np.clip(round_half_up(value), 0, 255).astype(np.uint8)

    def normalized_cdf(self, image: RasterBuffer) -> np.ndarray:
        """Cumulative luma histogram scaled to [0, 255]"""
        histogram = np.bincount(self.luma(image).ravel(), minlength=256)
        total_pixels = image.width * image.height
        return np.cumsum(histogram).astype(np.float64) / total_pixels * 255

    def lookup_table(self, cdf: np.ndarray, factor: float) -> np.ndarray:
        """Output value for each possible input channel value"""
        values = np.arange(256, dtype=np.float64)
        blended = cdf * factor * self.equalized_weight + values * self.original_weight
        return to_uint8(blended)

    @timing_decorator
    def enhance_contrast(self, image: RasterBuffer, factor: Optional[float] = None) -> RasterBuffer:
        """Remap the RGB channels of ``image`` in place and return it"""
        factor = self.config.CONTRAST_FACTOR if factor is None else factor
        table = self.lookup_table(self.normalized_cdf(image), factor)

        image.data[:, :, :3] = table[image.rgb]
        logger.debug(f"Contrast enhanced with factor={factor}")
        return image
