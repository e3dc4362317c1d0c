import math
import cv2
from typing import Tuple

from .raster import RasterBuffer
from ..utils.image_utils import timing_decorator, RenderTargetUnavailable
from ..utils.logging_config import get_logger
from ..configs.processing_config import EnhancementConfig

logger = get_logger(__name__)


class Resizer:
    """Bounds a raster to a maximum dimension while keeping its aspect ratio"""

    def __init__(self, config: EnhancementConfig):
        self.config = config
        self.max_dimension = config.MAX_DIMENSION

    def target_size(self, width: int, height: int) -> Tuple[int, int]:
        """Output (width, height) for an input of the given size"""
        bound = self.max_dimension
        if width <= bound and height <= bound:
            return width, height

        if width > height:
            return bound, max(1, math.floor(height * bound / width + 0.5))
        return max(1, math.floor(width * bound / height + 0.5)), bound

    @timing_decorator
    def resize(self, image: RasterBuffer) -> RasterBuffer:
        """
        Downscale ``image`` if its larger side exceeds the bound.

        Images already within the bound are returned as-is: same object, no
        resampling.
        """
        new_width, new_height = self.target_size(image.width, image.height)
        if (new_width, new_height) == (image.width, image.height):
            logger.debug(f"Image {image.width}x{image.height} within {self.max_dimension}px, not resized")
            return image

        try:
            resized = cv2.resize(image.data, (new_width, new_height), interpolation=cv2.INTER_AREA)
        except (MemoryError, cv2.error) as e:
            raise RenderTargetUnavailable(
                f"Could not resample image to {new_width}x{new_height}: {e}"
            ) from e

        logger.info(f"Resized image from {image.width}x{image.height} to {new_width}x{new_height}")
        return RasterBuffer(resized)
