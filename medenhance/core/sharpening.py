import numpy as np
from typing import Optional

from .bands import run_row_bands
from .raster import RasterBuffer
from ..utils.image_utils import timing_decorator, to_uint8
from ..utils.logging_config import get_logger
from ..configs.processing_config import EnhancementConfig

logger = get_logger(__name__)

UNSHARP_KERNEL = np.array([[-0.5, -1.0, -0.5],
                           [-1.0,  7.0, -1.0],
                           [-0.5, -1.0, -0.5]], dtype=np.float64)


class Sharpener:
    """Unsharp-mask sharpening blended with the original signal

    The 3x3 kernel runs over interior pixels only; the one-pixel border and
    the alpha channel are left as they are.
    """

    def __init__(self, config: EnhancementConfig,
                 kernel: Optional[np.ndarray] = None,
                 original_weight: Optional[float] = None,
                 sharpened_weight: Optional[float] = None,
                 workers: Optional[int] = None):
        self.config = config
        self.kernel = UNSHARP_KERNEL if kernel is None else np.asarray(kernel, dtype=np.float64)
        if self.kernel.shape != (3, 3):
            raise ValueError(f"Sharpening kernel must be 3x3, got {self.kernel.shape}")
        self.original_weight = (config.SHARPEN_ORIGINAL_WEIGHT
                                if original_weight is None else original_weight)
        self.sharpened_weight = (config.SHARPEN_SHARPENED_WEIGHT
                                 if sharpened_weight is None else sharpened_weight)
        self.workers = config.WORKERS if workers is None else workers
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")
        logger.info("Initialized Sharpener")

    @timing_decorator
    def sharpen(self, image: RasterBuffer) -> RasterBuffer:
        """Sharpen ``image`` in place and return it"""
        if image.width < 3 or image.height < 3:
            logger.debug(f"Image {image.width}x{image.height} has no interior, skipping sharpening")
            return image

        snapshot = image.rgb.astype(np.float64)
        output = image.data

        def sharpen_band(y0: int, y1: int):
            output[y0:y1, 1:image.width - 1, :3] = self._sharpen_rows(snapshot, y0, y1)

        run_row_bands(sharpen_band, 1, image.height - 1, self.workers)
        return image

    def _sharpen_rows(self, snapshot: np.ndarray, y0: int, y1: int) -> np.ndarray:
        width = snapshot.shape[1]
        original = snapshot[y0:y1, 1:width - 1]

        convolved = np.zeros(original.shape, dtype=np.float64)
        for ky in range(3):
            for kx in range(3):
                dy, dx = ky - 1, kx - 1
                convolved += self.kernel[ky, kx] * snapshot[y0 + dy:y1 + dy, 1 + dx:width - 1 + dx]

        clamped = np.clip(convolved, 0, 255)
        return to_uint8(original * self.original_weight + clamped * self.sharpened_weight)
