import numpy as np
from typing import Tuple

from ..utils.image_utils import validate_image, ValidationError, RenderTargetUnavailable


class RasterBuffer:
    """Decoded image held as interleaved 8-bit RGBA samples

    ``data`` is a C-contiguous uint8 array of shape (height, width, 4);
    ``pixels`` is the same memory viewed as a flat row-major sequence.
    """

    CHANNELS = 4

    def __init__(self, data: np.ndarray):
        if not isinstance(data, np.ndarray) or data.dtype != np.uint8:
            raise ValidationError("Raster data must be a uint8 numpy array")
        if data.ndim != 3 or data.shape[2] != self.CHANNELS:
            raise ValidationError(f"Raster data must have shape (height, width, 4), got {data.shape}")
        if data.shape[0] < 1 or data.shape[1] < 1:
            raise ValidationError(f"Raster dimensions must be positive, got {data.shape[1]}x{data.shape[0]}")
        self.data = np.ascontiguousarray(data)

    @classmethod
    def from_array(cls, image: np.ndarray) -> "RasterBuffer":
        """Wrap a gray, RGB or RGBA uint8 array; missing alpha becomes opaque"""
        if not validate_image(image):
            raise ValidationError("Invalid image array")

        if image.ndim == 2:
            image = image[:, :, np.newaxis]

        height, width, channels = image.shape
        if channels == 4:
            return cls(image.copy())

        rgba = allocate(width, height)
        if channels == 1:
            rgba[:, :, :3] = image
        else:
            rgba[:, :, :3] = image[:, :, :3]
        rgba[:, :, 3] = 255
        return cls(rgba)

    @classmethod
    def blank(cls, width: int, height: int,
              fill: Tuple[int, int, int, int] = (0, 0, 0, 255)) -> "RasterBuffer":
        """Buffer of the given size with every sample set to ``fill``"""
        data = allocate(width, height)
        data[:, :] = np.asarray(fill, dtype=np.uint8)
        return cls(data)

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def height(self) -> int:
        return self.data.shape[0]

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def pixels(self) -> np.ndarray:
        return self.data.reshape(-1)

    @property
    def rgb(self) -> np.ndarray:
        return self.data[:, :, :3]

    @property
    def alpha(self) -> np.ndarray:
        return self.data[:, :, 3]

    def copy(self) -> "RasterBuffer":
        try:
            return RasterBuffer(self.data.copy())
        except MemoryError as e:
            raise RenderTargetUnavailable(
                f"Could not allocate a {self.width}x{self.height} pixel buffer"
            ) from e

    def __eq__(self, other):
        if not isinstance(other, RasterBuffer):
            return NotImplemented
        return self.data.shape == other.data.shape and np.array_equal(self.data, other.data)

    def __repr__(self):
        return f"RasterBuffer(width={self.width}, height={self.height})"


def allocate(width: int, height: int) -> np.ndarray:
    """Zeroed (height, width, 4) sample array"""
    if width < 1 or height < 1:
        raise ValidationError(f"Raster dimensions must be positive, got {width}x{height}")
    try:
        return np.zeros((height, width, RasterBuffer.CHANNELS), dtype=np.uint8)
    except MemoryError as e:
        raise RenderTargetUnavailable(f"Could not allocate a {width}x{height} pixel buffer") from e
