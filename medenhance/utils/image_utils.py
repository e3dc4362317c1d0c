import cv2
import numpy as np
from enum import Enum
from pathlib import Path
from typing import Union

from .logging_config import get_logger, timing_decorator

logger = get_logger(__name__)


class ImageProcessingError(Exception):
    """Base exception for enhancement failures; the message is shown to callers"""
    pass


class ValidationError(ImageProcessingError):
    """Exception for malformed buffers and arguments"""
    pass


class DecodeFailure(ImageProcessingError):
    """Input bytes could not be decoded into a raster"""
    pass


class RenderTargetUnavailable(ImageProcessingError):
    """The pixel buffer backing store could not be acquired"""
    pass


CanvasUnavailable = RenderTargetUnavailable


class EncodeFailure(ImageProcessingError):
    """The final raster could not be serialized to output bytes"""
    pass


class EnhancementCancelled(ImageProcessingError):
    """Raised at a stage boundary once cancellation was requested"""
    pass


class StageFailure(ImageProcessingError):
    """Unexpected error raised inside a pipeline stage"""

    def __init__(self, stage: str, cause: Exception):
        super().__init__(f"{stage} failed: {cause}")
        self.stage = stage
        self.cause = cause


class ErrorType(Enum):
    DECODE_ERROR = "decode_error"
    RENDER_TARGET_ERROR = "render_target_error"
    ENCODE_ERROR = "encode_error"
    VALIDATION_ERROR = "validation_error"
    CANCELLED = "cancelled"
    STAGE_ERROR = "stage_error"
    UNKNOWN_ERROR = "unknown_error"


def classify_error(error: Exception) -> ErrorType:
    """Map an exception onto the error taxonomy used for logging and statistics"""
    if isinstance(error, DecodeFailure):
        return ErrorType.DECODE_ERROR
    elif isinstance(error, RenderTargetUnavailable):
        return ErrorType.RENDER_TARGET_ERROR
    elif isinstance(error, EncodeFailure):
        return ErrorType.ENCODE_ERROR
    elif isinstance(error, ValidationError):
        return ErrorType.VALIDATION_ERROR
    elif isinstance(error, EnhancementCancelled):
        return ErrorType.CANCELLED
    elif isinstance(error, StageFailure):
        return ErrorType.STAGE_ERROR
    return ErrorType.UNKNOWN_ERROR


def round_half_up(values: np.ndarray) -> np.ndarray:
    """Round non-negative floats to the nearest integer, ties away from zero"""
    return np.floor(values + 0.5)


def to_uint8(values: np.ndarray) -> np.ndarray:
    """Clamp to [0, 255], round half-up and cast to uint8"""
    return round_half_up(np.clip(values, 0, 255)).astype(np.uint8)


def validate_image(image: np.ndarray) -> bool:
    """Check that an array can back a raster buffer"""
    if image is None:
        logger.warning("Image is None")
        return False

    if not isinstance(image, np.ndarray):
        logger.warning(f"Image is not numpy array, got {type(image)}")
        return False

    if len(image.shape) not in [2, 3]:
        logger.warning(f"Invalid image dimensions: {image.shape}")
        return False

    if len(image.shape) == 3 and image.shape[2] not in [1, 3, 4]:
        logger.warning(f"Unsupported channel count: {image.shape[2]}")
        return False

    if image.size == 0:
        logger.warning("Image is empty")
        return False

    if image.dtype != np.uint8:
        logger.warning(f"Expected uint8 samples, got {image.dtype}")
        return False

    return True


def calculate_image_metrics(rgba: np.ndarray) -> dict:
    """Measured image statistics of an (h, w, 4) RGBA array"""
    gray = cv2.cvtColor(rgba, cv2.COLOR_RGBA2GRAY)

    # Neighbourhood statistics need at least a 5x5 image
    sharpness = noise_level = 0.0
    if min(gray.shape) >= 5:
        sharpness = float(cv2.Laplacian(gray, cv2.CV_64F).var())
        median = cv2.medianBlur(gray, 5).astype(np.float32)
        noise_level = float(np.std(gray.astype(np.float32) - median))

    return {
        'mean_brightness': float(np.mean(gray)),
        'std_brightness': float(np.std(gray)),
        'contrast': float(int(gray.max()) - int(gray.min())),
        'dynamic_range': float(np.percentile(gray, 99) - np.percentile(gray, 1)),
        'sharpness': sharpness,
        'noise_level': noise_level,
        'image_size': gray.shape[:2]
    }


def enhanced_filename(original_name: str) -> str:
    """Download name offered for an enhanced image"""
    return f"enhanced_{Path(original_name).name}"


@timing_decorator
def save_image(data: bytes, output_path: Union[str, Path]) -> Path:
    """Write encoded image bytes to disk, creating parent directories"""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(data)
    logger.info(f"Image saved to: {output_path}")
    return output_path
