"""
Utility functions for image enhancement

Contains logging helpers, the error hierarchy and small array helpers.
"""

from .logging_config import (
    setup_logging,
    get_logger,
    EngineLogger,
    timing_decorator,
)
from .image_utils import (
    validate_image,
    calculate_image_metrics,
    round_half_up,
    to_uint8,
    enhanced_filename,
    save_image,
    classify_error,
    ErrorType,
    ImageProcessingError,
    ValidationError,
    DecodeFailure,
    RenderTargetUnavailable,
    CanvasUnavailable,
    EncodeFailure,
    EnhancementCancelled,
    StageFailure,
)

__all__ = [
    'setup_logging',
    'get_logger',
    'EngineLogger',
    'timing_decorator',
    'validate_image',
    'calculate_image_metrics',
    'round_half_up',
    'to_uint8',
    'enhanced_filename',
    'save_image',
    'classify_error',
    'ErrorType',
    'ImageProcessingError',
    'ValidationError',
    'DecodeFailure',
    'RenderTargetUnavailable',
    'CanvasUnavailable',
    'EncodeFailure',
    'EnhancementCancelled',
    'StageFailure',
]
