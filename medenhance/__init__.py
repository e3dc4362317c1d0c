"""
Medical Image Enhancement

This package enhances raster medical images (X-ray, MRI and CT photographs)
with edge-preserving noise reduction, adaptive contrast enhancement and
sharpening, and reports quality metrics for the result.
"""

from .core.pipeline import EnhancementPipeline, EnhancementResult
from .core.raster import RasterBuffer
from .configs.processing_config import EnhancementConfig
from .utils.image_utils import ImageProcessingError

__all__ = [
    'EnhancementPipeline',
    'EnhancementResult',
    'RasterBuffer',
    'EnhancementConfig',
    'ImageProcessingError',
]

__version__ = '1.0.0'
