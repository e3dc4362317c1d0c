"""
Core enhancement modules

This package contains the raster model and the enhancement stages:
- Resizing to a bounded dimension
- Bilateral noise reduction
- Histogram-equalization contrast enhancement
- Unsharp-mask sharpening
- The pipeline composing them, with pluggable decoding and quality estimation
"""

from .raster import RasterBuffer
from .codec import (
    RasterDecoder, PillowRasterDecoder, DecoderRegistry, is_supported_file, encode_png
)
from .resizer import Resizer
from .noise_reduction import NoiseReducer
from .contrast import ContrastEnhancer
from .sharpening import Sharpener
from .metrics import (
    MetricsEstimator, RandomMetricsEstimator, StaticMetricsEstimator, QualityEstimate
)
from .pipeline import EnhancementPipeline, EnhancementResult, BatchEnhancementResult

__all__ = [
    'RasterBuffer',
    'RasterDecoder',
    'PillowRasterDecoder',
    'DecoderRegistry',
    'is_supported_file',
    'encode_png',
    'Resizer',
    'NoiseReducer',
    'ContrastEnhancer',
    'Sharpener',
    'MetricsEstimator',
    'RandomMetricsEstimator',
    'StaticMetricsEstimator',
    'QualityEstimate',
    'EnhancementPipeline',
    'EnhancementResult',
    'BatchEnhancementResult',
]
