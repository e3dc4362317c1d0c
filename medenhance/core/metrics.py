"""
Quality score estimation

The scores reported with an enhancement are synthesized stand-ins for a real
image-quality assessment. They sit behind the MetricsEstimator interface so a
deterministic or a measured estimator can be swapped in.
"""

import math
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from .raster import RasterBuffer


@dataclass
class QualityEstimate:
    quality_score: float
    interpretability_score: float
    insights: List[str] = field(default_factory=list)


def build_insights(noise_reduction: int, contrast: int, sharpening: int,
                   quality_score: float) -> List[str]:
    """One insight per sub-metric followed by the overall summary"""
    return [
        f"Noise reduction: {noise_reduction}%",
        f"Contrast enhancement: {contrast}%",
        f"Edge sharpening: {sharpening}%",
        f"Overall quality improvement: {math.floor(quality_score)}%",
    ]


class MetricsEstimator(ABC):

    @abstractmethod
    def estimate(self, original: RasterBuffer, enhanced: RasterBuffer) -> QualityEstimate:
        """Scores for an enhancement of ``original`` into ``enhanced``"""


class RandomMetricsEstimator(MetricsEstimator):
    """Bounded pseudo-random scores

    quality in [85, 95), interpretability in [80, 95), noise reduction in
    [75, 95), contrast in [80, 95), sharpening in [70, 95).
    """

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)

    def _between(self, low: float, span: float) -> float:
        return low + self._random.random() * span

    def estimate(self, original: RasterBuffer, enhanced: RasterBuffer) -> QualityEstimate:
        quality_score = self._between(85, 10)
        interpretability_score = self._between(80, 15)
        insights = build_insights(
            math.floor(self._between(75, 20)),
            math.floor(self._between(80, 15)),
            math.floor(self._between(70, 25)),
            quality_score,
        )
        return QualityEstimate(quality_score, interpretability_score, insights)


class StaticMetricsEstimator(MetricsEstimator):
    """Always reports the same scores"""

    def __init__(self, quality_score: float = 90.0, interpretability_score: float = 87.5,
                 noise_reduction: int = 85, contrast: int = 87, sharpening: int = 82):
        for name, value in (('quality_score', quality_score),
                            ('interpretability_score', interpretability_score)):
            if not 0 <= value < 100:
                raise ValueError(f"{name} must be within [0, 100), got {value}")
        self.quality_score = quality_score
        self.interpretability_score = interpretability_score
        self.noise_reduction = noise_reduction
        self.contrast = contrast
        self.sharpening = sharpening

    def estimate(self, original: RasterBuffer, enhanced: RasterBuffer) -> QualityEstimate:
        insights = build_insights(self.noise_reduction, self.contrast,
                                  self.sharpening, self.quality_score)
        return QualityEstimate(self.quality_score, self.interpretability_score, insights)
