from dataclasses import dataclass
from typing import Tuple
import os


@dataclass
class EnhancementConfig:
    """Configuration for the medical image enhancement pipeline"""

    # Geometry
    MAX_DIMENSION: int = int(os.getenv('MEDENHANCE_MAX_DIMENSION', 1024))

    # Bilateral noise reduction
    BILATERAL_KERNEL_SIZE: int = 5
    BILATERAL_SIGMA_SPACE: float = 2.0
    BILATERAL_SIGMA_INTENSITY: float = 50.0

    # Histogram-equalization contrast
    CONTRAST_FACTOR: float = 1.6
    CONTRAST_EQUALIZED_WEIGHT: float = 0.7
    CONTRAST_ORIGINAL_WEIGHT: float = 0.3

    # Unsharp mask blend
    SHARPEN_ORIGINAL_WEIGHT: float = 0.3
    SHARPEN_SHARPENED_WEIGHT: float = 0.7

    # Output
    PNG_COMPRESSION: int = 3

    # Performance
    WORKERS: int = int(os.getenv('MEDENHANCE_WORKERS', 1))
    MAX_BATCH_FILES: int = int(os.getenv('MEDENHANCE_MAX_BATCH_FILES', 10))

    # Upload surface
    ACCEPTED_EXTENSIONS: Tuple[str, ...] = ('.jpeg', '.jpg', '.png', '.dicom', '.dcm')

    LOG_PROCESSING_STEPS: bool = True

    def __post_init__(self):
        """Reject settings the filters cannot run with"""
        if self.MAX_DIMENSION < 1:
            raise ValueError(f"MAX_DIMENSION must be positive, got {self.MAX_DIMENSION}")
        if self.BILATERAL_KERNEL_SIZE < 3 or self.BILATERAL_KERNEL_SIZE % 2 == 0:
            raise ValueError(f"BILATERAL_KERNEL_SIZE must be an odd number >= 3, got {self.BILATERAL_KERNEL_SIZE}")
        if self.BILATERAL_SIGMA_SPACE <= 0 or self.BILATERAL_SIGMA_INTENSITY <= 0:
            raise ValueError("Bilateral sigmas must be positive")
        if self.CONTRAST_FACTOR <= 0:
            raise ValueError(f"CONTRAST_FACTOR must be positive, got {self.CONTRAST_FACTOR}")
        for name in ('CONTRAST', 'SHARPEN'):
            weights = [value for key, value in vars(self).items()
                       if key.startswith(name) and key.endswith('_WEIGHT')]
            if any(w < 0 for w in weights) or abs(sum(weights) - 1.0) > 1e-9:
                raise ValueError(f"{name} blend weights must be non-negative and sum to 1")
        if not 0 <= self.PNG_COMPRESSION <= 9:
            raise ValueError(f"PNG_COMPRESSION must be within 0-9, got {self.PNG_COMPRESSION}")
        if self.WORKERS < 1:
            raise ValueError(f"WORKERS must be at least 1, got {self.WORKERS}")
        if self.MAX_BATCH_FILES < 1:
            raise ValueError(f"MAX_BATCH_FILES must be at least 1, got {self.MAX_BATCH_FILES}")
        self.ACCEPTED_EXTENSIONS = tuple(ext.lower() for ext in self.ACCEPTED_EXTENSIONS)

    @classmethod
    def from_settings(cls, settings) -> "EnhancementConfig":
        """Build a config from application settings"""
        return cls(
            MAX_DIMENSION=settings.max_dimension,
            WORKERS=settings.workers,
            MAX_BATCH_FILES=settings.max_batch_files,
            PNG_COMPRESSION=settings.png_compression,
            LOG_PROCESSING_STEPS=settings.log_processing_steps,
        )
