"""
Decode and encode boundary of the enhancement core

Decoders turn caller-supplied bytes into a RasterBuffer. They are looked up by
file extension so a dedicated decoder (for example a real DICOM reader) can be
registered without touching the filter stages.
"""

import io
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, Optional

import cv2
import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .raster import RasterBuffer
from ..utils.image_utils import (
    DecodeFailure, EncodeFailure, RenderTargetUnavailable
)
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_EXTENSIONS = ('.jpeg', '.jpg', '.png', '.dicom', '.dcm')
DICOM_EXTENSIONS = ('.dicom', '.dcm')


class RasterDecoder(ABC):
    """Turns encoded image bytes into a RasterBuffer"""

    name = "decoder"

    @abstractmethod
    def decode(self, data: bytes) -> RasterBuffer:
        """Decode ``data`` or raise DecodeFailure"""


class PillowRasterDecoder(RasterDecoder):
    """Decodes any browsable raster format Pillow understands to RGBA"""

    name = "pillow"

    def __init__(self, apply_exif_orientation: bool = True):
        self.apply_exif_orientation = apply_exif_orientation

    def decode(self, data: bytes) -> RasterBuffer:
        if not data:
            raise DecodeFailure("Image data is empty")

        try:
            with Image.open(io.BytesIO(data)) as image:
                image.load()
                if self.apply_exif_orientation:
                    image = ImageOps.exif_transpose(image)
                rgba = np.asarray(image.convert("RGBA"), dtype=np.uint8)
        except MemoryError as e:
            raise RenderTargetUnavailable("Not enough memory to decode image") from e
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise DecodeFailure(f"Could not decode image: {e}") from e

        logger.debug(f"Decoded {rgba.shape[1]}x{rgba.shape[0]} image with {self.name}")
        return RasterBuffer(rgba.copy())


class DecoderRegistry:
    """Extension to decoder mapping with a fallback for unknown extensions"""

    def __init__(self, fallback: Optional[RasterDecoder] = None):
        self._decoders: Dict[str, RasterDecoder] = {}
        self.fallback = fallback or PillowRasterDecoder()

    @classmethod
    def default(cls, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> "DecoderRegistry":
        """Registry routing every accepted extension to the Pillow decoder"""
        registry = cls()
        for extension in extensions:
            registry.register(extension, registry.fallback)
        return registry

    @staticmethod
    def _normalize(extension: str) -> str:
        extension = extension.lower()
        return extension if extension.startswith('.') else f'.{extension}'

    def register(self, extension: str, decoder: RasterDecoder):
        self._decoders[self._normalize(extension)] = decoder

    def get(self, filename: Optional[str] = None) -> RasterDecoder:
        if not filename:
            return self.fallback
        extension = Path(filename).suffix.lower()
        decoder = self._decoders.get(extension, self.fallback)
        if extension in DICOM_EXTENSIONS and isinstance(decoder, PillowRasterDecoder):
            logger.warning(f"{filename}: no DICOM decoder registered, treating file as a plain raster image")
        return decoder

    def decode(self, data: bytes, filename: Optional[str] = None) -> RasterBuffer:
        return self.get(filename).decode(data)

    @property
    def extensions(self):
        return tuple(sorted(self._decoders))


def is_supported_file(filename: str, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> bool:
    """Whether the upload surface accepts a file with this name"""
    return Path(filename).suffix.lower() in {ext.lower() for ext in extensions}


def encode_png(buffer: RasterBuffer, compression: int = 3) -> bytes:
    """Lossless PNG encoding of an RGBA buffer"""
    try:
        bgra = cv2.cvtColor(buffer.data, cv2.COLOR_RGBA2BGRA)
        success, encoded = cv2.imencode('.png', bgra, [cv2.IMWRITE_PNG_COMPRESSION, compression])
    except cv2.error as e:
        raise EncodeFailure(f"Failed to create enhanced image: {e}") from e

    if not success:
        raise EncodeFailure("Failed to create enhanced image")
    return encoded.tobytes()
