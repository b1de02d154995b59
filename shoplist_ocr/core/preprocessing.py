"""
Image preparation for shopping-list OCR.

Decodes a photo (honouring EXIF orientation), shrinks it to a workable
size, and renders the per-attempt images handed to the OCR engine:
rotated by 0/90/180/270 degrees, either untouched or contrast-thresholded.
Also derives the content hash and preview thumbnail returned to callers.
"""

import base64
import hashlib
import io
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import cv2
import numpy as np
from PIL import Image, ImageOps

from ..config import (
    MAX_LONG_EDGE,
    THUMBNAIL_EDGE,
    THUMBNAIL_JPEG_QUALITY,
    HASH_JPEG_QUALITY,
    OCR_JPEG_QUALITY,
)

ImageSource = Union[str, Path, bytes]


@dataclass
class PreparedImage:
    """A decoded, downscaled photo plus its derived identifiers."""
    image: Image.Image
    image_hash: str
    thumbnail_data_url: str


class ImagePreprocessor:
    """Preprocessing pipeline for photographed lists."""

    def __init__(
        self,
        max_long_edge: int = MAX_LONG_EDGE,
        thumbnail_edge: int = THUMBNAIL_EDGE,
        thumbnail_quality: int = THUMBNAIL_JPEG_QUALITY,
        hash_quality: int = HASH_JPEG_QUALITY,
        ocr_quality: int = OCR_JPEG_QUALITY,
        blank_stddev: float = 6.0
    ):
        self.max_long_edge = max_long_edge
        self.thumbnail_edge = thumbnail_edge
        self.thumbnail_quality = thumbnail_quality
        self.hash_quality = hash_quality
        self.ocr_quality = ocr_quality
        self.blank_stddev = blank_stddev

    def load(self, source: ImageSource) -> Image.Image:
        """
        Decode an image file or byte string as upright RGB.

        Raises:
            PIL.UnidentifiedImageError: If the data is not an image
        """
        if isinstance(source, (bytes, bytearray)):
            image = Image.open(io.BytesIO(source))
        else:
            image = Image.open(str(source))

        image = ImageOps.exif_transpose(image)
        return image.convert("RGB")

    def downscale(self, image: Image.Image, long_edge: int = None) -> Image.Image:
        """Shrink so the longer side is at most long_edge pixels (never enlarges)."""
        long_edge = long_edge or self.max_long_edge
        width, height = image.size
        longest = max(width, height)
        if longest <= long_edge:
            return image

        scale = long_edge / longest
        new_size = (max(1, round(width * scale)), max(1, round(height * scale)))
        return image.resize(new_size, Image.Resampling.LANCZOS)

    def rotate(self, image: Image.Image, degrees: int) -> Image.Image:
        """Rotate clockwise by a multiple of 90 degrees, growing the canvas."""
        if degrees % 360 == 0:
            return image
        # PIL rotates counter-clockwise for positive angles
        return image.rotate(-degrees, expand=True)

    def enhance_contrast(self, image: Image.Image) -> Image.Image:
        """Threshold at the mean gray level: brighter pixels white, the rest black."""
        rgb = np.asarray(image.convert("RGB"))
        gray = cv2.cvtColor(rgb, cv2.COLOR_RGB2GRAY)
        _, binary = cv2.threshold(gray, float(gray.mean()), 255, cv2.THRESH_BINARY)
        return Image.fromarray(binary)

    def render_attempt(self, image: Image.Image, rotation: int, variant: str) -> bytes:
        """
        Produce the JPEG bytes for one OCR attempt.

        Args:
            image: Prepared (downscaled) image
            rotation: Degrees clockwise
            variant: "preprocessed" (contrast-thresholded) or "raw"
        """
        rendered = self.rotate(image, rotation)
        if variant == "preprocessed":
            rendered = self.enhance_contrast(rendered)
        elif variant != "raw":
            raise ValueError(f"Unknown preprocessing variant: {variant}")
        return self.encode_jpeg(rendered, self.ocr_quality)

    def encode_jpeg(self, image: Image.Image, quality: int) -> bytes:
        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=quality)
        return buffer.getvalue()

    def image_hash(self, image: Image.Image) -> str:
        """SHA-256 hex digest of the normalized JPEG encoding."""
        return hashlib.sha256(self.encode_jpeg(image, self.hash_quality)).hexdigest()

    def thumbnail_data_url(self, image: Image.Image) -> str:
        thumb = self.downscale(image, self.thumbnail_edge)
        payload = base64.b64encode(self.encode_jpeg(thumb, self.thumbnail_quality)).decode('utf-8')
        return f"data:image/jpeg;base64,{payload}"

    def is_likely_blank(self, image: Image.Image) -> bool:
        """True for near-uniform images (lens cap, blank page)."""
        gray = cv2.cvtColor(np.asarray(image.convert("RGB")), cv2.COLOR_RGB2GRAY)
        return float(gray.std()) < self.blank_stddev

    def prepare(self, source: ImageSource) -> PreparedImage:
        """Decode, downscale and derive hash and thumbnail in one go."""
        image = self.downscale(self.load(source))
        return PreparedImage(
            image=image,
            image_hash=self.image_hash(image),
            thumbnail_data_url=self.thumbnail_data_url(image)
        )
