"""
Core module for shopping-list OCR.

This package contains the image-facing components:
- utils: Data classes, cancellation, and JSON export
- preprocessing: Decode, downscale, rotation and contrast variants, hash and thumbnail
- recognition: OCR engine wrappers (Tesseract, EasyOCR) and the background worker
"""

# Data classes
from .utils import (
    ShoppingItem,
    ParsedLine,
    NormalizedName,
    CategorizedName,
    Section,
    OcrResult,
    OcrMeta,
    ProcessResult,
    MagicModeResult,
)

# Helpers
from .utils import (
    ProcessingCancelled,
    raise_if_cancelled,
    create_id,
    sections_to_dict,
    save_process_result,
)

# Preprocessing
from .preprocessing import ImagePreprocessor, PreparedImage

# Recognition
from .recognition import OCREngine, recognize_in_worker


__all__ = [
    # Data classes
    "ShoppingItem",
    "ParsedLine",
    "NormalizedName",
    "CategorizedName",
    "Section",
    "OcrResult",
    "OcrMeta",
    "ProcessResult",
    "MagicModeResult",
    # Helpers
    "ProcessingCancelled",
    "raise_if_cancelled",
    "create_id",
    "sections_to_dict",
    "save_process_result",
    # Preprocessing
    "ImagePreprocessor",
    "PreparedImage",
    # Recognition
    "OCREngine",
    "recognize_in_worker",
]
