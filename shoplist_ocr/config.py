"""
Configuration constants for the shopping-list pipeline.

Deployment-level settings are read once from the environment; everything
else is a fixed tuning constant shared by the parser, the categorizer,
the attempt scorer and the vision mapper.
"""

import os

# =============================================================================
# Environment Settings
# =============================================================================

OCR_ENGINE = os.environ.get('SHOPLIST_OCR_ENGINE', 'tesseract')
OCR_LANG = os.environ.get('SHOPLIST_OCR_LANG', 'eng')

VISION_MODEL = os.environ.get('SHOPLIST_VISION_MODEL', 'claude-sonnet-4-5')
VISION_PROXY_URL = os.environ.get('SHOPLIST_VISION_PROXY_URL')
VISION_TIMEOUT = float(os.environ.get('SHOPLIST_VISION_TIMEOUT', '90'))
VISION_MAX_TOKENS = 4096

# =============================================================================
# Image Preparation
# =============================================================================

ROTATIONS = (0, 90, 270, 180)         # Tried in this order, degrees clockwise
VARIANTS = ("preprocessed", "raw")    # Contrast-thresholded first, then untouched
MAX_LONG_EDGE = 1600                  # Downscale target before OCR (pixels)
THUMBNAIL_EDGE = 320                  # Long edge of the preview thumbnail
THUMBNAIL_JPEG_QUALITY = 65
HASH_JPEG_QUALITY = 80                # Quality of the JPEG that gets hashed
OCR_JPEG_QUALITY = 92

# Background worker polling interval for cancellation checks (seconds)
WORKER_POLL_INTERVAL = 0.05

# =============================================================================
# Categorization
# =============================================================================

EXACT_CONFIDENCE = 1.0
FUZZY_CONFIDENCE = 0.8
RULE_CONFIDENCE = 0.6
FALLBACK_CONFIDENCE = 0.3
FUZZY_THRESHOLD = 0.34    # Max normalized edit distance accepted (0 = identical)

MANUAL_CONFIDENCE = 0.2
MAGIC_CONFIDENCE = 0.95

# =============================================================================
# Attempt Scoring
# =============================================================================

KNOWN_ITEM_MIN_CONFIDENCE = 0.6
KNOWN_ITEM_WEIGHT = 7.0
AVG_CONFIDENCE_WEIGHT = 3.0
ALPHA_WORD_CAP = 24
ALPHA_WORD_WEIGHT = 0.25
ITEM_COUNT_CAP = 20
ITEM_COUNT_WEIGHT = 0.15
GARBAGE_PENALTY = 4.0
GARBAGE_LINE_SHARE = 0.5  # A line is garbage when more than half its chars are symbols

STRONG_KNOWN_ITEMS = 2
STRONG_SINGLE_ITEM_CONFIDENCE = 0.55
STRONG_SCORE = 12.0

# OCR confidence heuristic
CONFIDENCE_MIN_WORDS = 8
CONFIDENCE_MIN_MEAN = 0.7
CONFIDENCE_MIN_LINES = 5
CONFIDENCE_MAX_GARBAGE = 0.4

# Magic mode suggestion
MAGIC_SUGGEST_CONFIDENCE = 0.55
MAGIC_SUGGEST_MIN_ITEMS = 4
