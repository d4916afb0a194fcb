"""
Centralized configuration for ShareBill with environment
"""

import os


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Session settings
DEFAULT_CURRENCY = os.getenv("SHAREBILL_DEFAULT_CURRENCY", "$")
OWNER_ID = os.getenv("SHAREBILL_OWNER_ID", "1")
OWNER_NAME = os.getenv("SHAREBILL_OWNER_NAME", "Me")
PROTECT_OWNER = _env_flag("SHAREBILL_PROTECT_OWNER", "true")
AVATAR_URL_TEMPLATE = os.getenv("SHAREBILL_AVATAR_URL", "https://picsum.photos/seed/{seed}/100")
FRIEND_ID_LENGTH = int(os.getenv("SHAREBILL_FRIEND_ID_LENGTH", "9"))
ITEM_ID_LENGTH = int(os.getenv("SHAREBILL_ITEM_ID_LENGTH", "12"))

# External call timeouts in seconds, 0 disables
ANALYSIS_TIMEOUT = float(os.getenv("SHAREBILL_ANALYSIS_TIMEOUT", "0"))
EDIT_TIMEOUT = float(os.getenv("SHAREBILL_EDIT_TIMEOUT", "0"))

DEBUG = _env_flag("SHAREBILL_DEBUG", "false")

# OCR settings
OCR_PSM = int(os.getenv("SHAREBILL_OCR_PSM", "6"))
OCR_LANGUAGES = os.getenv("SHAREBILL_OCR_LANGUAGES", "eng")
IMAGE_REGION_OVERLAP_PX = int(os.getenv("SHAREBILL_IMAGE_OVERLAP", "50"))

# Runtime settings
DEFAULT_MAX_WORKERS = int(os.getenv("SHAREBILL_MAX_WORKERS", "4"))
WORKERS_MIN = int(os.getenv("SHAREBILL_WORKERS_MIN", "1"))
WORKERS_MAX = int(os.getenv("SHAREBILL_WORKERS_MAX", "16"))

# Thresholds
DUPLICATE_SIMILARITY_THRESHOLD = float(os.getenv("SHAREBILL_DUP_SIMILARITY", "0.95"))
MAX_IMAGE_SIZE_BYTES = int(os.getenv("SHAREBILL_MAX_IMAGE_SIZE_BYTES", str(50 * 1024 * 1024)))

# Price normalization
ITEM_PRICE_MIN = float(os.getenv("SHAREBILL_ITEM_PRICE_MIN", "0.01"))
ITEM_PRICE_MAX = float(os.getenv("SHAREBILL_ITEM_PRICE_MAX", "10000"))
