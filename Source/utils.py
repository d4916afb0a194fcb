#!/usr/bin/env python3
"""
Utility functions for ShareBill
"""

import math
import re
import uuid
import mimetypes
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional, Iterable
from urllib.parse import quote

from config import MAX_IMAGE_SIZE_BYTES, AVATAR_URL_TEMPLATE
from constants import SUFFIX_CURRENCIES

IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.bmp', '.tiff', '.gif', '.webp'}
SCIENTIFIC_NUMBER = re.compile(r'^\s*-?\d+(\.\d+)?[eE][+-]?\d+\s*$')


def validate_image_path(image_path: str) -> bool:
    """Image path validation with security checks"""
    if not isinstance(image_path, str):
        print("Image path must be a string")
        return False

    path = Path(image_path)

    if '..' in path.parts:
        print(f"Security risk: Invalid path pattern: {image_path}")
        return False

    if not path.exists():
        print(f"File not found: {image_path}")
        return False

    if not path.is_file():
        print(f"Path is not a file: {image_path}")
        return False

    if path.stat().st_size > MAX_IMAGE_SIZE_BYTES:
        print(f"File too large: {path.stat().st_size} bytes (max: {MAX_IMAGE_SIZE_BYTES})")
        return False

    if path.suffix.lower() not in IMAGE_EXTENSIONS:
        print(f"Unsupported file extension: {path.suffix}")
        return False

    mime_type, _ = mimetypes.guess_type(str(path))
    if mime_type and not mime_type.startswith('image/'):
        print(f"Invalid MIME type: {mime_type}")
        return False

    return True


def read_image_bytes(image_path: str) -> bytes:
    with open(image_path, 'rb') as f:
        return f.read()


def random_token(length: int, taken: Iterable[str] = ()) -> str:
    """Opaque random id; unique only with high probability, so clashes with `taken` are re-drawn"""
    taken = set(taken)
    while True:
        token = uuid.uuid4().hex[:length]
        if token not in taken:
            return token


def avatar_for(name: str) -> str:
    """Deterministic avatar URL for a friend's name"""
    return AVATAR_URL_TEMPLATE.format(seed=quote(name.strip(), safe=''))


def parse_money(value) -> Optional[Decimal]:
    """Convert a number or a price string ("12,50", "$1,234.00") to Decimal"""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value)) if math.isfinite(value) else None
    if not isinstance(value, str):
        return None

    if SCIENTIFIC_NUMBER.match(value):
        return Decimal(value.strip())

    first_digit = re.search(r'\d', value)
    negative = first_digit is not None and '-' in value[:first_digit.start()]
    cleaned = re.sub(r'[^\d,\.]', '', value)
    if not cleaned:
        return None

    # European format (comma as decimal separator)
    if ',' in cleaned and '.' in cleaned:
        if cleaned.rfind(',') > cleaned.rfind('.'):
            cleaned = cleaned.replace('.', '').replace(',', '.')
        else:
            cleaned = cleaned.replace(',', '')
    elif cleaned.count(',') == 1 and len(cleaned.split(',')[1]) <= 2:
        cleaned = cleaned.replace(',', '.')
    else:
        cleaned = cleaned.replace(',', '')

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return -amount if negative else amount


def format_currency(amount, currency: str = '$') -> str:
    """Format currency amount with its symbol"""
    if not isinstance(amount, (int, float, Decimal)):
        amount = 0
    if currency in SUFFIX_CURRENCIES:
        return f"{amount:.2f} {currency}"
    return f"{currency}{amount:.2f}"


def try_parse_int(value: str) -> Optional[int]:
    """Safely parse integer from string"""
    try:
        return int(value.strip())
    except (ValueError, AttributeError):
        return None


def validate_menu_choice(choice: str, valid_choices: list[str]) -> Optional[str]:
    """Validate a menu choice against allowed options"""
    if not isinstance(choice, str):
        return None
    choice = choice.strip()
    return choice if choice in set(valid_choices) else None


def clean_text_for_display(text: str, max_length: int = 100) -> str:
    """Clean text for safe display in UI"""
    if not isinstance(text, str):
        return ""

    # Remove control characters
    text = re.sub(r'[\x00-\x1f\x7f-\x9f]', '', text)

    # Normalize whitespace
    text = ' '.join(text.split())

    if len(text) > max_length:
        text = text[:max_length-3] + "..."

    return text

