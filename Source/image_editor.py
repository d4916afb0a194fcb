"""
Image editing for ShareBill
The image edit service interface and a local Pillow/OpenCV implementation
driven by plain-language instructions.
"""

import io
import numpy as np
from typing import Callable, Dict, List
from PIL import Image, ImageEnhance, ImageFilter, ImageOps, UnidentifiedImageError
import cv2

from config import DEBUG
from constants import EDIT_RULES, EDIT_SUGGESTIONS
from errors import EditError

SUGGESTIONS = EDIT_SUGGESTIONS


class ImageEditService:
    """Edits an image according to an instruction and returns the new image bytes"""

    def edit(self, image_bytes: bytes, instruction: str) -> bytes:
        raise NotImplementedError


def _grayscale(image: Image.Image) -> Image.Image:
    return ImageOps.grayscale(image)


def _sepia(image: Image.Image) -> Image.Image:
    return ImageOps.colorize(ImageOps.grayscale(image), black="#2e1a0b", white="#f2e2c4")


def _sketch(image: Image.Image) -> Image.Image:
    gray = np.array(ImageOps.grayscale(image))
    blurred = cv2.GaussianBlur(255 - gray, (21, 21), 0)
    sketch = cv2.divide(gray, 255 - blurred, scale=256)
    return Image.fromarray(sketch)


def _remove_shadows(image: Image.Image) -> Image.Image:
    gray = np.array(ImageOps.grayscale(image))
    gray = cv2.bilateralFilter(gray, 9, 75, 75)
    cleaned = cv2.adaptiveThreshold(gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
                                    cv2.THRESH_BINARY, 31, 15)
    return Image.fromarray(cleaned)


def _denoise(image: Image.Image) -> Image.Image:
    rgb = np.array(image.convert('RGB'))
    return Image.fromarray(cv2.bilateralFilter(rgb, 9, 75, 75))


def _invert(image: Image.Image) -> Image.Image:
    if image.mode not in ('L', 'RGB'):
        image = image.convert('RGB')
    return ImageOps.invert(image)


OPERATIONS: Dict[str, Callable[[Image.Image], Image.Image]] = {
    'rotate_left': lambda img: img.rotate(90, expand=True),
    'rotate_right': lambda img: img.rotate(-90, expand=True),
    'remove_shadows': _remove_shadows,
    'denoise': _denoise,
    'grayscale': _grayscale,
    'sepia': _sepia,
    'sketch': _sketch,
    'decrease_contrast': lambda img: ImageEnhance.Contrast(img).enhance(0.7),
    'increase_contrast': lambda img: ImageEnhance.Contrast(img).enhance(1.6),
    'darken': lambda img: ImageEnhance.Brightness(img).enhance(0.75),
    'brighten': lambda img: ImageEnhance.Brightness(img).enhance(1.3),
    'sharpen': lambda img: ImageEnhance.Contrast(img.filter(ImageFilter.SHARPEN)).enhance(1.3),
    'invert': _invert,
}


def plan_edits(instruction: str) -> List[str]:
    """Operations requested by an instruction, in the order they are applied.

    Each rule consumes the keyword it matched so that e.g. "rotate left"
    doesn't also trigger the plain "rotate" rule.
    """
    text = f" {instruction.lower()} "
    plan = []
    for operation, keywords in EDIT_RULES:
        for keyword in keywords:
            if keyword in text:
                plan.append(operation)
                text = text.replace(keyword, ' ')
                break
    return plan


class PillowImageEditor(ImageEditService):
    """Applies keyword-matched Pillow/OpenCV filters and returns PNG bytes"""

    def __init__(self, debug: bool = DEBUG):
        self.debug = debug

    def edit(self, image_bytes: bytes, instruction: str) -> bytes:
        plan = plan_edits(instruction or "")
        if not plan:
            raise EditError(
                f"Don't know how to '{instruction}'. Try: {', '.join(SUGGESTIONS)}"
            )

        try:
            image = Image.open(io.BytesIO(image_bytes or b""))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise EditError("The receipt image could not be opened for editing") from e

        image = ImageOps.exif_transpose(image)
        if image.mode not in ('L', 'RGB'):
            image = image.convert('RGB')

        for operation in plan:
            if self.debug:
                print(f"  🎨 Applying {operation}")
            image = OPERATIONS[operation](image)

        output = io.BytesIO()
        image.save(output, format='PNG')
        data = output.getvalue()
        if not data:
            raise EditError("Image generation failed.")
        return data
