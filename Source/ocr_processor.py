"""
OCR Processing module for ShareBill
Handles parallel OCR processing of receipt images
"""

import io
import time
import numpy as np
from typing import List, Tuple, Optional
from concurrent.futures import ThreadPoolExecutor, as_completed
from PIL import Image, ImageEnhance, ImageFilter, ImageOps, UnidentifiedImageError
import cv2
import pytesseract

from config import OCR_PSM, OCR_LANGUAGES, IMAGE_REGION_OVERLAP_PX, DEFAULT_MAX_WORKERS, DEBUG
from data_models import ProcessingMetrics
from errors import AnalysisError


def load_image(image_bytes: bytes) -> Image.Image:
    """Decode uploaded bytes into a PIL image"""
    if not image_bytes:
        raise AnalysisError("No image data was uploaded")
    try:
        image = Image.open(io.BytesIO(image_bytes))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise AnalysisError("The uploaded file is not a readable image") from e
    # Phone photos carry their rotation in EXIF
    return ImageOps.exif_transpose(image)


class ParallelOCRProcessor:
    """Parallel OCR processing of receipt images"""

    def __init__(self, num_workers: int = DEFAULT_MAX_WORKERS, languages: str = OCR_LANGUAGES,
                 debug: bool = DEBUG):
        self.num_workers = max(1, num_workers)
        self.languages = languages
        self.debug = debug
        self.metrics = ProcessingMetrics()
        self._available_languages: Optional[List[str]] = None

    def _log(self, message: str):
        if self.debug:
            print(message)

    def _get_ocr_language(self) -> str:
        """Keep only the configured languages Tesseract actually has"""
        if self._available_languages is None:
            try:
                self._available_languages = pytesseract.get_languages(config='')
                self._log(f"✓ Available OCR languages: {', '.join(self._available_languages)}")
            except (pytesseract.TesseractNotFoundError, pytesseract.TesseractError, OSError) as e:
                self._log(f"⚠ Could not check languages: {e}")
                self._available_languages = ['eng']

        wanted = [lang for lang in self.languages.split('+') if lang in self._available_languages]
        return '+'.join(wanted) or 'eng'

    def preprocess_image(self, image: Image.Image) -> Image.Image:
        """Preprocess image to improve OCR accuracy"""
        # Grayscale
        if image.mode != 'L':
            image = image.convert('L')

        image = ImageEnhance.Contrast(image).enhance(2.0)
        image = image.filter(ImageFilter.SHARPEN)

        # Remove noise with bilateral filter
        img_array = cv2.bilateralFilter(np.array(image), 9, 75, 75)
        return Image.fromarray(img_array)

    def split_image_into_regions(self, image: Image.Image) -> List[Tuple[int, Image.Image]]:
        """Horizontal bands, each overlapping the next so no text line is cut in half"""
        width, height = image.size
        workers = max(1, min(self.num_workers, height))
        region_height = height // workers
        regions = []

        for i in range(workers):
            y_start = i * region_height
            y_end = height if i == workers - 1 else (i + 1) * region_height + IMAGE_REGION_OVERLAP_PX
            regions.append((i, image.crop((0, y_start, width, min(y_end, height)))))

        return regions

    def process_region(self, region_data: Tuple[int, Image.Image]) -> str:
        """Process a single region with OCR"""
        region_id, region_image = region_data
        self._log(f"  Worker {region_id + 1}: Processing region...")
        text = pytesseract.image_to_string(
            region_image,
            lang=self._get_ocr_language(),
            config=f'--psm {OCR_PSM}'
        )
        self._log(f"  Worker {region_id + 1}: Complete ✓")
        return text

    def process_image(self, image_bytes: bytes) -> str:
        """Run OCR over the regions of an image in parallel and join the text in page order"""
        start_time = time.time()
        image = load_image(image_bytes)
        self._log(f"\n🚀 Starting parallel OCR with {self.num_workers} workers...")
        self._log(f"📷 Image loaded: {image.size[0]}x{image.size[1]} pixels")

        regions = self.split_image_into_regions(self.preprocess_image(image))
        self.metrics.regions_processed = len(regions)

        full_text = []
        failures = []
        with ThreadPoolExecutor(max_workers=len(regions)) as executor:
            future_to_region = {
                executor.submit(self.process_region, region): region[0]
                for region in regions
            }

            for future in as_completed(future_to_region):
                region_id = future_to_region[future]
                try:
                    full_text.append((region_id, future.result()))
                except (pytesseract.TesseractNotFoundError, pytesseract.TesseractError, RuntimeError) as e:
                    self._log(f"  Worker {region_id + 1} exception: {e}")
                    failures.append(e)

        if failures and not full_text:
            raise AnalysisError(f"OCR failed: {failures[0]}") from failures[0]

        full_text.sort(key=lambda x: x[0])
        combined_text = '\n'.join(text for _, text in full_text)

        self.metrics.workers_used = len(regions)
        self.metrics.processing_time = time.time() - start_time
        self._log(f"✅ OCR complete in {self.metrics.processing_time:.2f}s")
        return combined_text
