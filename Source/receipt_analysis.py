"""
Receipt analysis for ShareBill
The analysis service interface, its local OCR implementation and the
boundary that turns raw service output into validated items and totals.
"""

import json
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Union

from config import DEFAULT_CURRENCY, ITEM_ID_LENGTH, DEFAULT_MAX_WORKERS
from constants import CURRENCY_SYMBOLS
from data_models import Item, ReceiptAnalysis, ReceiptTotals
from errors import AnalysisError
from ocr_processor import ParallelOCRProcessor
from receipt_parser import ReceiptParser
from utils import parse_money, random_token

Payload = Union[Mapping[str, Any], str, bytes]


class ReceiptAnalysisService:
    """Reads items and totals off a receipt photo.

    ``analyze`` returns a mapping (or its JSON text) shaped like
    ``{"items": [{"id"?, "name", "price"}], "subtotal", "tax"?, "tip"?,
    "total", "currency"?}`` and raises ``AnalysisError`` when it cannot.
    """

    def analyze(self, image_bytes: bytes) -> Payload:
        raise NotImplementedError


class OCRReceiptAnalyzer(ReceiptAnalysisService):
    """Local analysis with parallel Tesseract OCR and the regex receipt parser"""

    def __init__(self, processor: Optional[ParallelOCRProcessor] = None,
                 parser: Optional[ReceiptParser] = None):
        self.processor = processor or ParallelOCRProcessor(num_workers=DEFAULT_MAX_WORKERS)
        self.parser = parser or ReceiptParser()

    def analyze(self, image_bytes: bytes) -> Dict[str, Any]:
        text = self.processor.process_image(image_bytes)
        if not text.strip():
            raise AnalysisError("No text found on the receipt. Try a sharper, better lit photo.")

        payload = self.parser.parse(text)
        self.processor.metrics.items_detected = len(payload['items'])
        if not payload['items']:
            raise AnalysisError("Could not read the receipt clearly. Please try again.")
        return payload


def _amount(payload: Mapping[str, Any], key: str, default: Optional[Decimal]) -> Optional[Decimal]:
    value = payload.get(key)
    if value is None:
        return default
    amount = parse_money(value)
    if amount is None:
        raise AnalysisError(f"Receipt {key} is not a number: {value!r}")
    if amount < 0:
        raise AnalysisError(f"Receipt {key} cannot be negative: {value}")
    return amount


def _parse_items(raw_items: Any) -> List[Item]:
    if not isinstance(raw_items, list):
        raise AnalysisError("Receipt analysis did not return a list of items")

    items: List[Item] = []
    used_ids = set()
    for position, raw in enumerate(raw_items, 1):
        if not isinstance(raw, Mapping):
            raise AnalysisError(f"Item {position} is not an object")

        name = raw.get('name')
        if not isinstance(name, str) or not name.strip():
            raise AnalysisError(f"Item {position} has no name")

        price = _amount(raw, 'price', None)
        if price is None:
            raise AnalysisError(f"Item {position} ({name.strip()}) has no price")

        # Missing or repeated ids are replaced with random tokens
        item_id = raw.get('id')
        item_id = str(item_id).strip() if item_id not in (None, '') else ''
        while not item_id or item_id in used_ids:
            item_id = f"item_{random_token(ITEM_ID_LENGTH)}"
        used_ids.add(item_id)

        items.append(Item(id=item_id, name=name.strip(), price=price))
    return items


def parse_analysis(payload: Payload) -> ReceiptAnalysis:
    """Validate raw analysis output before it reaches the session"""
    if isinstance(payload, (bytes, str)):
        try:
            payload = json.loads(payload)
        except (ValueError, UnicodeDecodeError) as e:
            raise AnalysisError("Could not read the receipt clearly. Please try again.") from e

    if not isinstance(payload, Mapping):
        raise AnalysisError("Receipt analysis returned an unexpected response")

    items = _parse_items(payload.get('items'))
    tax = _amount(payload, 'tax', Decimal("0"))
    tip = _amount(payload, 'tip', Decimal("0"))
    subtotal = _amount(payload, 'subtotal', None)
    if subtotal is None:
        subtotal = sum((item.price for item in items), Decimal("0"))
    total = _amount(payload, 'total', None)
    if total is None:
        total = subtotal + tax + tip

    currency = payload.get('currency')
    if not isinstance(currency, str) or not currency.strip():
        currency = DEFAULT_CURRENCY
    currency = currency.strip()
    currency = CURRENCY_SYMBOLS.get(currency.upper(), currency)

    return ReceiptAnalysis(
        items=tuple(items),
        totals=ReceiptTotals(subtotal=subtotal, tax=tax, tip=tip, total=total,
                             currency=currency),
    )
