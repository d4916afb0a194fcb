"""
Receipt Parser module for ShareBill
Parses OCR text into the raw analysis payload: items, subtotal, tax, tip, total
"""

import re
from decimal import Decimal
from difflib import SequenceMatcher
from typing import Dict, List, Optional, Tuple

from config import (DEBUG, DEFAULT_CURRENCY, DUPLICATE_SIMILARITY_THRESHOLD,
                    ITEM_PRICE_MIN, ITEM_PRICE_MAX)
from constants import (CURRENCY_INDICATORS, LINE_AMOUNT_PATTERN, QUANTITY_PREFIX_PATTERN,
                       SKIP_WORDS, SUMMARY_PATTERNS)
from utils import parse_money


class ReceiptParser:
    """Parses OCR text to extract receipt items and totals"""

    def __init__(self, debug: bool = DEBUG):
        self.debug = debug

    def _log(self, message: str):
        if self.debug:
            print(message)

    def _clean_price(self, price_str: str) -> Optional[Decimal]:
        """Price in the accepted range, or None"""
        price = parse_money(price_str)
        if price is None or price < 0:
            return None
        if not ITEM_PRICE_MIN <= float(price) <= ITEM_PRICE_MAX:
            return None
        return price

    def _normalize_text(self, text: str) -> str:
        normalized = ' '.join(text.lower().split())
        normalized = re.sub(r'[^\w\s]', ' ', normalized)
        return normalized.strip()

    def _is_valid_item_name(self, name: str) -> bool:
        """Check if the name is likely a valid menu item"""
        if not name or len(name.strip()) < 2:
            return False

        words = self._normalize_text(name).split()
        if any(word in SKIP_WORDS for word in words):
            return False

        if not re.search(r'[^\W\d_]', name):
            return False

        return len(re.sub(r'[\d\s\.\,\-]', '', name)) >= 2

    def _deduplicate_lines(self, text: str) -> List[str]:
        """Remove duplicate lines that appear where OCR regions overlap"""
        unique_lines = []
        for line in text.split('\n'):
            line = line.strip()
            if not line:
                continue

            duplicate = False
            for seen_line in unique_lines[-10:]:
                score = SequenceMatcher(None, line.lower(), seen_line.lower()).ratio()
                if score > DUPLICATE_SIMILARITY_THRESHOLD:
                    self._log(f"  Skipping duplicate: '{line}' (similar to '{seen_line}', score: {score:.3f})")
                    duplicate = True
                    break

            if not duplicate:
                unique_lines.append(line)

        return unique_lines

    def _split_amount(self, line: str) -> Tuple[str, Optional[Decimal]]:
        """Split a line into its leading text and trailing amount"""
        match = re.search(LINE_AMOUNT_PATTERN, line)
        if not match:
            return line, None
        text = line[:match.start()].strip()
        text = re.sub(r'\s*[-–:=]+\s*$', '', text).strip()
        return text, self._clean_price(match.group(1))

    def _summary_kind(self, line: str) -> Optional[str]:
        for kind, pattern in SUMMARY_PATTERNS:
            if re.search(pattern, line, re.IGNORECASE):
                return kind
        return None

    def _parse_item(self, line: str) -> Optional[Dict]:
        name, price = self._split_amount(line)
        if price is None:
            return None

        quantity = 1
        qty_match = re.match(QUANTITY_PREFIX_PATTERN, name)
        if qty_match:
            quantity = int(qty_match.group(1))
            name = name[qty_match.end():].strip()

        name = name.strip(' $€£*.')
        if not self._is_valid_item_name(name):
            return None

        if quantity > 1:
            name = f"{quantity}x {name}"
        self._log(f"    ✓ Found item: {name} = {price:.2f}")
        return {'name': name, 'price': price}

    def _detect_currency(self, text: str) -> str:
        """Currency symbol with the most mentions in the text"""
        counts = {
            symbol: len(re.findall(pattern, text, re.IGNORECASE))
            for symbol, pattern in CURRENCY_INDICATORS.items()
        }
        symbol, hits = max(counts.items(), key=lambda kv: kv[1])
        return symbol if hits else DEFAULT_CURRENCY

    def parse(self, ocr_text: str) -> Dict:
        """Parse OCR text into an analysis payload.

        Summary lines (subtotal, tax, tip, total) are read from the first line
        of each kind; every other line ending in a plausible price becomes an
        item. Subtotal and total are left out when the receipt doesn't print
        them.
        """
        self._log("\n🔍 Starting receipt parsing...")
        lines = self._deduplicate_lines(ocr_text or "")

        items: List[Dict] = []
        summary: Dict[str, Decimal] = {}
        for line in lines:
            kind = self._summary_kind(line)
            if kind:
                _, amount = self._split_amount(line)
                if amount is not None and kind not in summary:
                    self._log(f"  Found {kind}: {amount:.2f}")
                    summary[kind] = amount
                continue

            item = self._parse_item(line)
            if item:
                items.append(item)

        payload = {
            'items': items,
            'tax': summary.get('tax', Decimal("0")),
            'tip': summary.get('tip', Decimal("0")),
            'currency': self._detect_currency('\n'.join(lines)),
        }
        if 'subtotal' in summary:
            payload['subtotal'] = summary['subtotal']
        if 'total' in summary:
            payload['total'] = summary['total']

        if items and 'total' in summary:
            calculated = sum(item['price'] for item in items) + payload['tax'] + payload['tip']
            if abs(calculated - summary['total']) > 1:
                self._log(f"  ⚠ Total mismatch: calculated {calculated:.2f} vs found {summary['total']:.2f}")

        self._log(f"📊 Parsing results: {len(items)} items, currency {payload['currency']}")
        return payload
