"""
Data models for ShareBill - Friends, receipt items and bill breakdowns
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from fractions import Fraction
from typing import List, Dict, Set, Tuple, Optional

from constants import DECIMAL_QUANTIZE


def round_money(value) -> Decimal:
    """Round an exact amount to currency precision for display"""
    if isinstance(value, Fraction):
        value = Decimal(value.numerator) / Decimal(value.denominator)
    return Decimal(value).quantize(DECIMAL_QUANTIZE, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Friend:
    """A person taking part in the split"""
    id: str
    name: str
    avatar: str = ""


@dataclass(frozen=True)
class Item:
    """A single line item on a receipt"""
    id: str
    name: str
    price: Decimal = Decimal("0")


@dataclass(frozen=True)
class ReceiptTotals:
    """Totals printed on the receipt, as read by the analysis service"""
    subtotal: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    tip: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    currency: str = "$"

    @property
    def fee_pool(self) -> Decimal:
        return self.tax + self.tip


@dataclass(frozen=True)
class ReceiptAnalysis:
    """Validated result of a receipt analysis"""
    items: Tuple[Item, ...] = ()
    totals: ReceiptTotals = field(default_factory=ReceiptTotals)


# Item id -> ids of the friends sharing it
AssignmentMap = Dict[str, Set[str]]


@dataclass
class FriendShare:
    """What one friend owes, kept exact until it is displayed"""
    friend_id: str
    item_share: Fraction = Fraction(0)
    fee_share: Fraction = Fraction(0)

    @property
    def total(self) -> Fraction:
        return self.item_share + self.fee_share

    @property
    def rounded_item_share(self) -> Decimal:
        return round_money(self.item_share)

    @property
    def rounded_fee_share(self) -> Decimal:
        return round_money(self.fee_share)

    @property
    def rounded_total(self) -> Decimal:
        return round_money(self.total)


@dataclass
class Breakdown:
    """Per-friend allocation of a receipt"""
    per_friend: List[FriendShare] = field(default_factory=list)
    unassigned_total: Fraction = Fraction(0)
    distributed_subtotal: Fraction = Fraction(0)
    fee_pool: Fraction = Fraction(0)

    def share_for(self, friend_id: str) -> Optional[FriendShare]:
        for share in self.per_friend:
            if share.friend_id == friend_id:
                return share
        return None

    def as_dict(self) -> Dict:
        """Rounded view, suitable for JSON export"""
        return {
            'per_friend': [
                {
                    'friend_id': share.friend_id,
                    'item_share': float(share.rounded_item_share),
                    'fee_share': float(share.rounded_fee_share),
                    'total': float(share.rounded_total),
                }
                for share in self.per_friend
            ],
            'unassigned_total': float(round_money(self.unassigned_total)),
            'distributed_subtotal': float(round_money(self.distributed_subtotal)),
            'fee_pool': float(round_money(self.fee_pool)),
        }


class Phase(Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    SPLITTING = "splitting"
    EDITING = "editing"


@dataclass
class SessionState:
    """Everything a bill-splitting session knows"""
    items: Tuple[Item, ...] = ()
    totals: Optional[ReceiptTotals] = None
    friends: List[Friend] = field(default_factory=list)
    assignments: AssignmentMap = field(default_factory=dict)
    phase: Phase = Phase.IDLE
    last_error: Optional[str] = None
    image: Optional[bytes] = None
    edited_image: Optional[bytes] = None

    @property
    def display_image(self) -> Optional[bytes]:
        return self.edited_image or self.image

    def find_item(self, item_id: str) -> Optional[Item]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None


@dataclass
class ProcessingMetrics:
    """Metrics for parallel processing performance"""
    workers_used: int = 0
    processing_time: float = 0.0
    items_detected: int = 0
    regions_processed: int = 0
