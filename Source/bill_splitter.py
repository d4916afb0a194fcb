"""
Bill Splitter module for ShareBill
Turns item assignments into what each friend owes
"""

from fractions import Fraction
from typing import Dict, List, Iterable, Mapping, Set

from data_models import Breakdown, Friend, FriendShare, Item, ReceiptTotals, round_money
from utils import format_currency


def compute_breakdown(items: Iterable[Item],
                      totals: ReceiptTotals,
                      friends: List[Friend],
                      assignments: Mapping[str, Set[str]]) -> Breakdown:
    """Split every item evenly between its assignees and spread tax and tip
    in proportion to what each friend was assigned.

    Arithmetic is exact; rounding is left to the presentation layer. Items
    nobody shares go to the unassigned total and carry no fees. Assignees that
    are not in ``friends`` are ignored.
    """
    roster_ids = [f.id for f in friends]
    item_shares: Dict[str, Fraction] = {fid: Fraction(0) for fid in roster_ids}
    unassigned = Fraction(0)

    for item in items:
        price = Fraction(item.price)
        assigned = [fid for fid in roster_ids if fid in assignments.get(item.id, ())]
        if not assigned:
            unassigned += price
            continue

        share = price / len(assigned)
        for fid in assigned:
            item_shares[fid] += share

    distributed = sum(item_shares.values(), Fraction(0))
    fee_pool = Fraction(totals.tax) + Fraction(totals.tip)

    per_friend = []
    for fid in roster_ids:
        ratio = item_shares[fid] / distributed if distributed > 0 else Fraction(0)
        per_friend.append(FriendShare(
            friend_id=fid,
            item_share=item_shares[fid],
            fee_share=ratio * fee_pool,
        ))

    return Breakdown(
        per_friend=per_friend,
        unassigned_total=unassigned,
        distributed_subtotal=distributed,
        fee_pool=fee_pool,
    )


def format_breakdown(breakdown: Breakdown, friends: List[Friend], currency: str) -> List[str]:
    """Printable summary lines for a breakdown"""
    names = {f.id: f.name for f in friends}
    lines = []
    for share in breakdown.per_friend:
        name = names.get(share.friend_id, share.friend_id)
        lines.append(
            f"{name[:15]:15} : {format_currency(share.rounded_total, currency):>10}"
            f"  (share {format_currency(share.rounded_item_share, currency)}"
            f" + fees {format_currency(share.rounded_fee_share, currency)})"
        )
    if breakdown.unassigned_total > 0:
        lines.append(
            f"⚠ {format_currency(round_money(breakdown.unassigned_total), currency)} of items are still unassigned"
        )
    return lines
