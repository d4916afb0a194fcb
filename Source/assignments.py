"""
Assignment module for ShareBill
Tracks which friends share which receipt items
"""

from typing import Iterable, List, Optional

from data_models import AssignmentMap, Item, SessionState
from errors import NotFoundError
from roster import RosterManager


def empty_assignments(items: Iterable[Item]) -> AssignmentMap:
    """Every item of a new batch starts with nobody assigned"""
    return {item.id: set() for item in items}


class AssignmentManager:
    """Toggles item/friend pairings on the session's assignment map"""

    def __init__(self, state: SessionState, roster: Optional[RosterManager] = None):
        self.state = state
        self.roster = roster or RosterManager(state)

    def _require_item(self, item_id: str) -> Item:
        item = self.state.find_item(item_id)
        if item is None:
            raise NotFoundError(f"Unknown item: {item_id}")
        return item

    def _roster_ids(self) -> List[str]:
        return [f.id for f in self.state.friends]

    def toggle_assignment(self, item_id: str, friend_id: str) -> bool:
        """Flip one pairing; returns True if the friend now shares the item"""
        self._require_item(item_id)
        assignees = self.state.assignments.setdefault(item_id, set())

        if friend_id in assignees:
            assignees.discard(friend_id)
            return False

        assignees.add(self.roster.get_friend(friend_id).id)
        return True

    def assign_to_everyone(self, item_id: str) -> None:
        self._require_item(item_id)
        self.state.assignments[item_id] = set(self._roster_ids())

    def clear_item(self, item_id: str) -> None:
        self._require_item(item_id)
        self.state.assignments[item_id] = set()

    def assignees(self, item_id: str) -> List[str]:
        """Friend ids sharing an item, in roster order"""
        self._require_item(item_id)
        assigned = self.state.assignments.get(item_id, set())
        return [fid for fid in self._roster_ids() if fid in assigned]

    def unassigned_items(self) -> List[Item]:
        return [item for item in self.state.items if not self.state.assignments.get(item.id)]
