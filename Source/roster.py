"""
Roster module for ShareBill
Adds and removes the friends taking part in a split
"""

from typing import List

from config import OWNER_ID, OWNER_NAME, PROTECT_OWNER, FRIEND_ID_LENGTH
from data_models import Friend, SessionState
from errors import ValidationError, NotFoundError
from utils import random_token, avatar_for


def default_roster() -> List[Friend]:
    """A fresh roster holding only the bill owner"""
    return [Friend(id=OWNER_ID, name=OWNER_NAME, avatar=avatar_for(OWNER_NAME))]


class RosterManager:
    """Keeps the friend list and the assignments that reference it consistent"""

    def __init__(self, state: SessionState, protect_owner: bool = PROTECT_OWNER):
        self.state = state
        self.protect_owner = protect_owner

    def has_friend(self, friend_id: str) -> bool:
        return any(f.id == friend_id for f in self.state.friends)

    def get_friend(self, friend_id: str) -> Friend:
        for friend in self.state.friends:
            if friend.id == friend_id:
                return friend
        raise NotFoundError(f"Unknown friend: {friend_id}")

    def add_friend(self, name: str) -> Friend:
        """Add a friend; assignments are left untouched"""
        name = name.strip() if isinstance(name, str) else ""
        if not name:
            raise ValidationError("Friend name cannot be empty")

        friend = Friend(
            id=random_token(FRIEND_ID_LENGTH, taken=(f.id for f in self.state.friends)),
            name=name,
            avatar=avatar_for(name),
        )
        self.state.friends.append(friend)
        return friend

    def remove_friend(self, friend_id: str) -> None:
        """Remove a friend and drop them from every item they were sharing"""
        if self.protect_owner and friend_id == OWNER_ID:
            raise ValidationError("The bill owner cannot be removed")
        if not self.has_friend(friend_id):
            return

        self.state.friends = [f for f in self.state.friends if f.id != friend_id]
        for assignees in self.state.assignments.values():
            assignees.discard(friend_id)
