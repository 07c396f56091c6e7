from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    user = "user"
    admin = "admin"


class SuggestionStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"

    @classmethod
    def parse(cls, value: str) -> "SuggestionStatus | None":
        try:
            return cls(value)
        except ValueError:
            return None
