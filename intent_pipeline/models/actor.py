"""The identity a core operation is performed on behalf of."""

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Account roles understood by the core."""

    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    """Authenticated caller, supplied by the surrounding transport layer."""

    user_id: str
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def can_access(self, owner_id: str) -> bool:
        """Owners and admins may act on a record."""
        return self.is_admin or self.user_id == owner_id
