"""
models/user.py
--------------
Domain model for library users (members and staff).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from models.enums import UserRole, UserStatus


@dataclass
class User:
    """
    Represents a registered library user.

    Attributes:
        user_id: Database primary key (None for new records).
        username: Unique login name (max 50 chars).
        email: Unique e-mail address.
        full_name: Display name.
        phone: Optional contact number.
        role: member, librarian or admin.
        status: active, inactive or suspended. Only active users may borrow.
        registration_date: Set by the database on insert.
        last_login: Timestamp of the most recent login, if any.
        created_at: Set by the database on insert.
        updated_at: Refreshed by a trigger on every update.
    """
    username: str
    email: str
    full_name: str
    phone: Optional[str] = None
    role: UserRole = UserRole.MEMBER
    status: UserStatus = UserStatus.ACTIVE
    user_id: Optional[int] = None
    registration_date: Optional[datetime] = None
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        # Raises ValueError for anything outside the closed sets.
        self.role = UserRole(self.role)
        self.status = UserStatus(self.status)

    def is_active(self) -> bool:
        """Returns True if the account may borrow books."""
        return self.status == UserStatus.ACTIVE

    def __str__(self) -> str:
        return f"#{self.user_id} {self.username} <{self.email}> ({self.role.value}, {self.status.value})"
