"""Caller identity handed to guarded audit operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class UserSession:
    """Authenticated portal user making the current request.

    Attributes:
        user_id: Portal user id, reported in permission errors.
        login_id: Login name of the user.
        is_user_admin: Whether the user holds the admin role.
    """

    user_id: int
    login_id: Optional[str] = None
    is_user_admin: bool = False
