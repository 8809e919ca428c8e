from dataclasses import dataclass
from enum import Enum


class UserRole(str, Enum):
    USER = "user"
    EMPLOYEE = "employee"
    ADMIN = "admin"


@dataclass(frozen=True)
class SessionContext:
    """Who is making the request. Passed explicitly to whatever needs it."""

    token: str
    user_id: int
    role: UserRole

