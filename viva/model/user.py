import enum

from pydantic import EmailStr

from .base import WithTimestamps
from .id import UserID


class UserRole(enum.Enum):
    Admin = "admin"
    Staff = "staff"
    Panelist = "panelist"
    Student = "student"


class User(WithTimestamps):
    user_id: UserID
    email: EmailStr
    name: str
    role: UserRole
