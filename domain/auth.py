"""Domain Entities - Auth"""
from pydantic import BaseModel
from typing import Optional

from domain.enums import UserRole


class User(BaseModel):
    """User Entity"""
    user_id: int
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: UserRole = UserRole.GUEST
    disabled: bool = False

    class Config:
        from_attributes = True

    @property
    def is_manager(self) -> bool:
        return self.role == UserRole.MANAGER


class UserInDB(User):
    """User with hashed password for DB storage"""
    hashed_password: str
