"""User model."""

from typing import Optional

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class User(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "users"

    email: str = Field(unique=True, index=True, nullable=False)
    full_name: Optional[str] = None  # profile metadata, used to name the first org
    password_hash: Optional[str] = Field(default=None)  # bcrypt hash for email/password login
