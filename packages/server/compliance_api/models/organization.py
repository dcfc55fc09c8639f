"""Organization model (tenant unit: a brokerage)."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class Organization(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "organizations"

    name: str = Field(nullable=False, index=True)
    created_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
