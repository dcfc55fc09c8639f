"""User-Organization membership (join table).

The composite primary key makes (user_id, org_id) unique at the store layer.
"""

import uuid

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin


class Membership(CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "memberships"

    user_id: uuid.UUID = Field(foreign_key="users.id", primary_key=True, ondelete="CASCADE")
    org_id: uuid.UUID = Field(
        foreign_key="organizations.id", primary_key=True, ondelete="CASCADE"
    )
    role: str = Field(nullable=False, default="member")  # broker_admin | agent | member
