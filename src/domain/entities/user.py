"""
User Entity

Municipal staff account that can recover its credentials.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utc_now
from .enums import UserStatus


class User(SQLModel, table=True):
    """
    User entity - owned by the credential store.

    Business Rules:
    - Email must be unique across all users
    - Password stored as bcrypt hash (cost factor 12)
    - password_hash is only changed by the password reset confirmation
    - Disabled users cannot start a reset cycle
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars

    full_name: Optional[str] = Field(default=None, max_length=255)
    status: UserStatus = Field(default=UserStatus.active)

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    password_changed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime)
    )

    __table_args__ = (Index("idx_user_status", "status"),)
