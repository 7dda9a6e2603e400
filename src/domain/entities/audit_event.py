"""
AuditEvent Entity

Append-only log of credential recovery events.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, JSON, SQLModel

from src.domain.base import utc_now


class AuditEvent(SQLModel, table=True):
    """
    AuditEvent entity - immutable log of recovery events.

    Business Rules:
    - Immutable (never updated or deleted)
    - user_id is null when the request named an unknown account
    - Metadata stores additional context (email, IP, token id)
    - Never stores raw tokens, answers or passwords
    """

    __tablename__ = "audit_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: Optional[UUID] = Field(default=None, index=True)

    action: str = Field(max_length=100)  # e.g., "password_reset_requested"
    event_metadata: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_audit_created_at", "created_at"),
        Index("idx_audit_user_action", "user_id", "action"),
    )
