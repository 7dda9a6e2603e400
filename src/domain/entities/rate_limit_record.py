"""
RateLimitRecord Entity

Authoritative timestamp of the last accepted reset request per email.
"""

from datetime import datetime

from sqlmodel import Column, DateTime, Field, SQLModel


class RateLimitRecord(SQLModel, table=True):
    """
    RateLimitRecord entity - one row per (normalized) email.

    Business Rules:
    - Written for every accepted reset request, known account or not
    - Cleared when a password reset is confirmed
    """

    __tablename__ = "password_reset_rate_limits"

    email: str = Field(primary_key=True, max_length=255)
    last_request_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
