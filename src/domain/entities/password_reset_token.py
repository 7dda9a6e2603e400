"""
PasswordResetToken Entity

One password reset cycle.
"""

from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utc_now
from .enums import LIVE_TOKEN_STAGES, TokenStage

RESET_TOKEN_TTL = timedelta(minutes=30)


class PasswordResetToken(SQLModel, table=True):
    """
    PasswordResetToken entity - one reset cycle.

    Business Rules:
    - Expires 30 minutes after creation
    - Only the SHA-256 hash of the secret is stored
    - At most one live (pending_security/ready) token per user
    - Stage never regresses: pending_security -> ready -> used, any -> expired
    - When the security question is answered, token_hash is replaced by the
      hash of a freshly minted elevated secret
    """

    __tablename__ = "password_reset_tokens"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="users.id", index=True)
    token_hash: str = Field(max_length=64, unique=True)  # SHA-256 output

    stage: TokenStage = Field(default=TokenStage.ready)

    # Request metadata
    request_ip: Optional[str] = Field(default=None, max_length=45)
    user_agent: Optional[str] = Field(default=None, max_length=512)

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime))
    used_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    verified_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    email_sent_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_password_reset_expires_at", "expires_at"),
        Index("idx_password_reset_user_stage", "user_id", "stage"),
    )

    @property
    def is_live(self) -> bool:
        return self.stage in LIVE_TOKEN_STAGES

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def advance(self, stage: TokenStage) -> None:
        """Move to a later stage; raises ValueError on any regression"""
        allowed = {
            TokenStage.pending_security: (TokenStage.ready, TokenStage.expired),
            TokenStage.ready: (TokenStage.used, TokenStage.expired),
            TokenStage.used: (TokenStage.expired,),
            TokenStage.expired: (),
        }
        if stage not in allowed[self.stage]:
            raise ValueError(f"Cannot move reset token from {self.stage.value} to {stage.value}")
        self.stage = stage
