"""
Security Question Entities

Catalog of knowledge-based questions, the hashed answers users configured,
and the per-cycle attempt counter.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utc_now
from .enums import QuestionCategory

MAX_SECURITY_QUESTION_ATTEMPTS = 3


class SecurityQuestion(SQLModel, table=True):
    """
    SecurityQuestion entity - immutable catalog entry.
    """

    __tablename__ = "security_questions"

    id: Optional[int] = Field(default=None, primary_key=True)
    question_text: str = Field(max_length=255)
    category: QuestionCategory = Field(default=QuestionCategory.general)
    is_active: bool = Field(default=True, index=True)
    sort_order: int = Field(default=0)


class UserSecurityQuestion(SQLModel, table=True):
    """
    UserSecurityQuestion entity - a user's hashed answer to a catalog question.

    Business Rules:
    - At most 3 per user (set up by the account management flow)
    - Answers are normalized (trim, case-fold, collapse spaces) then bcrypt-hashed
    - Never exposed in plaintext
    """

    __tablename__ = "user_security_questions"

    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    question_id: int = Field(foreign_key="security_questions.id", nullable=False)
    answer_hash: str = Field(max_length=60)  # Bcrypt output

    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_user_security_question", "user_id", "question_id", unique=True),
    )


class SecurityQuestionAttempt(SQLModel, table=True):
    """
    SecurityQuestionAttempt entity - answer attempts within one reset cycle.

    Business Rules:
    - Exactly one row per pending_security token
    - attempts_used never exceeds max_attempts
    - locked_at is set when the last attempt fails; the cycle is then expired
    - A new cycle starts from zero with a new row
    """

    __tablename__ = "security_question_attempts"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    token_id: UUID = Field(
        foreign_key="password_reset_tokens.id", nullable=False, unique=True
    )
    question_id: int = Field(nullable=False)

    attempts_used: int = Field(default=0)
    max_attempts: int = Field(default=MAX_SECURITY_QUESTION_ATTEMPTS)
    locked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    @property
    def attempts_remaining(self) -> int:
        return max(self.max_attempts - self.attempts_used, 0)
