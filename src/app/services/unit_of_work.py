from abc import ABC, abstractmethod

from src.app.repositories.audit_event_repository import IAuditEventRepository
from src.app.repositories.password_reset_token_repository import IPasswordResetTokenRepository
from src.app.repositories.rate_limit_repository import IRateLimitRepository
from src.app.repositories.security_question_repository import (
    ISecurityQuestionAttemptRepository,
    ISecurityQuestionRepository,
)
from src.app.repositories.session_repository import ISessionRepository
from src.app.repositories.user_repository import IUserRepository


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    users: IUserRepository
    sessions: ISessionRepository
    audit_events: IAuditEventRepository
    password_reset_tokens: IPasswordResetTokenRepository
    security_questions: ISecurityQuestionRepository
    security_question_attempts: ISecurityQuestionAttemptRepository
    rate_limits: IRateLimitRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
