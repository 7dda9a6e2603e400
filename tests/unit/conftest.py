from unittest.mock import AsyncMock, MagicMock

import pytest

from src.app.services.keyed_lock import KeyedLock
from src.app.services.reset_policy import ResetPolicy


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.users = MagicMock()
    uow.users.get_by_email = AsyncMock(return_value=None)
    uow.users.get_by_id = AsyncMock(return_value=None)
    uow.users.update = AsyncMock(side_effect=lambda user: user)

    uow.sessions = MagicMock()
    uow.sessions.revoke_all_by_user_id = AsyncMock(return_value=0)

    uow.audit_events = MagicMock()
    uow.audit_events.create = AsyncMock(side_effect=lambda event: event)

    uow.password_reset_tokens = MagicMock()
    uow.password_reset_tokens.create = AsyncMock(side_effect=lambda token: token)
    uow.password_reset_tokens.update = AsyncMock(side_effect=lambda token: token)
    uow.password_reset_tokens.get_by_token_hash = AsyncMock(return_value=None)
    uow.password_reset_tokens.get_live_by_user_id = AsyncMock(return_value=None)
    uow.password_reset_tokens.expire_live_by_user_id = AsyncMock(return_value=0)
    uow.password_reset_tokens.list_recent_by_user_id = AsyncMock(return_value=[])
    uow.password_reset_tokens.expire_overdue = AsyncMock(return_value=0)
    uow.password_reset_tokens.delete_terminal_before = AsyncMock(return_value=0)

    uow.security_questions = MagicMock()
    uow.security_questions.list_active = AsyncMock(return_value=[])
    uow.security_questions.get_by_id = AsyncMock(return_value=None)
    uow.security_questions.list_user_questions = AsyncMock(return_value=[])
    uow.security_questions.get_user_question = AsyncMock(return_value=None)

    uow.security_question_attempts = MagicMock()
    uow.security_question_attempts.create = AsyncMock(side_effect=lambda attempt: attempt)
    uow.security_question_attempts.get_by_token_id = AsyncMock(return_value=None)
    uow.security_question_attempts.update = AsyncMock(side_effect=lambda attempt: attempt)

    async def increment(attempt):
        if attempt.attempts_used >= attempt.max_attempts:
            return False
        attempt.attempts_used += 1
        return True

    uow.security_question_attempts.increment = AsyncMock(side_effect=increment)

    uow.rate_limits = MagicMock()
    uow.rate_limits.get_by_email = AsyncMock(return_value=None)
    uow.rate_limits.record = AsyncMock()
    uow.rate_limits.clear = AsyncMock(return_value=True)

    return uow


@pytest.fixture
def policy():
    return ResetPolicy(min_request_duration=0)


@pytest.fixture
def locks():
    return KeyedLock(timeout=5.0)
