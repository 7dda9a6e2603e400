"""
Unit tests for ListSecurityQuestionsUseCase and GetPasswordResetHistoryUseCase
"""
from datetime import timedelta
from uuid import uuid4

import pytest

from src.app.use_cases.auth import GetPasswordResetHistoryUseCase, ListSecurityQuestionsUseCase
from src.domain.entities import (
    PasswordResetToken,
    QuestionCategory,
    SecurityQuestion,
    TokenStage,
    User,
    UserStatus,
)


@pytest.mark.asyncio
async def test_catalog_lists_active_questions(mock_uow):
    # Arrange
    mock_uow.security_questions.list_active.return_value = [
        SecurityQuestion(id=1, question_text="In what city were you born?", category=QuestionCategory.personal),
        SecurityQuestion(id=2, question_text="What was your first school?", category=QuestionCategory.education),
    ]
    use_case = ListSecurityQuestionsUseCase(mock_uow)

    # Act
    result = await use_case.execute()

    # Assert
    assert result.is_ok()
    body = result.value.model_dump(by_alias=True)
    assert body["count"] == 2
    assert body["questions"][0] == {
        "id": 1,
        "questionText": "In what city were you born?",
        "category": "personal",
    }


@pytest.mark.asyncio
async def test_history_lists_recent_cycles_without_hashes(mock_uow, clock):
    # Arrange
    user = User(email="ana.quispe@gamc.gov.bo", password_hash="x")
    tokens = [
        PasswordResetToken(
            user_id=user.id,
            token_hash="f" * 64,
            stage=TokenStage.used,
            created_at=clock.now,
            expires_at=clock.now + timedelta(minutes=30),
            used_at=clock.now + timedelta(minutes=5),
            request_ip="10.0.0.7",
        )
    ]
    mock_uow.users.get_by_id.return_value = user
    mock_uow.password_reset_tokens.list_recent_by_user_id.return_value = tokens
    use_case = GetPasswordResetHistoryUseCase(mock_uow)

    # Act
    result = await use_case.execute(user.id)

    # Assert
    assert result.is_ok()
    body = result.value.model_dump(by_alias=True)
    assert body["count"] == 1
    cycle = body["cycles"][0]
    assert cycle["stage"] == "used"
    assert cycle["requestIp"] == "10.0.0.7"
    assert "tokenHash" not in cycle
    mock_uow.password_reset_tokens.list_recent_by_user_id.assert_awaited_once_with(user.id, limit=5)


@pytest.mark.asyncio
async def test_history_rejects_disabled_user(mock_uow):
    mock_uow.users.get_by_id.return_value = User(
        email="old@gamc.gov.bo", password_hash="x", status=UserStatus.disabled
    )
    use_case = GetPasswordResetHistoryUseCase(mock_uow)

    result = await use_case.execute(uuid4())

    assert result.is_err()
    assert result.error.code == "TOKEN_INVALID"
