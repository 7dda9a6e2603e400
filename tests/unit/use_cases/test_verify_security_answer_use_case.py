"""
Unit tests for VerifySecurityAnswerUseCase

Covers the attempt state machine: miss, lockout and the elevated token.
"""
from datetime import timedelta

import pytest

from src.app.use_cases.auth.verify_security_answer_use_case import VerifySecurityAnswerUseCase
from src.domain.entities import (
    PasswordResetToken,
    SecurityQuestionAttempt,
    TokenStage,
    User,
    UserSecurityQuestion,
)
from src.domain.validation import hash_reset_token, hash_security_answer

EMAIL = "ana.quispe@gamc.gov.bo"
QUESTION_ID = 4
ORIGINAL_SECRET = "a" * 64


@pytest.fixture(scope="module")
def answer_hash():
    return hash_security_answer("Firulais")


@pytest.fixture
def cycle(mock_uow, clock, answer_hash):
    """User with one configured question and a pending_security cycle"""
    user = User(email=EMAIL, password_hash="hashed_password")
    token = PasswordResetToken(
        user_id=user.id,
        token_hash=hash_reset_token(ORIGINAL_SECRET),
        stage=TokenStage.pending_security,
        created_at=clock.now,
        expires_at=clock.now + timedelta(minutes=30),
    )
    attempt = SecurityQuestionAttempt(
        token_id=token.id, question_id=QUESTION_ID, attempts_used=0, max_attempts=3
    )

    mock_uow.users.get_by_email.return_value = user
    # Terminal tokens are no longer returned as live
    mock_uow.password_reset_tokens.get_live_by_user_id.side_effect = (
        lambda user_id, for_update=False: token if token.is_live else None
    )
    mock_uow.security_question_attempts.get_by_token_id.return_value = attempt
    mock_uow.security_questions.get_user_question.return_value = UserSecurityQuestion(
        id=1, user_id=user.id, question_id=QUESTION_ID, answer_hash=answer_hash
    )
    return user, token, attempt


@pytest.fixture
def use_case(mock_uow, clock, locks):
    return VerifySecurityAnswerUseCase(mock_uow, clock=clock, locks=locks)


@pytest.mark.asyncio
async def test_correct_answer_returns_new_elevated_token(use_case, cycle, mock_uow, clock):
    # Arrange
    _, token, _ = cycle

    # Act
    result = await use_case.execute(EMAIL, QUESTION_ID, "  firulais ")

    # Assert
    assert result.is_ok()
    data = result.value
    assert data.verified is True
    assert data.attempts_remaining == 3
    assert len(data.reset_token) == 64
    assert data.reset_token != ORIGINAL_SECRET

    # The stored hash now belongs to the elevated token only
    assert token.token_hash == hash_reset_token(data.reset_token)
    assert token.token_hash != hash_reset_token(ORIGINAL_SECRET)
    assert token.stage == TokenStage.ready
    assert token.verified_at == clock.now
    mock_uow.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_wrong_answer_consumes_one_attempt(use_case, cycle, mock_uow):
    _, token, attempt = cycle

    result = await use_case.execute(EMAIL, QUESTION_ID, "Michi")

    assert result.is_err()
    assert result.error.code == "SECURITY_ANSWER_INCORRECT"
    assert result.error.details == {"attemptsRemaining": 2}
    assert attempt.attempts_used == 1
    assert token.stage == TokenStage.pending_security
    mock_uow.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_three_misses_lock_the_cycle_for_good(use_case, cycle, clock):
    """Scenario B: third miss reports 0 remaining; a later correct answer still fails"""
    # Arrange
    _, token, attempt = cycle

    # Act
    first = await use_case.execute(EMAIL, QUESTION_ID, "wrong one")
    second = await use_case.execute(EMAIL, QUESTION_ID, "wrong two")
    third = await use_case.execute(EMAIL, QUESTION_ID, "wrong three")
    fourth = await use_case.execute(EMAIL, QUESTION_ID, "Firulais")

    # Assert
    assert first.error.details["attemptsRemaining"] == 2
    assert second.error.details["attemptsRemaining"] == 1
    assert third.error.code == "MAX_ATTEMPTS_REACHED"
    assert third.error.details["attemptsRemaining"] == 0

    assert attempt.attempts_used == 3
    assert attempt.locked_at == clock.now
    assert token.stage == TokenStage.expired

    assert fourth.is_err()
    assert fourth.error.code == "TOKEN_INVALID"


@pytest.mark.asyncio
async def test_answering_another_question_counts_as_miss(use_case, cycle, mock_uow):
    _, _, attempt = cycle

    result = await use_case.execute(EMAIL, QUESTION_ID + 1, "Firulais")

    assert result.is_err()
    assert result.error.code == "SECURITY_ANSWER_INCORRECT"
    assert attempt.attempts_used == 1
    mock_uow.security_questions.get_user_question.assert_not_awaited()


@pytest.mark.asyncio
async def test_empty_answer_does_not_consume_attempt(use_case, cycle, mock_uow):
    _, _, attempt = cycle

    result = await use_case.execute(EMAIL, QUESTION_ID, "   ")

    assert result.is_err()
    assert result.error.code == "VALIDATION_ERROR"
    assert attempt.attempts_used == 0
    mock_uow.security_question_attempts.increment.assert_not_awaited()


@pytest.mark.asyncio
async def test_no_pending_cycle_is_token_invalid(use_case, cycle, mock_uow):
    _, token, _ = cycle
    token.stage = TokenStage.ready

    result = await use_case.execute(EMAIL, QUESTION_ID, "Firulais")

    assert result.is_err()
    assert result.error.code == "TOKEN_INVALID"
    mock_uow.security_question_attempts.increment.assert_not_awaited()


@pytest.mark.asyncio
async def test_unknown_email_is_token_invalid(use_case, mock_uow):
    mock_uow.users.get_by_email.return_value = None

    result = await use_case.execute("nobody@gamc.gov.bo", QUESTION_ID, "Firulais")

    assert result.is_err()
    assert result.error.code == "TOKEN_INVALID"


@pytest.mark.asyncio
async def test_expired_cycle_is_reported_and_closed(use_case, cycle, clock, mock_uow):
    _, token, _ = cycle
    clock.advance(minutes=31)

    result = await use_case.execute(EMAIL, QUESTION_ID, "Firulais")

    assert result.is_err()
    assert result.error.code == "TOKEN_EXPIRED"
    assert token.stage == TokenStage.expired
    mock_uow.commit.assert_awaited_once()
