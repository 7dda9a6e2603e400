"""
Unit tests for ResetClient against a mocked transport
"""
import json

import httpx
import pytest

from src.client.reset_client import RateLimitHint, ResetClient, ResetClientError

EMAIL = "ana.quispe@gamc.gov.bo"
ELEVATED = "cd" * 32


class FakeMonotonic:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def make_client(handler, **kwargs) -> ResetClient:
    return ResetClient("http://test", transport=httpx.MockTransport(handler), **kwargs)


@pytest.mark.asyncio
async def test_request_reset_parses_challenge_and_records_hint():
    # Arrange
    sent = {}

    def handler(request: httpx.Request):
        sent["path"] = request.url.path
        sent["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "message": "ok",
                "requiresSecurityQuestion": True,
                "securityQuestion": {
                    "questionId": 4,
                    "questionText": "What was the name of your first pet?",
                    "attempts": 0,
                    "maxAttempts": 3,
                },
            },
        )

    clock = FakeMonotonic()
    client = make_client(handler, hint=RateLimitHint(clock=clock))

    # Act
    async with client:
        response = await client.request_reset(EMAIL)

    # Assert
    assert sent == {"path": "/auth/forgot-password", "body": {"email": EMAIL}}
    assert response.requires_security_question is True
    assert response.security_question.question_id == 4
    assert client.hint.seconds_remaining(EMAIL) == 300

    clock.now += 300
    assert client.hint.seconds_remaining(EMAIL) == 0


@pytest.mark.asyncio
async def test_rate_limit_error_updates_hint_from_server():
    def handler(request):
        return httpx.Response(
            429,
            headers={"Retry-After": "180"},
            json={
                "error": {
                    "code": "RATE_LIMIT_EXCEEDED",
                    "message": "Please wait 180 seconds",
                    "details": {"secondsRemaining": 180},
                }
            },
        )

    client = make_client(handler, hint=RateLimitHint(clock=FakeMonotonic()))

    with pytest.raises(ResetClientError) as exc_info:
        await client.request_reset(EMAIL)
    await client.aclose()

    assert exc_info.value.code == "RATE_LIMIT_EXCEEDED"
    assert exc_info.value.status_code == 429
    assert exc_info.value.details["secondsRemaining"] == 180
    assert client.hint.seconds_remaining(EMAIL) == 180


@pytest.mark.asyncio
async def test_invalid_input_is_rejected_before_sending():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={})

    async with make_client(handler) as client:
        with pytest.raises(ResetClientError) as bad_email:
            await client.request_reset("not-an-email")
        with pytest.raises(ResetClientError) as weak_password:
            await client.confirm_reset(ELEVATED, "weak")
        with pytest.raises(ResetClientError) as bad_token:
            await client.confirm_reset("abc", "N3w@Passw0rd")

    assert calls == []
    assert bad_email.value.code == "VALIDATION_ERROR"
    assert bad_email.value.status_code is None
    assert weak_password.value.details["severity"] == "error"
    assert len(weak_password.value.details["violations"]) >= 3
    assert bad_token.value.code == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_verify_answer_returns_server_minted_token():
    def handler(request):
        assert json.loads(request.content) == {"email": EMAIL, "questionId": 4, "answer": "Firulais"}
        return httpx.Response(
            200,
            json={"verified": True, "attemptsRemaining": 3, "resetToken": ELEVATED, "message": "ok"},
        )

    async with make_client(handler) as client:
        response = await client.verify_answer(EMAIL, 4, "Firulais")

    assert response.verified is True
    assert response.reset_token == ELEVATED


@pytest.mark.asyncio
async def test_wrong_answer_error_carries_attempts_remaining():
    def handler(request):
        return httpx.Response(
            400,
            json={
                "error": {
                    "code": "SECURITY_ANSWER_INCORRECT",
                    "message": "Incorrect answer, 2 attempt(s) remaining",
                    "details": {"attemptsRemaining": 2},
                }
            },
        )

    async with make_client(handler) as client:
        with pytest.raises(ResetClientError) as exc_info:
            await client.verify_answer(EMAIL, 4, "Michi")

    assert exc_info.value.code == "SECURITY_ANSWER_INCORRECT"
    assert exc_info.value.details == {"attemptsRemaining": 2}


@pytest.mark.asyncio
async def test_confirm_reset_sends_camel_case_payload():
    def handler(request):
        assert request.url.path == "/auth/reset-password"
        assert json.loads(request.content) == {"token": ELEVATED, "newPassword": "N3w@Passw0rd"}
        return httpx.Response(200, json={"message": "Password has been reset successfully"})

    async with make_client(handler) as client:
        response = await client.confirm_reset(ELEVATED, "N3w@Passw0rd")

    assert response.message == "Password has been reset successfully"


@pytest.mark.asyncio
async def test_list_security_questions():
    def handler(request):
        return httpx.Response(
            200,
            json={
                "questions": [{"id": 1, "questionText": "In what city were you born?", "category": "personal"}],
                "count": 1,
            },
        )

    async with make_client(handler) as client:
        catalog = await client.list_security_questions()

    assert catalog.count == 1
    assert catalog.questions[0].question_text == "In what city were you born?"


@pytest.mark.asyncio
async def test_timeout_surfaces_as_server_error():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    async with make_client(handler) as client:
        with pytest.raises(ResetClientError) as exc_info:
            await client.list_security_questions()

    assert exc_info.value.code == "SERVER_ERROR"
    assert exc_info.value.status_code is None
