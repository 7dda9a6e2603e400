"""
Integration tests for maintenance and history endpoints

- POST /auth/admin/cleanup-tokens (X-Admin-API-Key)
- Sweeper job, single pass
- GET /auth/reset-history (Bearer JWT)
"""
from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.orm import sessionmaker
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.utils.jwt import generate_jwt
from src.app.services.reset_policy import ResetPolicy
from src.domain.base import utc_now
from src.domain.entities import PasswordResetToken, SecurityQuestionAttempt, TokenStage
from src.jobs.token_sweeper import run_sweep_cycle

EMAIL = "ana.quispe@gamc.gov.bo"
ADMIN_HEADERS = {"X-Admin-API-Key": "test-admin-key-12345"}


def make_token(user_id, now, stage, created_ago, used_ago=None, seed="0"):
    created_at = now - created_ago
    return PasswordResetToken(
        user_id=user_id,
        token_hash=seed * 64,
        stage=stage,
        created_at=created_at,
        expires_at=created_at + timedelta(minutes=30),
        used_at=now - used_ago if used_ago is not None else None,
        request_ip="10.0.0.7",
    )


@pytest.mark.asyncio
async def test_cleanup_requires_admin_key(client: AsyncClient):
    missing = await client.post("/auth/admin/cleanup-tokens")
    wrong = await client.post("/auth/admin/cleanup-tokens", headers={"X-Admin-API-Key": "nope"})

    assert missing.status_code == 401
    assert wrong.status_code == 401
    assert wrong.json()["error"]["code"] == "INVALID_API_KEY"


@pytest.mark.asyncio
async def test_cleanup_expires_overdue_and_purges_past_retention(
    client: AsyncClient, db_session, make_user, clock
):
    # Arrange
    user, _ = await make_user(EMAIL)
    overdue = make_token(user.id, clock.now, TokenStage.pending_security, timedelta(hours=2), seed="1")
    old_used = make_token(
        user.id, clock.now, TokenStage.used, timedelta(hours=30), used_ago=timedelta(hours=29), seed="2"
    )
    old_expired = make_token(user.id, clock.now, TokenStage.expired, timedelta(hours=26), seed="3")
    recent_used = make_token(
        user.id, clock.now, TokenStage.used, timedelta(minutes=40), used_ago=timedelta(minutes=35), seed="4"
    )
    live = make_token(user.id, clock.now, TokenStage.ready, timedelta(minutes=5), seed="5")
    db_session.add_all([overdue, old_used, old_expired, recent_used, live])
    await db_session.flush()
    db_session.add(SecurityQuestionAttempt(token_id=overdue.id, question_id=1))
    await db_session.commit()

    # Act
    first = await client.post("/auth/admin/cleanup-tokens", headers=ADMIN_HEADERS)
    second = await client.post("/auth/admin/cleanup-tokens", headers=ADMIN_HEADERS)

    # Assert
    assert first.status_code == 200
    assert first.json()["expired"] == 1
    assert first.json()["cleaned"] == 2
    assert second.json()["expired"] == 0
    assert second.json()["cleaned"] == 0

    db_session.expunge_all()
    remaining = (await db_session.exec(select(PasswordResetToken))).all()
    stages = {t.token_hash[0]: t.stage for t in remaining}
    assert stages == {"1": TokenStage.expired, "4": TokenStage.used, "5": TokenStage.ready}
    assert len((await db_session.exec(select(SecurityQuestionAttempt))).all()) == 1


@pytest.mark.asyncio
async def test_recently_used_cycle_survives_sweep_in_history(
    client: AsyncClient, db_session, make_user, clock
):
    # Arrange
    user, _ = await make_user(EMAIL)
    db_session.add(
        make_token(
            user.id, clock.now, TokenStage.used, timedelta(minutes=40), used_ago=timedelta(minutes=35)
        )
    )
    await db_session.commit()
    headers = {"Authorization": f"Bearer {generate_jwt(user.id)}"}

    # Act
    before = await client.get("/auth/reset-history", headers=headers)
    swept = await client.post("/auth/admin/cleanup-tokens", headers=ADMIN_HEADERS)
    after = await client.get("/auth/reset-history", headers=headers)

    # Assert
    assert before.json()["count"] == 1
    assert swept.json()["cleaned"] == 0
    assert after.json()["count"] == 1
    assert after.json()["cycles"][0]["stage"] == "used"


@pytest.mark.asyncio
async def test_sweeper_job_runs_one_pass(engine, db_session, make_user):
    # Arrange
    user, _ = await make_user(EMAIL)
    now = utc_now()
    db_session.add_all(
        [
            make_token(user.id, now, TokenStage.ready, timedelta(hours=1), seed="1"),
            make_token(user.id, now, TokenStage.expired, timedelta(hours=48), seed="2"),
        ]
    )
    await db_session.commit()
    session_factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    # Act
    swept = await run_sweep_cycle(session_factory, ResetPolicy())

    # Assert
    assert swept.expired == 1
    assert swept.cleaned == 1


@pytest.mark.asyncio
async def test_reset_history_lists_own_cycles(client: AsyncClient, db_session, make_user, clock):
    # Arrange
    user, _ = await make_user(EMAIL)
    other, _ = await make_user("otro@gamc.gov.bo")
    for i in range(7):
        db_session.add(
            make_token(user.id, clock.now, TokenStage.expired, timedelta(hours=i + 1), seed=str(i))
        )
    db_session.add(make_token(other.id, clock.now, TokenStage.ready, timedelta(minutes=1), seed="9"))
    await db_session.commit()
    headers = {"Authorization": f"Bearer {generate_jwt(user.id)}"}

    # Act
    response = await client.get("/auth/reset-history", headers=headers)

    # Assert
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 5
    assert all(c["stage"] == "expired" for c in body["cycles"])
    assert all("tokenHash" not in c for c in body["cycles"])
    created = [c["createdAt"] for c in body["cycles"]]
    assert created == sorted(created, reverse=True)


@pytest.mark.asyncio
async def test_reset_history_requires_token(client: AsyncClient):
    response = await client.get("/auth/reset-history", headers={"Authorization": "Bearer junk"})

    assert response.status_code == 401
