"""
Admin API Routes - Maintenance Endpoints

Authentication is via Admin API Key, not user JWTs.
"""

from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends, status

from src.api.error import ServerError
from src.api.utils.admin_auth import verify_admin_api_key
from src.app.services.reset_policy import ResetPolicy
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.admin import SweepExpiredTokensUseCase
from src.app.use_cases.auth import CleanupTokensResponse
from src.depends import get_clock, get_reset_policy, get_unit_of_work

router = APIRouter(prefix="/auth/admin", tags=["Admin"])


@router.post(
    "/cleanup-tokens",
    status_code=status.HTTP_200_OK,
    response_model=CleanupTokensResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def cleanup_tokens(
    uow: UnitOfWork = Depends(get_unit_of_work),
    policy: ResetPolicy = Depends(get_reset_policy),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """
    Cleanup Expired Tokens

    Marks overdue reset tokens expired and deletes used or expired tokens
    past the retention window.

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
        - 500 Internal Server Error: Server error
    """
    use_case = SweepExpiredTokensUseCase(uow, policy=policy, clock=clock)
    result = await use_case.execute()

    if result.is_err():
        raise ServerError(result.error)

    return result.value
