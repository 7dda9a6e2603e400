"""Admin use cases for system administration operations."""

from .sweep_expired_tokens_use_case import SweepExpiredTokensUseCase

__all__ = [
    "SweepExpiredTokensUseCase",
]
