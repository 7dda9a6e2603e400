from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from src.domain.entities import RateLimitRecord


class IRateLimitRepository(ABC):
    """Reset request rate-limit records - application layer"""

    @abstractmethod
    async def get_by_email(self, email: str, for_update: bool = False) -> Optional[RateLimitRecord]:
        """Get the record for a normalized email"""
        pass

    @abstractmethod
    async def record(self, email: str, requested_at: datetime) -> RateLimitRecord:
        """Insert or move forward the last accepted request timestamp"""
        pass

    @abstractmethod
    async def clear(self, email: str) -> bool:
        """Remove the record. Returns True if one existed."""
        pass
