from datetime import datetime, timedelta

import pytest


class FakeClock:
    """Deterministic clock for use cases; advance() moves time forward"""

    def __init__(self, now: datetime = datetime(2025, 3, 10, 9, 0, 0)):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()
