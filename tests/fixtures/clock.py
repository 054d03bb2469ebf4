# ABOUTME: Deterministic clock for tests that check stored timestamps.
# ABOUTME: Repositories accept it in place of the real UTC clock.

from datetime import datetime, timedelta, timezone

FIXED_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = FIXED_TIME) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int = 60) -> None:
        self.now += timedelta(seconds=seconds)
