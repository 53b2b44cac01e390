"""Shared test setup.

Points the lesson store at a throwaway SQLite file before ``leitner.config``
is imported, so tests never touch the real ``data/`` directory.
"""

import os
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="leitner-tests-"))
os.environ.setdefault("LEITNER_DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_DB_DIR / 'test.db'}")


class FakeClock:
    """One source of time for both the timers (monotonic) and card timestamps (UTC)."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0)) -> None:
        self.start = start
        self.offset = 0.0

    def advance(self, seconds: float) -> None:
        self.offset += seconds

    def monotonic(self) -> float:
        return self.offset

    def utcnow(self) -> datetime:
        return self.start + timedelta(seconds=self.offset)
