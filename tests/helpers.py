from datetime import datetime, timedelta, timezone
from itertools import count

from intake.core.config import Settings

PDF_BYTES = b"%PDF-1.4\n" + bytes(range(256)) * 40 + b"\n%%EOF\n"


def make_settings(**overrides) -> Settings:
    values = {
        "DATABASE_URL": "sqlite://",
        "LOG_DIR": None,
        "BLOB_CHUNK_SIZE": 1024,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class StepClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, tzinfo=timezone.utc)):
        self._start = start
        self._ticks = count()

    def __call__(self) -> datetime:
        return self._start + timedelta(seconds=next(self._ticks))
