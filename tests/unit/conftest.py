import time

import pytest


@pytest.fixture
def eastern_time(monkeypatch):
    """Run with US Eastern as the local timezone (DST ends 2030-11-03)."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")

    monkeypatch.setenv("TZ", "EST5EDT,M3.2.0,M11.1.0")
    time.tzset()

    yield

    monkeypatch.undo()
    time.tzset()
