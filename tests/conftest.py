from __future__ import annotations

from datetime import datetime

import pytest


@pytest.fixture
def fixed_now() -> datetime:
    # Monday, 08:55 local time.
    return datetime(2024, 1, 15, 8, 55)
