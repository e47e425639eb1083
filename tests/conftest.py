from __future__ import annotations

import pytest

from signalwatch.config import MonitorConfig
from tests.fakes import FakeClock


@pytest.fixture
def config() -> MonitorConfig:
    return MonitorConfig(
        symbols=("X",),
        min_probability=65,
        min_risk_reward=2.5,
        cooldown_minutes=5,
        max_followups_per_signal=3,
        volatility_threshold=0.015,
        volume_spike_threshold=2.0,
        call_timeout_seconds=5,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
