"""
Shared fixtures.
"""

from __future__ import annotations

import logging
import random

import pytest

from dirsweep.core.config.models import MsRange, PacingConfig, ServiceConfig

from .fakes import FakeClock, FakePage, RecordingSleep


@pytest.fixture(autouse=True)
def reset_dirsweep_logger():
    """Remove handlers installed by setup_logging."""
    yield
    logger = logging.getLogger("dirsweep")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep(clock: FakeClock) -> RecordingSleep:
    return RecordingSleep(clock)


@pytest.fixture
def page() -> FakePage:
    return FakePage()


@pytest.fixture
def service() -> ServiceConfig:
    return ServiceConfig(
        probe_interval_ms=100,
        result_polls=20,
        result_poll_interval_ms=50,
        scroll_rounds=2,
        scroll_pause=MsRange.of(0, 0),
    )


@pytest.fixture
def pacing() -> PacingConfig:
    return PacingConfig()
