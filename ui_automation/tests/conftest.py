"""Shared fixtures for the interaction engine tests."""
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))
TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from fake_driver import FakeClock, FakeDriver  # noqa: E402
from ui_automation.mobile.engine import InteractionEngine  # noqa: E402


@pytest.fixture
def clock():
    """A fake monotonic clock; waits advance it instead of sleeping."""
    return FakeClock()


@pytest.fixture
def driver():
    return FakeDriver()


@pytest.fixture
def make_engine(clock):
    """Build an engine over any fake driver, wired to the fake clock."""

    def _make(fake_driver, **kwargs):
        kwargs.setdefault("explicit_timeout_s", 10.0)
        return InteractionEngine(fake_driver, clock=clock, sleep=clock.sleep, **kwargs)

    return _make


@pytest.fixture
def engine(make_engine, driver):
    return make_engine(driver)
