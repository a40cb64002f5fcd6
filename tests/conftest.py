"""Shared test fixtures for Fisherman."""

import pytest

from fisherman.core.config import FishermanConfig
from fisherman.core.service import PhishingDetector
from fisherman.intelligence.domain_list import DomainStore


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Provide a controllable clock starting at a fixed epoch."""
    return FakeClock()


@pytest.fixture
def tmp_data_dir(tmp_path):
    """Provide a temporary directory for test data (lists, configs, etc.)."""
    data_dir = tmp_path / "fisherman_data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def store(clock):
    """Domain store seeded with a small known-bad list."""
    return DomainStore(
        ["evil.tk", "phish-login.com", "bad.example.org"], source="test", clock=clock,
    )


@pytest.fixture
def detector(store, clock):
    """Detector wired to the test store and clock."""
    return PhishingDetector(config=FishermanConfig(), store=store, clock=clock)


@pytest.fixture
def sample_domain_list():
    """Domain list text in the format served by public phishing feeds."""
    return (
        "# Known phishing domains\n"
        "# one per line\n"
        "\n"
        "fake-paypal-login.com\n"
        "Amazon-Security-Update.NET\n"
        "microsoft-account-verify.org\n"
        "not a domain\n"
        "localhost\n"
        "secure-login-portal.cf\n"
    )
