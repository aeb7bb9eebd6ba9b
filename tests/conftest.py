import pytest

from helpers import FakeFetcher


@pytest.fixture
def fake_fetcher():
    return FakeFetcher()
