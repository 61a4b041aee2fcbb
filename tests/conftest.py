import pytest

from helpers import MemoryAssets


@pytest.fixture
def assets():
    return MemoryAssets()
