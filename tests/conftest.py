import pytest

from pagescraper.config import Settings


@pytest.fixture
def settings():
    return Settings(_env_file=None, settle_ms=0, settle_jitter_ms=0, request_timeout_s=10)
