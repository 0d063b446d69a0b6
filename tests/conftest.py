"""
Shared test configuration.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from core import config


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Iterator[None]:
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
