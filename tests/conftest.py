from __future__ import annotations

from typing import Iterator

import pytest

from datastore.device_registry import build_default_registry
from settings import get_settings


@pytest.fixture(autouse=True)
def _reset_caches() -> Iterator[None]:
    get_settings.cache_clear()
    build_default_registry.cache_clear()
    yield
    build_default_registry.cache_clear()
    get_settings.cache_clear()
