"""Shared fixtures isolating process-wide dynamic object state."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from dynamic_object.config import reset_runtime_config
from dynamic_object.tags import TAG_REGISTRY


@pytest.fixture(autouse=True)
def isolated_tag_registry() -> Iterator[None]:
    """Start each test with no tag bindings and restore the previous ones afterwards."""
    snapshot = dict(TAG_REGISTRY.snapshot())
    TAG_REGISTRY.clear()
    yield
    TAG_REGISTRY.restore(snapshot)


@pytest.fixture(autouse=True)
def isolated_runtime_config() -> Iterator[None]:
    """Re-resolve runtime settings from the environment around each test."""
    reset_runtime_config()
    yield
    reset_runtime_config()
