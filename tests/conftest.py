"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    # CLI invocations bind the logger to the runner's stderr, which closes afterwards.
    yield
    structlog.reset_defaults()
