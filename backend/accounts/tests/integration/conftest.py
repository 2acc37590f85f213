"""Fixtures for accounts integration tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from starlette.testclient import TestClient

from accounts.tests.helpers import build_test_app

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(params=["sqlite", "file"])
def client(request, tmp_path: Path) -> TestClient:
    """HTTP client against a fresh app, once per storage backend."""
    return TestClient(build_test_app(tmp_path, storage_backend=request.param))
