"""Shared fixtures for accounts tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from accounts.service import PlayerService
from shared.auth.password import SimpleHasher
from shared.files import FilePlayerRepository

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def hasher() -> SimpleHasher:
    return SimpleHasher()


@pytest.fixture
def player_repo(tmp_path: Path) -> FilePlayerRepository:
    return FilePlayerRepository(tmp_path / "players.json")


@pytest.fixture
def service(player_repo: FilePlayerRepository, hasher: SimpleHasher) -> PlayerService:
    return PlayerService(player_repo, password_hasher=hasher)
