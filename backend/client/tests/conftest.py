"""Fixtures for client tests: a real accounts app reached through httpx.ASGITransport."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from accounts.tests.helpers import build_test_app
from client.api import PlayerServiceClient
from client.mirror import LocalMirror
from client.session import PlayerSession

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path


@pytest.fixture
async def api(tmp_path: Path) -> AsyncIterator[PlayerServiceClient]:
    app = build_test_app(tmp_path / "server")
    client = PlayerServiceClient("http://testserver", transport=httpx.ASGITransport(app=app))
    yield client
    await client.aclose()


@pytest.fixture
def mirror(tmp_path: Path) -> LocalMirror:
    return LocalMirror(tmp_path / "client" / "mirror.json")


@pytest.fixture
async def session(api: PlayerServiceClient, mirror: LocalMirror) -> AsyncIterator[PlayerSession]:
    async with PlayerSession(api, mirror) as player_session:
        yield player_session
