"""Client-side mirror of player records for offline display.

The mirror is best-effort and never authoritative: the service's response
overwrites the local entry after every successful call. It holds no
credential, plaintext or hashed.
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, Field, ValidationError

from shared.stats import apply_outcome, win_rate

if TYPE_CHECKING:
    from client.api import PlayerView

logger = structlog.get_logger()

_FILE_PERMISSIONS = 0o600


class MirroredPlayer(BaseModel, frozen=True):
    player_id: str
    handle: str
    email: str | None = None
    level: int = 1
    experience: int = 0
    score: int = 0
    wins: int = 0
    losses: int = 0
    last_login_at: datetime | None = None
    last_seen_at: datetime

    @property
    def win_rate(self) -> float:
        return win_rate(self.wins, self.losses)


class _MirrorFile(BaseModel):
    current_handle: str | None = None
    players: dict[str, MirroredPlayer] = Field(default_factory=dict)


class LocalMirror:
    """JSON file of mirrored players keyed by handle, plus the last active handle.

    Loaded lazily on first access. Every mutation rewrites the file atomically.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()
        self._state: _MirrorFile | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def current_handle(self) -> str | None:
        return self._load().current_handle

    def set_current(self, handle: str | None) -> None:
        state = self._load()
        if state.current_handle == handle:
            return
        state.current_handle = handle
        self._save(state)

    def record(self, view: PlayerView, now: datetime | None = None) -> MirroredPlayer:
        """Overwrite the entry for ``view.handle`` with the service's data."""
        entry = MirroredPlayer(
            player_id=view.player_id,
            handle=view.handle,
            email=view.email,
            level=view.level,
            experience=view.experience,
            score=view.score,
            wins=view.wins,
            losses=view.losses,
            last_login_at=view.last_login_at,
            last_seen_at=now or datetime.now(tz=UTC),
        )
        state = self._load()
        state.players[entry.handle] = entry
        self._save(state)
        return entry

    def get(self, handle: str) -> MirroredPlayer | None:
        return self._load().players.get(handle)

    def entries(self) -> list[MirroredPlayer]:
        return list(self._load().players.values())

    def remove(self, handle: str) -> None:
        state = self._load()
        removed = state.players.pop(handle, None)
        if state.current_handle == handle:
            state.current_handle = None
        elif removed is None:
            return
        self._save(state)

    def apply_outcome(self, handle: str, *, won: bool) -> MirroredPlayer:
        """Apply one game result to the mirrored totals. Raises KeyError for an unknown handle."""
        state = self._load()
        current = state.players[handle]
        totals = apply_outcome(current.score, current.wins, current.losses, won=won)
        updated = current.model_copy(update=totals._asdict())
        state.players[handle] = updated
        self._save(state)
        return updated

    def describe(self, now: datetime | None = None) -> list[str]:
        """One display line per mirrored player, most recently seen first."""
        now = now or datetime.now(tz=UTC)
        lines = []
        for entry in sorted(self.entries(), key=lambda e: e.last_seen_at, reverse=True):
            last = format_time_ago(now - entry.last_login_at) if entry.last_login_at else "Unknown"
            lines.append(
                f"{entry.handle} • Wins: {entry.wins} • Losses: {entry.losses} "
                f"• WR: {format_win_rate(entry.win_rate)}% • Last: {last}",
            )
        return lines

    def _load(self) -> _MirrorFile:
        if self._state is not None:
            return self._state
        self._state = _MirrorFile()
        if self._path.exists():
            try:
                self._state = _MirrorFile.model_validate_json(self._path.read_bytes())
            except (OSError, ValidationError):
                logger.warning("unreadable mirror file, starting empty", path=str(self._path), exc_info=True)
        return self._state

    def _save(self, state: _MirrorFile) -> None:
        """Write to a temp file in the same directory, then rename into place.

        A failed write is logged and the in-memory state kept; the next
        successful service call rewrites the entry anyway.
        """
        content = json.dumps(state.model_dump(mode="json"), indent=2).encode("utf-8")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self._path.parent, prefix=".mirror_", suffix=".tmp")
        except OSError:
            logger.warning("could not write mirror file", path=str(self._path), exc_info=True)
            return
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
                f.flush()
                os.fchmod(f.fileno(), _FILE_PERMISSIONS)
            Path(tmp_path).replace(self._path)
        except OSError:
            with contextlib.suppress(OSError):
                Path(tmp_path).unlink()
            logger.warning("could not write mirror file", path=str(self._path), exc_info=True)


def format_win_rate(rate: float) -> str:
    """Up to two decimals, trailing zeros dropped: 75.0 -> "75", 66.666 -> "66.67"."""
    return f"{rate:.2f}".rstrip("0").rstrip(".")


def format_time_ago(delta: timedelta) -> str:
    """Human-readable elapsed time, e.g. "Just now.", "17h 10 minutes ago.", "2 days ago."."""
    seconds = max(delta.total_seconds(), 0)
    if seconds < 60:
        return "Just now."
    minutes = int(seconds // 60)
    if minutes < 60:
        return f"{minutes} minute{'' if minutes == 1 else 's'} ago."
    hours = minutes // 60
    if hours < 24:
        rest = minutes % 60
        if rest:
            return f"{hours}h {rest} minute{'' if rest == 1 else 's'} ago."
        return f"{hours}h ago."
    days = hours // 24
    return f"{days} day{'' if days == 1 else 's'} ago."
