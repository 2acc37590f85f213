"""Persistence models for the data access layer."""

from datetime import datetime

from pydantic import BaseModel, Field

from shared.stats import win_rate

HANDLE_MAX_LENGTH = 32

# Largest value a SQLite INTEGER column holds.
COUNTER_MAX = 2**63 - 1


class PlayerRecord(BaseModel, frozen=True):
    """Canonical player record as held by a PlayerRepository."""

    player_id: str
    handle: str = Field(min_length=1, max_length=HANDLE_MAX_LENGTH)
    password_hash: str = Field(min_length=1)  # never leaves the service
    email: str | None = None
    level: int = Field(default=1, ge=0, le=COUNTER_MAX)
    experience: int = Field(default=0, ge=0, le=COUNTER_MAX)
    score: int = Field(default=0, ge=0, le=COUNTER_MAX)
    wins: int = Field(default=0, ge=0, le=COUNTER_MAX)
    losses: int = Field(default=0, ge=0, le=COUNTER_MAX)
    created_at: datetime
    last_login_at: datetime | None = None

    @property
    def win_rate(self) -> float:
        return win_rate(self.wins, self.losses)


# Columns a caller may change through PlayerRepository.update_player.
MUTABLE_FIELDS = frozenset(
    {"email", "level", "experience", "score", "wins", "losses", "password_hash", "last_login_at"},
)

# Keys accepted by PlayerRepository.list_players(sort_by=...), always descending.
SORT_KEYS = frozenset({"score", "level", "experience", "wins"})
