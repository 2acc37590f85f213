"""Data access layer: repository interface and shared persistence models."""

from shared.dal.models import PlayerRecord
from shared.dal.player_repository import DuplicateHandleError, PlayerRepository, RecordStoreError

__all__ = [
    "DuplicateHandleError",
    "PlayerRecord",
    "PlayerRepository",
    "RecordStoreError",
]
