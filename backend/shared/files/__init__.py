"""Flat-file storage backend (single JSON collection, single writer process)."""

from shared.files.player_repository import FilePlayerRepository

__all__ = ["FilePlayerRepository"]
