"""SQLite database connection and schema management."""

import json
import os
import sqlite3
from pathlib import Path

import structlog

from shared.dal.models import PlayerRecord

logger = structlog.get_logger()

_DB_FILE_PERMISSIONS = 0o600

# handle uses the default BINARY collation, so uniqueness is case-sensitive.
_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS players (
    id TEXT PRIMARY KEY,
    handle TEXT NOT NULL,
    password_hash TEXT NOT NULL,
    email TEXT,
    level INTEGER NOT NULL DEFAULT 1 CHECK (level >= 0),
    experience INTEGER NOT NULL DEFAULT 0 CHECK (experience >= 0),
    score INTEGER NOT NULL DEFAULT 0 CHECK (score >= 0),
    wins INTEGER NOT NULL DEFAULT 0 CHECK (wins >= 0),
    losses INTEGER NOT NULL DEFAULT 0 CHECK (losses >= 0),
    created_at TEXT NOT NULL,
    last_login_at TEXT
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_players_handle
    ON players (handle);
"""

PLAYER_COLUMNS = (
    "id",
    "handle",
    "password_hash",
    "email",
    "level",
    "experience",
    "score",
    "wins",
    "losses",
    "created_at",
    "last_login_at",
)


def record_to_row(record: PlayerRecord) -> tuple:
    """Flatten a PlayerRecord into values ordered like PLAYER_COLUMNS."""
    return (
        record.player_id,
        record.handle,
        record.password_hash,
        record.email,
        record.level,
        record.experience,
        record.score,
        record.wins,
        record.losses,
        record.created_at.isoformat(),
        record.last_login_at.isoformat() if record.last_login_at else None,
    )


def row_to_record(row: tuple) -> PlayerRecord:
    """Build a PlayerRecord from a row selected with PLAYER_COLUMNS."""
    data = dict(zip(PLAYER_COLUMNS, row, strict=True))
    data["player_id"] = data.pop("id")
    return PlayerRecord.model_validate(data)


class Database:
    """SQLite database wrapper with schema management and import support."""

    def __init__(self, path: str | Path) -> None:
        self._path = str(path)
        self._conn: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Return the active connection or raise if disconnected."""
        if self._conn is None:
            raise RuntimeError("Database is not connected")
        return self._conn

    def connect(self) -> None:
        """Open the database, apply pragmas, create schema, and harden file permissions."""
        parent = Path(self._path).parent
        parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(self._path, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.execute("PRAGMA busy_timeout=5000")
        self._conn.executescript(_SCHEMA_SQL)

        self._harden_permissions()

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def import_from_json(self, players_json_path: str | Path | None) -> int:
        """Import records from a flat-file player collection into the players table.

        Returns the number of records imported. Skips the import when the path
        is None, the file does not exist, or the players table already has data.
        The whole import runs in a single transaction; any failure rolls back.
        """
        if players_json_path is None:
            return 0

        json_path = Path(players_json_path)
        if not json_path.exists():
            return 0

        conn = self.connection
        row = conn.execute("SELECT COUNT(*) FROM players").fetchone()
        if row[0] > 0:
            logger.info("players table already has data, skipping import")
            return 0

        records = self._parse_players_json(json_path)
        self._insert_imported_records(conn, records)

        count = len(records)
        logger.info("imported players from flat file", count=count, path=str(json_path))
        return count

    @staticmethod
    def _parse_players_json(json_path: Path) -> list[PlayerRecord]:
        """Parse and validate a flat-file player collection (a JSON array)."""
        try:
            raw = json_path.read_text(encoding="utf-8")
        except OSError as exc:
            msg = f"Failed to read players file: {json_path}"
            raise OSError(msg) from exc

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, ValueError) as exc:
            msg = f"Malformed JSON in players file: {json_path}"
            raise OSError(msg) from exc

        if not isinstance(data, list):
            msg = f"Expected JSON array at root in {json_path}"
            raise OSError(msg)

        records: list[PlayerRecord] = []
        seen_handles: set[str] = set()
        for index, item in enumerate(data):
            try:
                record = PlayerRecord.model_validate(item)
            except ValueError as exc:
                msg = f"Invalid player record at index {index} in {json_path}"
                raise OSError(msg) from exc
            if record.handle in seen_handles:
                msg = f"Duplicate handle '{record.handle}' in {json_path}"
                raise OSError(msg)
            seen_handles.add(record.handle)
            records.append(record)

        return records

    @staticmethod
    def _insert_imported_records(conn: sqlite3.Connection, records: list[PlayerRecord]) -> None:
        """Insert all imported records in a single transaction, preserving file order."""
        placeholders = ", ".join("?" for _ in PLAYER_COLUMNS)
        sql = f"INSERT INTO players ({', '.join(PLAYER_COLUMNS)}) VALUES ({placeholders})"  # noqa: S608
        try:
            conn.execute("BEGIN")
            for record in records:
                conn.execute(sql, record_to_row(record))
            conn.execute("COMMIT")
        except Exception:
            conn.execute("ROLLBACK")
            raise

    def _harden_permissions(self) -> None:
        """Set restrictive file permissions on POSIX systems (best effort).

        Hardens the main DB file and WAL/SHM sibling files created by WAL mode,
        since they also contain database content (credential hashes).
        """
        if os.name != "posix":  # pragma: no cover
            return
        for suffix in ("", "-wal", "-shm"):
            p = Path(self._path + suffix)
            if p.exists():
                try:
                    p.chmod(_DB_FILE_PERMISSIONS)
                except OSError:
                    logger.warning("could not set file permissions", permissions=oct(_DB_FILE_PERMISSIONS), path=str(p))
