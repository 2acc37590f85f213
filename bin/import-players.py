"""Import a flat-file player collection into the SQLite store.

Usage: python bin/import-players.py [players.json]

Defaults to AUTH_PLAYERS_FILE. The import is skipped when the players table
already holds records, so running it twice is harmless.
"""

import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from shared.auth.settings import AuthSettings
from shared.db import Database


def main() -> None:
    if len(sys.argv) > 2:
        print(f"Usage: {sys.argv[0]} [players.json]")
        sys.exit(1)

    # Only database_path and players_file are needed; supply a placeholder
    # admin token so the script works without AUTH_ADMIN_TOKEN being set.
    auth_settings = AuthSettings(admin_token="unused")
    source = sys.argv[1] if len(sys.argv) == 2 else auth_settings.players_file
    if not Path(source).exists():
        print(f"Error: {source} does not exist")
        sys.exit(1)

    db = Database(auth_settings.database_path)
    db.connect()
    try:
        try:
            count = db.import_from_json(source)
        except OSError as e:
            print(f"Error: {e}")
            sys.exit(1)
        print(f"Imported {count} player(s) from {source} into {auth_settings.database_path}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
