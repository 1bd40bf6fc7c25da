from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


class Database:
    """Local sqlite file holding the roster and the append-only session log.

    Every unit of work gets its own short-lived connection, committed on a
    clean exit and rolled back otherwise.
    """

    def __init__(
        self,
        db_path: Path | str,
        *,
        timeout: float = 5.0,
        migrations_dir: Path = MIGRATIONS_DIR,
    ) -> None:
        self._db_path = Path(db_path).expanduser()
        self._timeout = timeout
        self._migrations_dir = Path(migrations_dir)

    @property
    def path(self) -> Path:
        return self._db_path

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        connection = sqlite3.connect(self._db_path, timeout=self._timeout)
        connection.row_factory = sqlite3.Row
        try:
            yield connection
            connection.commit()
        except Exception:
            connection.rollback()
            raise
        finally:
            connection.close()

    def migration_files(self) -> list[Path]:
        return sorted(self._migrations_dir.glob("*.sql"))

    def applied_migrations(self) -> list[str]:
        with self.connect() as connection:
            self._ensure_migrations_table(connection)
            return [
                row["name"]
                for row in connection.execute("SELECT name FROM schema_migrations ORDER BY name")
            ]

    def initialize(self) -> list[str]:
        """Apply pending migrations in file-name order and return the names applied."""

        applied_now: list[str] = []
        with self.connect() as connection:
            self._ensure_migrations_table(connection)
            already = {row["name"] for row in connection.execute("SELECT name FROM schema_migrations")}

            for migration in self.migration_files():
                if migration.name in already:
                    continue
                logger.info("Applying migration %s to %s", migration.name, self._db_path)
                connection.executescript(migration.read_text(encoding="utf-8"))
                connection.execute("INSERT INTO schema_migrations(name) VALUES (?)", (migration.name,))
                applied_now.append(migration.name)

        if not applied_now:
            logger.debug("Attendance database %s is up to date", self._db_path)
        return applied_now

    @staticmethod
    def _ensure_migrations_table(connection: sqlite3.Connection) -> None:
        connection.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                name TEXT PRIMARY KEY,
                applied_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
            """
        )
