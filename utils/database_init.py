import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite


class AsyncDatabaseInitializer:
    """
    Manage the async SQLite database that holds the USERS table.

    - The database file is located at: <db_dir>/app.db
    - A RuntimeError is raised if `db_dir` points to a file or cannot be created.
    - On the first call to `ensure_database()` for a given instance:
        * When `reset` is True, any existing database file is deleted.
        * The USERS table is created if it does not exist yet.
    - Subsequent calls to `ensure_database()` on the same instance are no-ops,
      so it is safe for `connection()` to call it.
    """

    def __init__(self, db_dir: Path | str, *, reset: bool = False) -> None:
        db_dir = Path(db_dir).expanduser()

        # If the path exists but is not a directory, that's a configuration error.
        if db_dir.exists() and not db_dir.is_dir():
            raise RuntimeError(
                f"DATABASE_DIR points to a file, not a directory ({db_dir}). "
                "Please set DATABASE_DIR to a directory path."
            )

        try:
            db_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RuntimeError(
                f"Failed to create or access database directory at {db_dir}"
            ) from exc

        self.db_dir = db_dir
        self.db_path = self.db_dir / "app.db"
        self.reset = reset

        # Makes the optional wipe and the schema creation one-time per instance.
        self._initialized = False

    async def ensure_database(self) -> None:
        """
        Ensure the SQLite database exists at `self.db_path` with the USERS table.

        Subsequent calls on the same instance are no-ops.
        """
        if self._initialized:
            return

        if self.reset and self.db_path.exists():
            try:
                self.db_path.unlink()
            except OSError as exc:
                raise RuntimeError(
                    f"Failed to delete existing database at {self.db_path}"
                ) from exc

        max_attempts = 3
        for attempt in range(1, max_attempts + 1):
            try:
                async with aiosqlite.connect(self.db_path) as db:
                    await db.execute(
                        """
                        CREATE TABLE IF NOT EXISTS USERS (
                            id TEXT PRIMARY KEY,
                            name TEXT NOT NULL,
                            gender TEXT NOT NULL,
                            career TEXT NOT NULL,
                            image BLOB,
                            created_at INTEGER,
                            updated_at INTEGER
                        )
                        """
                    )

                    # Older databases were created before the timestamp columns existed.
                    cur = await db.execute("PRAGMA table_info(USERS)")
                    cols = await cur.fetchall()
                    col_names = {col[1] for col in cols}
                    for column in ("created_at", "updated_at"):
                        if column not in col_names:
                            await db.execute(f"ALTER TABLE USERS ADD COLUMN {column} INTEGER")

                    await db.commit()
                break
            except FileNotFoundError:
                # On some platforms a transient missing file error may occur; retry a few times.
                if attempt >= max_attempts:
                    raise
                await asyncio.sleep(0.1 * attempt)

        self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Async context manager yielding an `aiosqlite.Connection`.

        The database is created on first use via `ensure_database()`.
        """
        await self.ensure_database()
        conn = await aiosqlite.connect(self.db_path)
        try:
            yield conn
        finally:
            await conn.close()
