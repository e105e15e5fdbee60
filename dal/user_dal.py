"""Async Data Access Layer for the USERS table.

Provides UserDAL with the create / read / update-by-key operations the photo
workflow needs, on top of `utils.database_init.AsyncDatabaseInitializer`.
"""

from __future__ import annotations

import sqlite3
import time
from typing import Optional, Sequence

from models.image_payload import ImagePayload
from models.user_record import UserRecord
from services.errors import DuplicateKeyError, RecordNotFound
from utils.database_init import AsyncDatabaseInitializer


class UserDAL:
    """Data access layer for USERS records.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection`). Each method opens its own connection and commits
    before returning, so every call is atomic on its own.
    """

    _COLUMNS = ("id", "name", "gender", "career", "image", "created_at", "updated_at")
    _COLUMN_LIST = ", ".join(_COLUMNS)

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        """Return the UserRecord for `user_id`, or None if not found."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM USERS WHERE id = ?",
                (user_id,),
            )
            row = await cur.fetchone()
            return self._row_to_record(row) if row else None

    async def create(self, record: UserRecord, image: Optional[bytes] = None) -> UserRecord:
        """Insert a new USERS row.

        Args:
            record: UserRecord carrying the id and identity fields.
            image: Optional raw image bytes to store with the row.

        Raises:
            DuplicateKeyError: If a row with the same id already exists.
        """
        now = int(time.time())
        created_at = record.created_at or now

        async with self._db.connection() as conn:
            try:
                await conn.execute(
                    f"INSERT INTO USERS ({self._COLUMN_LIST}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (
                        record.id,
                        record.name,
                        record.gender,
                        record.career,
                        image,
                        created_at,
                        now,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise DuplicateKeyError(record.id) from exc
            await conn.commit()

        return UserRecord(
            id=record.id,
            name=record.name,
            gender=record.gender,
            career=record.career,
            image=ImagePayload.from_bytes(image) if image else None,
            created_at=created_at,
            updated_at=now,
        )

    async def update_image(self, user_id: str, image: bytes) -> UserRecord:
        """Store `image` on an existing row and return the updated record.

        Raises:
            RecordNotFound: If no row has `user_id`.
        """
        async with self._db.connection() as conn:
            cur = await conn.execute(
                "UPDATE USERS SET image = ?, updated_at = ? WHERE id = ?",
                (image, int(time.time()), user_id),
            )
            await conn.commit()
            if cur.rowcount == 0:
                raise RecordNotFound(user_id)

            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM USERS WHERE id = ?",
                (user_id,),
            )
            row = await cur.fetchone()

        if row is None:
            raise RecordNotFound(user_id)
        return self._row_to_record(row)

    @staticmethod
    def _row_to_record(row: Sequence[object]) -> UserRecord:
        """Convert a DB row tuple into a UserRecord, classifying the image column."""
        return UserRecord(
            id=row[0],
            name=row[1],
            gender=row[2],
            career=row[3],
            image=ImagePayload.from_storage(row[4]),
            created_at=row[5],
            updated_at=row[6],
        )
