"""Chat message store backing live streaming updates."""

from __future__ import annotations

import sqlite3
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Any, Protocol

UPDATABLE_FIELDS = frozenset({"text", "thoughts", "elapsed_ms"})


@dataclass
class StoredMessage:
    """Represents a stored message."""

    id: str
    role: str
    purpose: str
    text: str
    thoughts: str | None
    elapsed_ms: int | None
    timestamp: float


class MessageSink(Protocol):
    """What the step executor needs from a message store."""

    def create(self, role: str, purpose: str, text: str = "") -> str: ...

    def update(self, message_id: str, **fields: Any) -> None: ...


class MessageStore:
    """SQLite-based message store with thread-safe access."""

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._local = threading.local()

    @property
    def _conn(self) -> sqlite3.Connection:
        if not hasattr(self._local, "conn") or self._local.conn is None:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row
            self._init_db(conn)
            self._local.conn = conn
            return conn
        return self._local.conn  # type: ignore[no-any-return]

    def _init_db(self, conn: sqlite3.Connection) -> None:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS messages (
                id TEXT PRIMARY KEY,
                role TEXT NOT NULL,
                purpose TEXT NOT NULL,
                text TEXT NOT NULL,
                thoughts TEXT,
                elapsed_ms INTEGER,
                timestamp REAL NOT NULL
            )
        """)
        conn.commit()

    def create(self, role: str, purpose: str, text: str = "") -> str:
        message_id = uuid.uuid4().hex
        self._conn.execute(
            "INSERT INTO messages (id, role, purpose, text, timestamp) VALUES (?, ?, ?, ?, ?)",
            (message_id, str(role), str(purpose), text, time.time()),
        )
        self._conn.commit()
        return message_id

    def update(self, message_id: str, **fields: Any) -> None:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"cannot update message fields: {', '.join(sorted(unknown))}")
        if not fields:
            return
        assignments = ", ".join(f"{name} = ?" for name in fields)
        self._conn.execute(
            f"UPDATE messages SET {assignments} WHERE id = ?",  # noqa: S608 - names come from UPDATABLE_FIELDS.
            (*fields.values(), message_id),
        )
        self._conn.commit()

    def get(self, message_id: str) -> StoredMessage | None:
        row = self._conn.execute("SELECT * FROM messages WHERE id = ?", (message_id,)).fetchone()
        if row is None:
            return None
        return _from_row(row)

    def list_messages(self, *, role: str | None = None, limit: int = 100) -> list[StoredMessage]:
        if role is not None:
            rows = self._conn.execute(
                "SELECT * FROM messages WHERE role = ? ORDER BY timestamp DESC, rowid DESC LIMIT ?",
                (str(role), limit),
            ).fetchall()
        else:
            rows = self._conn.execute(
                "SELECT * FROM messages ORDER BY timestamp DESC, rowid DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [_from_row(row) for row in reversed(rows)]

    def close(self) -> None:
        if hasattr(self._local, "conn") and self._local.conn:
            self._local.conn.close()
            self._local.conn = None


def _from_row(row: sqlite3.Row) -> StoredMessage:
    return StoredMessage(
        id=row["id"],
        role=row["role"],
        purpose=row["purpose"],
        text=row["text"],
        thoughts=row["thoughts"],
        elapsed_ms=row["elapsed_ms"],
        timestamp=row["timestamp"],
    )
