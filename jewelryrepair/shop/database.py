"""SQLite persistence for the client directory."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Iterable

from .directory import Client

SCHEMA_VERSION = 1

CLIENT_COLUMNS = (
    "id",
    "name",
    "mobile",
    "email",
    "last_repair_date",
    "total_repairs",
    "address",
    "join_date",
    "notes",
)


def dict_factory(cursor: sqlite3.Cursor, row: sqlite3.Row) -> dict:
    """Return rows as dictionaries rather than tuples."""

    return {description[0]: row[idx] for idx, description in enumerate(cursor.description)}


def get_connection(path: str | Path) -> sqlite3.Connection:
    """Return a SQLite connection with sensible defaults."""

    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = dict_factory
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA busy_timeout = 5000")
    return conn


def initialize_database(conn: sqlite3.Connection) -> None:
    """Create the database schema if it does not yet exist."""

    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS metadata (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS clients (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            id TEXT UNIQUE NOT NULL,
            name TEXT NOT NULL,
            mobile TEXT NOT NULL,
            email TEXT,
            last_repair_date TEXT,
            total_repairs INTEGER NOT NULL DEFAULT 0 CHECK (total_repairs >= 0),
            address TEXT,
            join_date TEXT,
            notes TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        );
        """
    )
    conn.execute(
        "INSERT OR IGNORE INTO metadata(key, value) VALUES('schema_version', ?)",
        (str(SCHEMA_VERSION),),
    )
    conn.commit()


class SQLiteClientRepository:
    """Client repository stored in a SQLite file (or ``:memory:``)."""

    def __init__(self, path: str | Path = ":memory:") -> None:
        self.conn = get_connection(path)
        initialize_database(self.conn)

    def load(self) -> list[Client]:
        rows = self.conn.execute(
            "SELECT {columns} FROM clients ORDER BY seq".format(columns=", ".join(CLIENT_COLUMNS))
        ).fetchall()
        return [Client.from_mapping(row) for row in rows]

    def save(self, client: Client) -> Client:
        record = client.to_dict()
        columns = ", ".join(CLIENT_COLUMNS)
        placeholders = ", ".join("?" for _ in CLIENT_COLUMNS)
        updates = ", ".join(f"{column} = excluded.{column}" for column in CLIENT_COLUMNS[1:])
        self.conn.execute(
            f"""
            INSERT INTO clients({columns}) VALUES ({placeholders})
            ON CONFLICT(id) DO UPDATE SET {updates}
            """,
            tuple(record[column] for column in CLIENT_COLUMNS),
        )
        self.conn.commit()
        return client

    def seed(self, clients: Iterable[Client]) -> None:
        """Insert ``clients`` only when the table is still empty."""

        row = self.conn.execute("SELECT COUNT(*) AS total FROM clients").fetchone()
        if row["total"]:
            return
        for client in clients:
            self.save(client)

    def close(self) -> None:
        self.conn.close()
