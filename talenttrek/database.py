"""
SQLite document store.

Each collection is a table of JSON documents keyed by a UUID hex id. Rows
also carry an insertion sequence so `find` returns documents in the order
they were written unless asked to sort by a field.
"""

from datetime import datetime
from typing import Any, Optional
import json
import logging
import re
import sqlite3
import uuid

from flask import current_app, g


logger = logging.getLogger(__name__)

COLLECTIONS = ("users", "jobs", "applications", "resumes")

_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_ID_RE = re.compile(r"^[0-9a-f]{32}$")

# Sub-documents merged key by key on update instead of replaced
_MERGED_FIELDS = ("profile",)


class DatabaseError(Exception):
    """Raised when the underlying store fails."""


def new_id() -> str:
    return uuid.uuid4().hex


def is_valid_id(value: str) -> bool:
    return bool(value) and bool(_ID_RE.match(value))


class DatabaseManager:
    """Small document store on top of sqlite3."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self.conn: Optional[sqlite3.Connection] = None

    def connect(self):
        """Open the database connection."""
        try:
            self.conn = sqlite3.connect(self.db_path)
            self.conn.row_factory = sqlite3.Row
            logger.debug(f"Connected to SQLite database: {self.db_path}")
        except sqlite3.Error as e:
            logger.error(f"Failed to connect to {self.db_path}: {e}")
            raise DatabaseError(f"Could not open database: {e}") from e

    def close(self):
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def __enter__(self):
        if self.conn is None:
            self.connect()
        return self

    def __exit__(self, *exc):
        self.close()

    def create_schema(self):
        """Create one table per collection."""
        cursor = self._cursor()
        try:
            for name in COLLECTIONS:
                cursor.execute(f"""
                    CREATE TABLE IF NOT EXISTS {name} (
                        seq INTEGER PRIMARY KEY AUTOINCREMENT,
                        id TEXT UNIQUE NOT NULL,
                        data TEXT NOT NULL,
                        created_at TEXT DEFAULT CURRENT_TIMESTAMP
                    )
                """)
            self.conn.commit()
            logger.info("Database schema created/verified")
        except sqlite3.Error as e:
            self.conn.rollback()
            raise DatabaseError(f"Error creating schema: {e}") from e
        finally:
            cursor.close()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def insert(self, collection: str, document: dict) -> dict:
        """Store a document and return it with its new id."""
        doc = dict(document)
        if not doc.get("id"):
            doc["id"] = new_id()
        self._execute(
            f"INSERT INTO {self._table(collection)} (id, data) VALUES (?, ?)",
            (doc["id"], self._dump(doc)),
            commit=True,
        )
        return doc

    def insert_many(self, collection: str, documents: list[dict]) -> list[dict]:
        return [self.insert(collection, d) for d in documents]

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        """Fetch a document by id."""
        rows = self._execute(
            f"SELECT data FROM {self._table(collection)} WHERE id = ?", (doc_id,)
        )
        return json.loads(rows[0]["data"]) if rows else None

    def find(self, collection: str, sort_by: Optional[str] = None,
             descending: bool = False, **filters: Any) -> list[dict]:
        """
        Find documents whose top-level fields equal the given filters.

        Args:
            collection: Collection name
            sort_by: Top-level field to order by (default: insertion order)
            descending: Reverse the ordering
            **filters: field=value equality conditions

        Returns:
            List of documents
        """
        clauses = []
        params = []
        for field_name, value in filters.items():
            clauses.append(f"json_extract(data, '$.{self._field(field_name)}') = ?")
            params.append(value)

        sql = f"SELECT data FROM {self._table(collection)}"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)

        direction = "DESC" if descending else "ASC"
        if sort_by:
            sql += f" ORDER BY json_extract(data, '$.{self._field(sort_by)}') {direction}, seq {direction}"
        else:
            sql += f" ORDER BY seq {direction}"

        return [json.loads(row["data"]) for row in self._execute(sql, tuple(params))]

    def find_one(self, collection: str, **filters: Any) -> Optional[dict]:
        results = self.find(collection, **filters)
        return results[0] if results else None

    def update(self, collection: str, doc_id: str, changes: dict) -> Optional[dict]:
        """Apply changes to a stored document; returns the new version."""
        current = self.get(collection, doc_id)
        if current is None:
            return None

        for key, value in changes.items():
            if key in _MERGED_FIELDS and isinstance(value, dict):
                merged = dict(current.get(key) or {})
                merged.update(value)
                current[key] = merged
            else:
                current[key] = value
        current["id"] = doc_id
        current["updated_at"] = datetime.utcnow().isoformat()

        self._execute(
            f"UPDATE {self._table(collection)} SET data = ? WHERE id = ?",
            (self._dump(current), doc_id),
            commit=True,
        )
        return current

    def delete_all(self, collection: str) -> int:
        """Remove every document in a collection; returns how many."""
        count = self.count(collection)
        self._execute(f"DELETE FROM {self._table(collection)}", commit=True)
        return count

    def count(self, collection: str, **filters: Any) -> int:
        return len(self.find(collection, **filters))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _cursor(self) -> sqlite3.Cursor:
        if self.conn is None:
            self.connect()
        return self.conn.cursor()

    def _execute(self, sql: str, params: tuple = (), commit: bool = False) -> list:
        cursor = self._cursor()
        try:
            cursor.execute(sql, params)
            rows = cursor.fetchall()
            if commit:
                self.conn.commit()
            return rows
        except sqlite3.Error as e:
            if commit:
                self.conn.rollback()
            logger.error(f"Database error: {e}")
            raise DatabaseError(str(e)) from e
        finally:
            cursor.close()

    @staticmethod
    def _table(collection: str) -> str:
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection}")
        return collection

    @staticmethod
    def _field(name: str) -> str:
        if not _FIELD_RE.match(name):
            raise ValueError(f"Invalid field name: {name}")
        return name

    @staticmethod
    def _dump(document: dict) -> str:
        return json.dumps(document, default=str)


def get_db() -> DatabaseManager:
    """Per-request database connection, opened on first use."""
    if 'db' not in g:
        g.db = DatabaseManager(current_app.config['TALENTTREK'].database_path)
        g.db.connect()
    return g.db


def close_db(e=None):
    db = g.pop('db', None)
    if db is not None:
        db.close()
