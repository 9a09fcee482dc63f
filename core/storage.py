# core/storage.py
import datetime
import json
import os
import sqlite3
import uuid
from typing import Any, Dict, List, Tuple

import pytz

from .errors import StoreError
from .logger import get_logger

logger = get_logger(__name__)


def now_utc_iso() -> str:
    return datetime.datetime.now(tz=pytz.UTC).isoformat()


class SqliteCollection:
    """
    A document collection kept in a local SQLite file. Documents are JSON
    objects stored under generated ids, mirroring the remote store's
    add/list/delete surface.
    """

    def __init__(self, db_path: str, collection: str = "games"):
        self.db_path = db_path
        self.collection = collection
        self.ensure_db()

    def _connect(self):
        parent = os.path.dirname(self.db_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        return sqlite3.connect(self.db_path)

    def ensure_db(self):
        try:
            with self._connect() as con:
                cur = con.cursor()
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS documents (
                        collection TEXT,
                        doc_id TEXT,
                        fields TEXT,
                        created TEXT,
                        PRIMARY KEY (collection, doc_id)
                    )
                """
                )
                con.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open document store at {self.db_path}: {e}") from e

    def add(self, fields: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        try:
            with self._connect() as con:
                con.execute(
                    "INSERT INTO documents (collection, doc_id, fields, created) VALUES (?,?,?,?)",
                    (self.collection, doc_id, json.dumps(fields), now_utc_iso()),
                )
                con.commit()
        except (sqlite3.Error, TypeError, ValueError) as e:
            raise StoreError(f"Failed to add document to {self.collection}: {e}") from e
        return doc_id

    def list(self) -> List[Tuple[str, Dict[str, Any]]]:
        try:
            with self._connect() as con:
                cur = con.cursor()
                cur.execute(
                    "SELECT doc_id, fields FROM documents WHERE collection=? ORDER BY created, rowid",
                    (self.collection,),
                )
                rows = cur.fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to list {self.collection}: {e}") from e

        out: List[Tuple[str, Dict[str, Any]]] = []
        for doc_id, raw in rows:
            try:
                out.append((doc_id, json.loads(raw)))
            except ValueError:
                logger.warning("Skipping undecodable document %s in %s", doc_id, self.collection)
        return out

    def delete(self, doc_id: str) -> None:
        try:
            with self._connect() as con:
                con.execute(
                    "DELETE FROM documents WHERE collection=? AND doc_id=?",
                    (self.collection, doc_id),
                )
                con.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to delete {self.collection}/{doc_id}: {e}") from e
