# arbsim/store.py
import json
import os
import sqlite3
from typing import Any, List, Tuple

SCHEMA = """
CREATE TABLE IF NOT EXISTS orderbooks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date TEXT NOT NULL,
    name TEXT NOT NULL,
    data TEXT NOT NULL
)
"""

class OrderbookStore:
    """
    Raw orderbook payloads as collected, one row per venue per collection date.
    Payloads are stored verbatim (JSON text) and normalized on read.
    """
    def __init__(self, db_path: str):
        self.db_path = db_path
        directory = os.path.dirname(db_path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory, exist_ok=True)
        # inserts may run on a worker thread (one at a time)
        self.con = sqlite3.connect(db_path, check_same_thread=False)
        self.con.execute(SCHEMA)
        self.con.commit()

    def __enter__(self) -> "OrderbookStore":
        return self

    def __exit__(self, *exc):
        self.close()

    def insert(self, date: str, name: str, payload: Any) -> int:
        cur = self.con.execute(
            "INSERT INTO orderbooks (date, name, data) VALUES (?, ?, ?)",
            (date, name, json.dumps(payload)),
        )
        self.con.commit()
        return cur.lastrowid

    def rows(self) -> List[Tuple[str, str, str]]:
        """(date, name, data) rows, oldest first."""
        cur = self.con.execute("SELECT date, name, data FROM orderbooks ORDER BY date ASC, id ASC")
        return cur.fetchall()

    def venues(self) -> List[str]:
        cur = self.con.execute("SELECT DISTINCT name FROM orderbooks ORDER BY name ASC")
        return [name for (name,) in cur.fetchall()]

    def close(self):
        self.con.close()
