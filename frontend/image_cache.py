import logging
import os
import sqlite3
import threading
from datetime import datetime, timezone
from typing import List, Optional

logger = logging.getLogger(__name__)


class ImageCache:
    """Persistent key -> image handle store backed by a single SQLite table.

    Entries never expire; they are only replaced by ``set`` or removed by
    ``delete``/``clear``. One row per key.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        if path != ":memory:":
            directory = os.path.dirname(os.path.abspath(path))
            os.makedirs(directory, exist_ok=True)
        # Streamlit reruns the script on different threads
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._lock = threading.Lock()
        with self._lock, self._conn:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS image_cache (
                    key TEXT PRIMARY KEY,
                    handle TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            row = self._conn.execute("SELECT handle FROM image_cache WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, handle: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._lock, self._conn:
            self._conn.execute(
                """
                INSERT INTO image_cache (key, handle, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET handle = excluded.handle, updated_at = excluded.updated_at
                """,
                (key, handle, now),
            )
        logger.debug("Cached image under %s", key)

    def delete(self, key: str) -> bool:
        with self._lock, self._conn:
            cur = self._conn.execute("DELETE FROM image_cache WHERE key = ?", (key,))
        logger.debug("Deleted cache entry %s", key)
        return cur.rowcount > 0

    def clear(self) -> int:
        with self._lock, self._conn:
            cur = self._conn.execute("DELETE FROM image_cache")
        return cur.rowcount

    def keys(self) -> List[str]:
        with self._lock:
            rows = self._conn.execute("SELECT key FROM image_cache ORDER BY key").fetchall()
        return [r[0] for r in rows]

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        with self._lock:
            return self._conn.execute("SELECT COUNT(*) FROM image_cache").fetchone()[0]

    def close(self) -> None:
        self._conn.close()
