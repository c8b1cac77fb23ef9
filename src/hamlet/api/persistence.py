"""
SQLite-backed village persistence for Hamlet.

Stores village metadata in columns for fast listing, and the engine
snapshot (placed items, economy, cycle tick) as a zlib-compressed JSON
blob. Lazy loading: only metadata is read on startup; the snapshot is
decoded on demand.

Persistence failures are logged as warnings and never crash the app.
The system degrades gracefully to in-memory-only operation.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import zlib
from datetime import datetime, timezone
from typing import Any

import numpy as np

from hamlet.core.catalog import ItemKind
from hamlet.core.config import VillageConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# JSON helpers
# ---------------------------------------------------------------------------

def _json_fallback(obj: Any) -> Any:
    """Handle numpy types and enums that json cannot encode."""
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, ItemKind):
        return obj.value
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


# ---------------------------------------------------------------------------
# State blob compress / decompress
# ---------------------------------------------------------------------------

def compress_state(state: dict[str, Any]) -> bytes:
    """Serialize state dict to zlib-compressed JSON bytes."""
    json_bytes = json.dumps(state, default=_json_fallback).encode("utf-8")
    return zlib.compress(json_bytes, level=6)


def decompress_state(blob: bytes) -> dict[str, Any]:
    """Decompress zlib blob and parse JSON."""
    json_bytes = zlib.decompress(blob)
    return json.loads(json_bytes.decode("utf-8"))


def build_state_blob(snapshot: dict[str, Any]) -> bytes:
    """Compress an engine snapshot for storage."""
    return compress_state(snapshot)


def restore_state(blob: bytes | None) -> dict[str, Any] | None:
    """Decode a stored snapshot.

    Returns ``None`` (after logging a warning) when the blob is missing
    or corrupt, so the caller can fall back to a fresh village.
    """
    if blob is None:
        return None
    try:
        state = decompress_state(blob)
    except (zlib.error, UnicodeDecodeError, ValueError):
        logger.warning("Corrupt village state blob, ignoring it", exc_info=True)
        return None
    if not isinstance(state, dict):
        logger.warning("Village state blob is not a mapping, ignoring it")
        return None
    return state


# ---------------------------------------------------------------------------
# SQLite VillageStore
# ---------------------------------------------------------------------------

_SCHEMA = """
CREATE TABLE IF NOT EXISTS villages (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    budget REAL NOT NULL DEFAULT 0,
    population INTEGER NOT NULL DEFAULT 0,
    item_count INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    config_json TEXT NOT NULL,
    state_blob BLOB
);
"""


class VillageStore:
    """SQLite-backed storage for villages.

    Thread-safety: uses ``check_same_thread=False`` so FastAPI's
    thread pool can access it. Writes are serialized by SQLite's
    internal locking.
    """

    def __init__(self, db_path: str = "data/hamlet.db"):
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._init_db()

    def _init_db(self) -> None:
        """Open connection and create table if needed."""
        try:
            self._conn = sqlite3.connect(
                self.db_path, check_same_thread=False,
            )
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute(_SCHEMA)
            self._conn.commit()
        except Exception:
            logger.warning(
                "Failed to open SQLite database at %s, "
                "falling back to in-memory only",
                self.db_path,
                exc_info=True,
            )
            self._conn = None

    @property
    def available(self) -> bool:
        """True if the database connection is open."""
        return self._conn is not None

    # ---- Write operations ----

    def save_village(
        self,
        village_id: str,
        name: str,
        budget: float,
        population: int,
        item_count: int,
        config: VillageConfig,
        state_blob: bytes,
    ) -> bool:
        """Insert or replace a full village record. Returns success."""
        if not self.available:
            return False
        now = datetime.now(timezone.utc).isoformat()
        try:
            self._conn.execute(  # type: ignore[union-attr]
                """
                INSERT INTO villages
                    (id, name, budget, population, item_count,
                     created_at, updated_at, config_json, state_blob)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    budget = excluded.budget,
                    population = excluded.population,
                    item_count = excluded.item_count,
                    updated_at = excluded.updated_at,
                    config_json = excluded.config_json,
                    state_blob = excluded.state_blob
                """,
                (
                    village_id, name,
                    float(budget), int(population), int(item_count),
                    now, now,
                    config.to_json(),
                    state_blob,
                ),
            )
            self._conn.commit()  # type: ignore[union-attr]
            return True
        except Exception:
            logger.warning(
                "Failed to save village %s to database", village_id,
                exc_info=True,
            )
            return False

    def delete_village(self, village_id: str) -> None:
        """Remove a village from the database."""
        if not self.available:
            return
        try:
            self._conn.execute(  # type: ignore[union-attr]
                "DELETE FROM villages WHERE id = ?", (village_id,),
            )
            self._conn.commit()  # type: ignore[union-attr]
        except Exception:
            logger.warning(
                "Failed to delete village %s from database", village_id,
                exc_info=True,
            )

    # ---- Read operations ----

    def list_villages(self) -> list[dict[str, Any]]:
        """Return metadata for all persisted villages (no state blob)."""
        if not self.available:
            return []
        try:
            cur = self._conn.execute(  # type: ignore[union-attr]
                """
                SELECT id, name, budget, population, item_count,
                       created_at, updated_at
                FROM villages
                ORDER BY created_at DESC
                """,
            )
            return [
                {
                    "id": r[0],
                    "name": r[1],
                    "budget": r[2],
                    "population": r[3],
                    "item_count": r[4],
                    "created_at": r[5],
                    "updated_at": r[6],
                }
                for r in cur.fetchall()
            ]
        except Exception:
            logger.warning("Failed to list villages from database", exc_info=True)
            return []

    def load_village(self, village_id: str) -> dict[str, Any] | None:
        """Load a full village record (metadata + config + state blob).

        Returns ``None`` if not found or on error.
        """
        if not self.available:
            return None
        try:
            cur = self._conn.execute(  # type: ignore[union-attr]
                """
                SELECT id, name, budget, population, item_count,
                       config_json, state_blob
                FROM villages WHERE id = ?
                """,
                (village_id,),
            )
            row = cur.fetchone()
            if row is None:
                return None
            return {
                "id": row[0],
                "name": row[1],
                "budget": row[2],
                "population": row[3],
                "item_count": row[4],
                "config_json": row[5],
                "state_blob": row[6],
            }
        except Exception:
            logger.warning(
                "Failed to load village %s from database", village_id,
                exc_info=True,
            )
            return None

    def has_village(self, village_id: str) -> bool:
        """Check if a village exists in the database."""
        if not self.available:
            return False
        try:
            cur = self._conn.execute(  # type: ignore[union-attr]
                "SELECT 1 FROM villages WHERE id = ?", (village_id,),
            )
            return cur.fetchone() is not None
        except Exception:
            logger.warning(
                "Failed to look up village %s", village_id, exc_info=True,
            )
            return False

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
