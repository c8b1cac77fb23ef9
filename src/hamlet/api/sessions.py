"""
Session manager for villages with SQLite persistence.

Each session wraps one VillageEngine. Hosts advance a session with
``tick`` and mutate it through the placement routes.

Saving is debounced: mutations mark the session dirty, and a dirty
session is written once ``autosave_ms`` of simulated time has passed
(or on ``flush``). Create, reset and delete are written immediately.
On startup only metadata is loaded; full state is restored lazily on
first access.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any

from hamlet.core.clock import IntervalTimer
from hamlet.core.config import VillageConfig
from hamlet.core.engine import VillageEngine, build_extensions

logger = logging.getLogger(__name__)


@dataclass
class VillageSession:
    """A live village and its bookkeeping."""

    id: str
    name: str
    config: VillageConfig
    engine: VillageEngine
    autosave: IntervalTimer
    dirty: bool = False
    ticks: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class SessionManager:
    """Manages multiple village sessions with optional SQLite persistence.

    Parameters
    ----------
    db_path : str | None
        Path to the SQLite database file. ``None`` disables persistence
        (pure in-memory mode). Default ``"data/hamlet.db"``.
    autosave_ms : float
        Simulated time between saves of a dirty session.
    """

    def __init__(
        self, db_path: str | None = "data/hamlet.db", autosave_ms: float = 5000.0,
    ):
        self.sessions: dict[str, VillageSession] = {}
        self.autosave_ms = autosave_ms

        # Metadata for villages persisted but not yet loaded into memory
        self._session_index: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

        self._store = None
        if db_path is not None:
            from hamlet.api.persistence import VillageStore
            self._store = VillageStore(db_path)
            self._load_index()

    def _load_index(self) -> None:
        """Populate _session_index from the database (metadata only)."""
        if self._store is None or not self._store.available:
            return
        for row in self._store.list_villages():
            vid = row["id"]
            if vid not in self.sessions:
                self._session_index[vid] = row

    def _new_session(
        self, session_id: str, name: str, config: VillageConfig, engine: VillageEngine,
    ) -> VillageSession:
        return VillageSession(
            id=session_id,
            name=name,
            config=config,
            engine=engine,
            autosave=IntervalTimer(self.autosave_ms, max_catchup=1),
        )

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------

    def _persist_session(self, session: VillageSession) -> None:
        """Save a session to the database (best-effort)."""
        if self._store is None or not self._store.available:
            session.dirty = False
            return
        try:
            from hamlet.api.persistence import build_state_blob

            engine = session.engine
            blob = build_state_blob(engine.snapshot())
            saved = self._store.save_village(
                village_id=session.id,
                name=session.name,
                budget=engine.budget,
                population=engine.population,
                item_count=len(engine.ledger),
                config=session.config,
                state_blob=blob,
            )
            if saved:
                session.dirty = False
                session.autosave.reset()
                self._session_index.pop(session.id, None)
        except Exception:
            logger.warning(
                "Failed to persist village %s", session.id, exc_info=True,
            )

    def _load_session_from_db(self, session_id: str) -> VillageSession | None:
        """Fully load a village from the database into memory."""
        if self._store is None or not self._store.available:
            return None
        try:
            from hamlet.api.persistence import restore_state

            record = self._store.load_village(session_id)
            if record is None:
                return None

            config = VillageConfig.from_json(record["config_json"])
            engine = VillageEngine(
                config, extensions=build_extensions(config), populate_map=False,
            )
            state = restore_state(record["state_blob"])
            if state is None:
                engine.reset()
            else:
                engine.restore(state)

            return self._new_session(record["id"], record["name"], config, engine)
        except Exception:
            logger.warning(
                "Failed to load village %s from database", session_id,
                exc_info=True,
            )
            return None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create_session(
        self,
        config: VillageConfig | None = None,
        name: str | None = None,
    ) -> VillageSession:
        """Create a new village with a freshly generated map."""
        if config is None:
            config = VillageConfig()

        session_id = uuid.uuid4().hex[:8]
        engine = VillageEngine(config, extensions=build_extensions(config))
        session = self._new_session(session_id, name or config.village_name, config, engine)

        with self._lock:
            self.sessions[session_id] = session
        self._persist_session(session)
        return session

    def get_session(self, session_id: str) -> VillageSession:
        """Get a session by ID. Lazy-loads from DB if needed.

        Raises KeyError if not found in memory or database.
        """
        with self._lock:
            if session_id in self.sessions:
                return self.sessions[session_id]

            if session_id in self._session_index or (
                self._store is not None and self._store.has_village(session_id)
            ):
                session = self._load_session_from_db(session_id)
                if session is not None:
                    self.sessions[session_id] = session
                    self._session_index.pop(session_id, None)
                    return session

        raise KeyError(f"Session '{session_id}' not found")

    def tick(self, session_id: str, delta_ms: float) -> dict[str, Any]:
        """Advance a village by ``delta_ms`` and autosave when due."""
        session = self.get_session(session_id)
        with session.lock:
            report = session.engine.tick(delta_ms)
            session.ticks += 1
            if report["intervals"] or report["deferred_applied"]:
                session.dirty = True
            due = session.autosave.advance(max(0.0, float(delta_ms)))
            if session.dirty and due:
                self._persist_session(session)
        return report

    def mark_dirty(self, session: VillageSession) -> None:
        session.dirty = True

    def reset_session(self, session_id: str) -> VillageSession:
        """Start a village over with a new map."""
        session = self.get_session(session_id)
        with session.lock:
            session.engine.reset()
            session.ticks = 0
            self._persist_session(session)
        return session

    def delete_session(self, session_id: str) -> None:
        """Delete a village from memory and database."""
        in_memory = session_id in self.sessions
        in_index = session_id in self._session_index
        in_db = self._store is not None and self._store.has_village(session_id)

        if not in_memory and not in_index and not in_db:
            raise KeyError(f"Session '{session_id}' not found")

        with self._lock:
            self.sessions.pop(session_id, None)
            self._session_index.pop(session_id, None)

        if self._store is not None:
            self._store.delete_village(session_id)

    def flush(self) -> int:
        """Save every dirty session now. Returns how many were written."""
        written = 0
        for session in list(self.sessions.values()):
            if session.dirty:
                with session.lock:
                    self._persist_session(session)
                if not session.dirty:
                    written += 1
        return written

    def list_sessions(self) -> list[dict[str, Any]]:
        """List all villages as summary dicts (in-memory + persisted)."""
        seen: set[str] = set()
        result: list[dict[str, Any]] = []

        for s in self.sessions.values():
            seen.add(s.id)
            result.append({
                "id": s.id,
                "name": s.name,
                "budget": float(s.engine.budget),
                "population": s.engine.population,
                "item_count": len(s.engine.ledger),
                "loaded": True,
            })

        for vid, meta in self._session_index.items():
            if vid not in seen:
                seen.add(vid)
                result.append({
                    "id": meta["id"],
                    "name": meta["name"],
                    "budget": meta["budget"],
                    "population": meta["population"],
                    "item_count": meta["item_count"],
                    "loaded": False,
                })

        return result

    def close(self) -> None:
        """Flush dirty sessions and close the store."""
        self.flush()
        if self._store is not None:
            self._store.close()
