from __future__ import annotations

import threading
import uuid
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from ...engine.game import Game


class InMemorySessionStore:
    """Thread-safe in-memory game session store.

    Each game also gets its own lock so a long computer search on one game
    does not block requests for the others.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._games: Dict[str, Game] = {}
        self._game_locks: Dict[str, threading.Lock] = {}

    def create(self, game: Game) -> str:
        """Store ``game`` under a fresh id and return the id."""
        gid = str(uuid.uuid4())
        with self._lock:
            self._games[gid] = game
            self._game_locks[gid] = threading.Lock()
        return gid

    def get(self, game_id: str) -> Optional[Game]:
        with self._lock:
            return self._games.get(game_id)

    def set(self, game_id: str, game: Game) -> None:
        with self._lock:
            if game_id not in self._games:
                raise KeyError(game_id)
            self._games[game_id] = game

    def delete(self, game_id: str) -> None:
        with self._lock:
            self._games.pop(game_id, None)
            self._game_locks.pop(game_id, None)

    @contextmanager
    def locked(self, game_id: str) -> Iterator[Optional[Game]]:
        """Hold the per-game lock while yielding the game (``None`` if unknown)."""
        with self._lock:
            game_lock = self._game_locks.get(game_id)
        if game_lock is None:
            yield None
            return
        with game_lock:
            yield self.get(game_id)
