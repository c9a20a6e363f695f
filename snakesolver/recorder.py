"""
Game recorders: keep a log of every decision made during a game.

`FileArchive` holds games in memory while they run and writes each one to
a gzipped JSON file when it ends. Games that never get an /end request are
dropped by a background sweep once they are older than `max_age`.
"""

import gzip
import json
import logging
import os
import threading
import time
from datetime import datetime, timezone

from snakesolver.board import GameState

logger = logging.getLogger(__name__)

INVALID_DECISION = "invalid"
END_DECISION = "end"


class RecorderError(Exception):
    pass


class GameRecorder:
    """Interface for recording games. The base class records nothing."""

    def start(self, state: GameState) -> None:
        pass

    def move(self, state: GameState, move: str) -> None:
        pass

    def end(self, state: GameState) -> None:
        pass

    def shutdown(self) -> None:
        pass


class NoopRecorder(GameRecorder):
    pass


class StdoutRecorder(GameRecorder):
    def start(self, state: GameState) -> None:
        print(f"START: {json.dumps(state.to_dict(), indent=2)}\n", flush=True)

    def move(self, state: GameState, move: str) -> None:
        print(f"MOVE: {json.dumps(state.to_dict(), indent=2)}, responded with '{move}'", flush=True)

    def end(self, state: GameState) -> None:
        print(f"END: {json.dumps(state.to_dict(), indent=2)}", flush=True)


def game_key(state: GameState) -> str:
    return f"{state.game.id}:{state.you.id}"


def _iso(ts: float | None) -> str | None:
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, timezone.utc).isoformat()


class FileArchive(GameRecorder):
    def __init__(self, base_path: str, prune_interval: float = 60.0, max_age: float = 120.0,
                 autostart: bool = True):
        self.base_path = base_path
        self.prune_interval = prune_interval
        self.max_age = max_age
        self._games: dict[str, dict] = {}
        self._lock = threading.Lock()
        self._quit = threading.Event()
        self._thread = None
        if autostart:
            self._thread = threading.Thread(target=self._prune_loop, name="archive-prune", daemon=True)
            self._thread.start()

    def _prune_loop(self) -> None:
        while not self._quit.wait(self.prune_interval):
            self.prune()

    def prune(self, now: float | None = None) -> list[str]:
        """Drop games whose expiry has passed. Returns the dropped keys."""
        now = time.time() if now is None else now
        with self._lock:
            expired = [k for k, g in self._games.items() if g["expiration"] <= now]
            for k in expired:
                del self._games[k]
        if expired:
            logger.info("pruned stale games", extra={"count": len(expired)})
        return expired

    def _new_game(self, state: GameState) -> dict:
        now = time.time()
        return {
            "game": state.game.to_dict(),
            "states": [],
            "startedAt": now,
            "endedAt": None,
            "won": False,
            "expiration": now + self.max_age,
        }

    def start(self, state: GameState) -> None:
        with self._lock:
            self._games[game_key(state)] = self._new_game(state)

    def move(self, state: GameState, move: str) -> None:
        key = game_key(state)
        with self._lock:
            g = self._games.get(key)
            if g is None:
                # a /move can arrive without a /start
                g = self._games[key] = self._new_game(state)
            g["states"].append({"state": state.to_board_state(), "decision": move})

    def end(self, state: GameState) -> None:
        key = game_key(state)
        with self._lock:
            g = self._games.pop(key, None)
        if g is None:
            raise RecorderError(f"unknown game {key}")

        g["endedAt"] = time.time()
        g["states"].append({"state": state.to_board_state(), "decision": END_DECISION})
        g["won"] = did_win(g, state)
        path = os.path.join(self.base_path, archive_name(g["endedAt"], state))
        write_archive(path, g)
        logger.info("archived game", extra={"game": state.game.id, "path": path})

    def shutdown(self) -> None:
        self._quit.set()
        if self._thread is not None:
            self._thread.join(timeout=self.prune_interval + 1)

    def __len__(self) -> int:
        with self._lock:
            return len(self._games)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._games


def did_win(g: dict, end_state: GameState) -> bool:
    """Still alive at the end, and never had to fall back to a random move."""
    alive = end_state.you.is_valid(end_state.board, end_state.ruleset)
    return alive and all(d["decision"] != INVALID_DECISION for d in g["states"])


def archive_name(ended: float, state: GameState) -> str:
    stamp = datetime.fromtimestamp(ended, timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    snake = state.you.name or state.you.id
    return f"{stamp}_game={state.game.id}_type={state.ruleset.name}_snake={snake}.json.gz"


def write_archive(path: str, g: dict) -> None:
    record = {
        "game": g["game"],
        "states": g["states"],
        "startedAt": _iso(g["startedAt"]),
        "endedAt": _iso(g["endedAt"]),
        "won": g["won"],
    }
    with gzip.open(path, "wt", encoding="utf-8") as f:
        json.dump(record, f, indent=2)


def make_recorder(output_path: str, prune_interval: float, max_age: float) -> GameRecorder:
    if output_path == "-":
        return StdoutRecorder()
    if not output_path:
        return NoopRecorder()
    os.makedirs(output_path, exist_ok=True)
    return FileArchive(output_path, prune_interval, max_age)
