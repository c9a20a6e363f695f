"""
Battlesnake API v1 server.

    GET  /       snake info
    POST /start  game begins
    POST /move   choose a move, must answer within the game timeout
    POST /end    game over

Each request is handled on its own thread; the solver keeps no state
between calls, so games never interfere with one another.
"""

import json
import logging
import random
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from snakesolver.board import GameState
from snakesolver.recorder import INVALID_DECISION, GameRecorder, NoopRecorder
from snakesolver.solver import SolveOptions, Solver

logger = logging.getLogger(__name__)

SNAKE_INFO = {
    "apiversion": "1",
    "author": "snakesolver",
    "color": "#238270",
    "head": "silly",
    "tail": "coffee",
}


class BadRequest(Exception):
    pass


class Handler(BaseHTTPRequestHandler):
    options: SolveOptions = SolveOptions()
    recorder: GameRecorder = NoopRecorder()
    rng: random.Random | None = None

    def do_GET(self):
        if self.path != "/":
            self._reply(404, {"error": "not found"})
            return
        self._reply(200, SNAKE_INFO)

    def do_POST(self):
        routes = {"/start": self.start, "/move": self.move, "/end": self.end}
        route = routes.get(self.path)
        if route is None:
            self._reply(404, {"error": "not found"})
            return
        try:
            state = self._read_state()
        except BadRequest as e:
            logger.error("bad request", extra={"path": self.path, "err": str(e)})
            self._reply(400, {"error": str(e)})
            return
        self._reply(200, route(state))

    # ── Routes ────────────────────────────────────────────────────

    def start(self, state: GameState) -> dict:
        try:
            self.recorder.start(state)
        except Exception:
            logger.exception("failed to record game start", extra={"game": state.game.id})
        logger.info("starting game", extra={"game": state.game.id})
        return {}

    def move(self, state: GameState) -> dict:
        started = time.perf_counter()
        decision = Solver(state, self.options, self.rng).decide()
        move = decision.direction.value
        if decision.fell_back:
            logger.info("no possible move, falling back", extra={
                "game": state.game.id,
                "turn": state.turn,
                "board": state.board.to_dict(),
            })

        try:
            self.recorder.move(state, INVALID_DECISION if decision.fell_back else move)
        except Exception:
            logger.exception("failed to record game move", extra={
                "game": state.game.id, "turn": state.turn, "move": move,
            })

        logger.info("responding with move", extra={
            "game": state.game.id,
            "turn": state.turn,
            "move": move,
            "elapsed_ms": round((time.perf_counter() - started) * 1000, 2),
        })
        resp = {"move": move}
        if decision.shout:
            resp["shout"] = decision.shout
        return resp

    def end(self, state: GameState) -> dict:
        try:
            self.recorder.end(state)
        except Exception:
            logger.exception("failed recording game end", extra={"game": state.game.id})
        logger.info("ending game", extra={"game": state.game.id})
        return {}

    # ── Plumbing ──────────────────────────────────────────────────

    def _read_state(self) -> GameState:
        try:
            length = int(self.headers.get("Content-Length", 0))
            body = json.loads(self.rfile.read(length) if length > 0 else b"")
        except ValueError as e:
            raise BadRequest(f"invalid JSON: {e}") from e
        try:
            return GameState.from_request(body)
        except ValueError as e:
            raise BadRequest(str(e)) from e

    def _reply(self, status: int, payload: dict):
        data = json.dumps(payload).encode()
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def log_message(self, format, *args):
        logger.debug(format % args, extra={"client": self.client_address[0]})


def make_server(host: str, port: int, options: SolveOptions | None = None,
                recorder: GameRecorder | None = None,
                rng: random.Random | None = None) -> ThreadingHTTPServer:
    """Build a server bound to (host, port). Port 0 picks a free port."""
    handler = type("BoundHandler", (Handler,), {
        "options": options or SolveOptions(),
        "recorder": recorder or NoopRecorder(),
        "rng": rng,
    })
    server = ThreadingHTTPServer((host, port), handler)
    server.daemon_threads = True
    return server
