"""
Command line entry point.

Usage:
    snakesolver serve                          # Battlesnake server on :8080
    snakesolver serve --port 9000 --output-path ./games
    snakesolver play                           # best-of-5 vs random-valid
    snakesolver play --games 10 --seed 42      # reproducible games
    snakesolver play --ruleset wrapped --verbose
"""

import argparse
import logging
import random
import signal
import sys
import threading
import time

from snakesolver.arena import OPPONENTS, run_match
from snakesolver.board import RULESETS
from snakesolver.config import LOG_LEVELS, Config, ConfigError
from snakesolver.log import setup_logging
from snakesolver.recorder import make_recorder
from snakesolver.server import make_server
from snakesolver.solver import decide_move

logger = logging.getLogger(__name__)

SOLVER_ID = "snakesolver"


# ── serve ─────────────────────────────────────────────────────────

def serve(cfg: Config) -> int:
    setup_logging(cfg.log_level)
    recorder = make_recorder(cfg.output_path, cfg.prune_interval, cfg.max_age)
    server = make_server(cfg.host, cfg.port, cfg.solve, recorder)

    stop = threading.Event()

    def on_signal(signum, frame):
        logger.info("received signal", extra={"signal": signal.Signals(signum).name})
        stop.set()

    signal.signal(signal.SIGINT, on_signal)
    signal.signal(signal.SIGTERM, on_signal)

    worker = threading.Thread(target=server.serve_forever, name="http", daemon=True)
    logger.info("starting battlesnake server", extra={"addr": f"{cfg.host}:{server.server_port}"})
    worker.start()
    stop.wait()

    logger.info("stopping battlesnake server")
    server.shutdown()
    server.server_close()
    recorder.shutdown()
    return 0


# ── play ──────────────────────────────────────────────────────────

def print_match_result(opponent_name: str, result: dict) -> tuple[int, int]:
    my_wins = result["wins"].get(SOLVER_ID, 0)
    opp_wins = result["wins"].get(opponent_name, 0)

    if my_wins > opp_wins:
        status = "WIN"
    elif my_wins < opp_wins:
        status = "LOSS"
    else:
        status = "DRAW"

    print(f"\n  vs {opponent_name}")
    print(f"  {status}  {SOLVER_ID} {my_wins} - {opp_wins} {opponent_name}  ({result['total_games']} games)")
    for i, game in enumerate(result["games"]):
        winner = game["winner"] or "draw"
        deaths = "".join(f" [{sid}: {reason}]" for sid, reason in game["death_reasons"].items())
        print(f"    Game {i+1}: winner={winner:20s} turns={game['turns']:4d}{deaths}")
    return my_wins, opp_wins


def play(cfg: Config, games: int, seed: int | None, ruleset: str, verbose: bool) -> int:
    # both snakes draw from one seeded generator, so a seed replays exactly
    rng = random.Random(seed)

    def solver_move(data: dict) -> str:
        return decide_move(data, cfg.solve, rng)

    print("=" * 65)
    print(f"  SNAKE SOLVER - local arena ({ruleset}, best-of-{games})")
    print("=" * 65)

    total_mine = total_theirs = 0
    for opp_name, make_opponent in OPPONENTS.items():
        start = time.time()
        result = run_match(
            {SOLVER_ID: solver_move, opp_name: make_opponent(rng)},
            games=games,
            seed_base=seed,
            verbose=verbose,
            ruleset=ruleset,
        )
        mine, theirs = print_match_result(opp_name, result)
        total_mine += mine
        total_theirs += theirs
        print(f"  Time: {time.time() - start:.1f}s")

    print(f"\n  Overall: {total_mine} - {total_theirs}")
    return 0


# ── Main ──────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="snakesolver", description="Battlesnake move solver")
    sub = parser.add_subparsers(dest="command", required=True)

    p_serve = sub.add_parser("serve", help="Run the Battlesnake HTTP server")
    p_serve.add_argument("--host", type=str, default=None, help="Bind address (env BATTLESNAKE_HOST)")
    p_serve.add_argument("--port", type=int, default=None, help="Port (env BATTLESNAKE_PORT)")
    p_serve.add_argument("--output-path", type=str, default=None,
                         help="Directory for game archives, '-' for stdout (env RECORDER_OUTPUT_PATH)")
    p_serve.add_argument("--log-level", type=str.upper, default=None, choices=LOG_LEVELS,
                         help="Log level (env LOG_LEVEL)")

    p_play = sub.add_parser("play", help="Play local games against reference opponents")
    p_play.add_argument("--games", type=int, default=5, help="Games per match (default: 5)")
    p_play.add_argument("--seed", type=int, default=None, help="Random seed")
    p_play.add_argument("--ruleset", type=str, default="standard",
                        choices=RULESETS)
    p_play.add_argument("--verbose", "-v", action="store_true", help="Turn-by-turn output")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        cfg = Config.from_env()
    except ConfigError as e:
        print(f"  ERROR: {e}", file=sys.stderr)
        return 2

    if args.command == "serve":
        if args.host is not None:
            cfg.host = args.host
        if args.port is not None:
            cfg.port = args.port
        if args.output_path is not None:
            cfg.output_path = args.output_path
        if args.log_level is not None:
            cfg.log_level = args.log_level
        return serve(cfg)
    return play(cfg, args.games, args.seed, args.ruleset, args.verbose)


if __name__ == "__main__":
    sys.exit(main())
