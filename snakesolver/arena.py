"""
Local Battlesnake game engine for trying the solver offline.

Simulates the standard Battlesnake rules:
- (0,0) = bottom-left, 11x11 by default
- Health starts at 100, decreases by 1 per turn, and by 15 more in a hazard
- Eating food restores health to 100 and grows the snake
- Death on wall collision, body collision, starvation, or head-to-head
  with a longer/equal snake
- Under the "wrapped" ruleset, leaving one edge enters the opposite edge
- Last snake alive wins
"""

import copy
import random
from typing import Callable

from snakesolver.board import HAZARD_DAMAGE, MAX_HEALTH

MoveFunc = Callable[[dict], str]

DIRECTIONS = {
    "up": (0, 1),
    "down": (0, -1),
    "left": (-1, 0),
    "right": (1, 0),
}


def create_snake(snake_id: str, start_x: int, start_y: int) -> dict:
    """Create a new snake stacked on a single cell, as the official rules do."""
    head = {"x": start_x, "y": start_y}
    return {
        "id": snake_id,
        "name": snake_id,
        "head": dict(head),
        "body": [dict(head), dict(head), dict(head)],
        "health": MAX_HEALTH,
        "length": 3,
        "shout": "",
    }


def spawn_food(board: dict, rng: random.Random, count: int = 1) -> None:
    """Spawn food on squares free of snakes, food and hazards."""
    occupied = {(c["x"], c["y"]) for s in board["snakes"] for c in s["body"]}
    occupied |= {(f["x"], f["y"]) for f in board["food"]}
    occupied |= {(h["x"], h["y"]) for h in board["hazards"]}

    free = [(x, y) for x in range(board["width"]) for y in range(board["height"])
            if (x, y) not in occupied]
    for _ in range(min(count, len(free))):
        pos = rng.choice(free)
        free.remove(pos)
        board["food"].append({"x": pos[0], "y": pos[1]})


def make_game_state(board: dict, snake: dict, turn: int, ruleset: str) -> dict:
    """Build the /move request body a snake would receive."""
    return {
        "game": {"id": "local-test", "ruleset": {"name": ruleset, "version": "local"}, "timeout": 500},
        "turn": turn,
        "you": copy.deepcopy(snake),
        "board": copy.deepcopy(board),
    }


def _step_head(snake: dict, move: str, board: dict, wrapped: bool) -> dict:
    dx, dy = DIRECTIONS[move]
    x, y = snake["head"]["x"] + dx, snake["head"]["y"] + dy
    if wrapped:
        x %= board["width"]
        y %= board["height"]
    return {"x": x, "y": y}


def run_game(
    strategies: dict[str, MoveFunc],
    width: int = 11,
    height: int = 11,
    ruleset: str = "standard",
    hazards: list[dict] | None = None,
    max_turns: int = 500,
    seed: int | None = None,
    food_spawn_chance: float = 0.15,
    initial_food: int = 1,
    verbose: bool = False,
) -> dict:
    """
    Run a full Battlesnake game.

    Args:
        strategies: dict mapping snake_id -> decide_move function
        width, height: board dimensions
        ruleset: ruleset name sent to the snakes; "wrapped" wraps the edges
        hazards: fixed hazard cells for the whole game
        max_turns: turn limit
        seed: random seed for reproducibility
        food_spawn_chance: probability of spawning food each turn
        initial_food: number of food to spawn at start besides the center
        verbose: print turn-by-turn state

    Returns:
        dict with winner, turns, death_reasons, turn_log, final_snakes
    """
    rng = random.Random(seed)
    wrapped = ruleset == "wrapped"

    spawn_points = [
        (1, 1), (width - 2, height - 2),
        (1, height - 2), (width - 2, 1),
        (width // 2, 1), (width // 2, height - 2),
        (1, height // 2), (width - 2, height // 2),
    ]

    board = {
        "width": width,
        "height": height,
        "snakes": [],
        "food": [],
        "hazards": [dict(h) for h in hazards or []],
    }
    hazard_cells = {(h["x"], h["y"]) for h in board["hazards"]}

    for i, sid in enumerate(strategies):
        sp = spawn_points[i % len(spawn_points)]
        board["snakes"].append(create_snake(sid, sp[0], sp[1]))

    center = (width // 2, height // 2)
    if center not in hazard_cells:
        board["food"].append({"x": center[0], "y": center[1]})
    spawn_food(board, rng, initial_food)

    death_reasons = {}
    turn_log = []
    # a single-snake game runs until that snake dies
    min_alive = 0 if len(strategies) == 1 else 1

    for turn in range(max_turns):
        alive_snakes = list(board["snakes"])
        if len(alive_snakes) <= min_alive:
            break

        moves = {}
        for snake in alive_snakes:
            state = make_game_state(board, snake, turn, ruleset)
            try:
                move = strategies[snake["id"]](state)
                if move not in DIRECTIONS:
                    move = "up"
            except Exception as e:
                if verbose:
                    print(f"  [{snake['id']}] error: {e}")
                move = "up"
            moves[snake["id"]] = move

        if verbose:
            print(f"Turn {turn}: {moves}")

        # Move heads, reduce health
        for snake in alive_snakes:
            new_head = _step_head(snake, moves[snake["id"]], board, wrapped)
            snake["body"].insert(0, new_head)
            snake["head"] = dict(new_head)
            snake["health"] -= 1
            if (new_head["x"], new_head["y"]) in hazard_cells:
                snake["health"] -= HAZARD_DAMAGE

        # Feed, or drop the tail
        eaten = set()
        for snake in alive_snakes:
            hx, hy = snake["head"]["x"], snake["head"]["y"]
            for i, f in enumerate(board["food"]):
                if f["x"] == hx and f["y"] == hy:
                    snake["health"] = MAX_HEALTH
                    snake["length"] += 1
                    eaten.add(i)
                    break
            else:
                snake["body"].pop()
        board["food"] = [f for i, f in enumerate(board["food"]) if i not in eaten]

        # Deaths
        for snake in alive_snakes:
            hx, hy = snake["head"]["x"], snake["head"]["y"]
            if not (0 <= hx < width and 0 <= hy < height):
                death_reasons[snake["id"]] = f"wall collision (turn {turn})"
            elif snake["health"] <= 0:
                death_reasons[snake["id"]] = f"starvation (turn {turn})"

        for snake in alive_snakes:
            if snake["id"] in death_reasons:
                continue
            hx, hy = snake["head"]["x"], snake["head"]["y"]
            for other in alive_snakes:
                # skip heads, those are settled below
                if any(seg["x"] == hx and seg["y"] == hy for seg in other["body"][1:]):
                    death_reasons[snake["id"]] = f"body collision with {other['id']} (turn {turn})"
                    break

        head_positions = {}
        for snake in alive_snakes:
            if snake["id"] in death_reasons:
                continue
            pos = (snake["head"]["x"], snake["head"]["y"])
            head_positions.setdefault(pos, []).append(snake)

        for snakes_at_pos in head_positions.values():
            if len(snakes_at_pos) < 2:
                continue
            max_len = max(s["length"] for s in snakes_at_pos)
            longest = [s for s in snakes_at_pos if s["length"] == max_len]
            for snake in snakes_at_pos:
                if snake["length"] < max_len:
                    death_reasons[snake["id"]] = f"head-to-head loss vs longer snake (turn {turn})"
                elif len(longest) > 1:
                    death_reasons[snake["id"]] = f"head-to-head tie (turn {turn})"

        board["snakes"] = [s for s in board["snakes"] if s["id"] not in death_reasons]

        if eaten or rng.random() < food_spawn_chance:
            spawn_food(board, rng, 1)

        turn_log.append({
            "turn": turn,
            "moves": dict(moves),
            "alive": [s["id"] for s in board["snakes"]],
            "deaths": {k: v for k, v in death_reasons.items() if v.endswith(f"(turn {turn})")},
        })

    alive = board["snakes"]
    if len(alive) == 1:
        winner = alive[0]["id"]
    elif len(alive) > 1:
        # Longest snake wins on timeout
        winner = max(alive, key=lambda s: s["length"])["id"]
    else:
        winner = None

    return {
        "winner": winner,
        "turns": len(turn_log),
        "death_reasons": death_reasons,
        "turn_log": turn_log,
        "final_snakes": {s["id"]: {"length": s["length"], "health": s["health"]} for s in alive},
    }


def run_match(
    strategies: dict[str, MoveFunc],
    games: int = 5,
    seed_base: int | None = None,
    verbose: bool = False,
    **kwargs,
) -> dict:
    """
    Run a best-of-N match between strategies.

    Returns dict with per-strategy win counts, game results, and match winner.
    """
    wins = {sid: 0 for sid in strategies}
    results = []

    for i in range(games):
        seed = (seed_base + i) if seed_base is not None else None
        result = run_game(strategies, seed=seed, verbose=verbose, **kwargs)
        results.append(result)
        if result["winner"]:
            wins[result["winner"]] += 1

    match_winner = max(wins, key=wins.get) if any(wins.values()) else None
    return {
        "match_winner": match_winner,
        "wins": wins,
        "games": results,
        "total_games": games,
    }


# ── Reference opponent ────────────────────────────────────────────

def random_valid(data: dict, rng: random.Random | None = None) -> str:
    """Random move that avoids walls and every snake body."""
    head = data["you"]["head"]
    body_set = {(seg["x"], seg["y"]) for s in data["board"]["snakes"] for seg in s["body"]}
    w, h = data["board"]["width"], data["board"]["height"]
    wrapped = data.get("game", {}).get("ruleset", {}).get("name") == "wrapped"

    safe = []
    for move, (dx, dy) in DIRECTIONS.items():
        x, y = head["x"] + dx, head["y"] + dy
        if wrapped:
            x, y = x % w, y % h
        if 0 <= x < w and 0 <= y < h and (x, y) not in body_set:
            safe.append(move)

    return (rng or random).choice(safe) if safe else "up"


def make_random_valid(rng: random.Random | None = None) -> MoveFunc:
    return lambda data: random_valid(data, rng)


# name -> factory taking the generator the opponent should draw from
OPPONENTS: dict[str, Callable[[random.Random | None], MoveFunc]] = {
    "random-valid": make_random_valid,
}
