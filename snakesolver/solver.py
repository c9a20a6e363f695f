"""
Move decision for one snake on one turn.

The pipeline is a single greedy pass:

    candidates -> eliminate threats -> lookahead -> score -> pick

There is no multi-ply search. The lookahead only asks whether our own
snake would still have a move after taking a candidate; it does not
re-run threat elimination against the opponents.
"""

import random
from dataclasses import dataclass

from snakesolver.board import GameState, NoPossibleMove, Snake
from snakesolver.coord import ALL_DIRECTIONS, Coord, Direction, eliminate

# Shared by concurrent calls unless a caller injects its own.
_rng = random.Random()

NEGATIVE_SHOUTS = (
    "oh crap",
    "bummer",
    "ouch",
    "whoops",
    "dangit",
    "good game",
    "sayonara",
    "eeeks",
)

NEUTRAL_SHOUTS = (
    "here we go!",
    "i'm coming for you",
    "da dun dun dun",
    "whee!",
    "has anyone seen my coffee?",
    "choo-choo!",
)

NEUTRAL_SHOUT_CHANCE = 0.05


@dataclass(frozen=True)
class SolveOptions:
    lookahead: bool = True
    consider_opponent_next_move: bool = True
    use_single_best_option: bool = False
    food_reward: int = 20
    hazard_penalty: int = 40
    sated_health: int = 70
    starving_health: int = 30
    confidence_margin: float = 4
    body_window: int = 8


@dataclass(frozen=True)
class Decision:
    direction: Direction
    moves: tuple[Coord, ...] = ()
    shout: str = ""
    error: NoPossibleMove | None = None

    @property
    def fell_back(self) -> bool:
        return self.error is not None


class Solver:
    def __init__(self, state: GameState, options: SolveOptions | None = None,
                 rng: random.Random | None = None):
        self.state = state
        self.options = options or SolveOptions()
        self.rng = rng or _rng

    @property
    def you(self) -> Snake:
        return self.state.you

    # ── Move generation ───────────────────────────────────────────

    def candidates(self) -> list[Coord]:
        return self.you.possible_moves(self.state.board, self.state.ruleset)

    # ── Threats and lookahead ─────────────────────────────────────

    def threats(self) -> set[Coord]:
        """Cells held by any other snake, plus where they could move next."""
        board, ruleset = self.state.board, self.state.ruleset
        cells = set()
        for snake in board.others(self.you.id):
            cells.update(snake.body)
            if not self.options.consider_opponent_next_move:
                continue
            if snake.health <= 0:
                continue
            try:
                cells.update(snake.possible_moves(board, ruleset))
            except NoPossibleMove:
                # cornered, so not a threat next turn
                continue
        return cells

    def eliminate_threats(self, moves: list[Coord]) -> list[Coord]:
        return eliminate(moves, self.threats())

    def lookahead(self, moves: list[Coord]) -> list[Coord]:
        """Drop moves after which our snake would have nowhere to go.

        Raises:
            NoPossibleMove: if no move survives.
        """
        board, ruleset = self.state.board, self.state.ruleset
        survivors = [
            m for m in moves
            if self.you.project(m, board).is_valid(board, ruleset)
        ]
        if not survivors:
            raise NoPossibleMove("no move survives lookahead")
        return survivors

    # ── Scoring and selection ─────────────────────────────────────

    def score(self, moves: list[Coord]) -> list[Coord]:
        """Return scored copies of `moves`, best first."""
        opts = self.options
        board = self.state.board
        health = self.you.health
        recent = self.you.body[:opts.body_window]

        scored = []
        for m in moves:
            score = sum(seg.distance(m) for seg in recent) / len(recent)
            if board.has_food(m):
                if health >= opts.sated_health:
                    score -= opts.food_reward
                elif health <= opts.starving_health:
                    score += opts.food_reward
            if board.is_hazard(m):
                score -= opts.hazard_penalty
            scored.append(m.with_score(score))
        scored.sort(key=lambda c: c.score, reverse=True)
        return scored

    def pick_move(self, moves: list[Coord]) -> Direction:
        """Choose one direction from scored moves.

        Close calls are broken at random so the snake is harder to predict.

        Raises:
            NoPossibleMove: with a random `fallback` direction if `moves`
                is empty.
        """
        if not moves:
            raise NoPossibleMove(fallback=self.rng.choice(ALL_DIRECTIONS))
        if len(moves) == 1:
            return moves[0].direction

        ranked = sorted(moves, key=lambda c: c.score or 0, reverse=True)
        if self.options.use_single_best_option:
            return ranked[0].direction
        if self.state.ruleset.is_wrapped:
            return self.rng.choice(ranked).direction
        if (ranked[0].score or 0) - (ranked[1].score or 0) >= self.options.confidence_margin:
            return ranked[0].direction
        return self.rng.choice(ranked[:2]).direction

    # ── Entry points ──────────────────────────────────────────────

    def next(self) -> list[Coord]:
        """Ranked surviving moves, best first.

        Raises:
            NoPossibleMove: if nothing survives generation, threat
                elimination or lookahead.
        """
        moves = self.eliminate_threats(self.candidates())
        if not moves:
            raise NoPossibleMove("every move is threatened")
        if self.options.lookahead:
            moves = self.lookahead(moves)
        return self.score(moves)

    def decide(self) -> Decision:
        """Always produce a direction, falling back to a random one."""
        try:
            moves = self.next()
            direction = self.pick_move(moves)
        except NoPossibleMove as e:
            fallback = e.fallback or self.rng.choice(ALL_DIRECTIONS)
            return Decision(
                direction=fallback,
                shout=self.rng.choice(NEGATIVE_SHOUTS),
                error=e,
            )
        shout = ""
        if self.rng.random() < NEUTRAL_SHOUT_CHANCE:
            shout = self.rng.choice(NEUTRAL_SHOUTS)
        return Decision(direction=direction, moves=tuple(moves), shout=shout)


def decide_move(data: dict, options: SolveOptions | None = None,
                rng: random.Random | None = None) -> str:
    """Choose a move for the snake in a raw Battlesnake request.

    Returns:
        One of: "up", "down", "left", "right"
    """
    state = GameState.from_request(data)
    return Solver(state, options, rng).decide().direction.value
