import random

from snakesolver.board import Board, Game, GameState, Ruleset, Snake
from snakesolver.coord import Coord


def cells(*xy: tuple[int, int]) -> tuple[Coord, ...]:
    return tuple(Coord(x, y) for x, y in xy)


def snake(snake_id: str, *body: tuple[int, int], health: int = 100) -> Snake:
    return Snake(id=snake_id, body=cells(*body), health=health, name=snake_id)


def board(width: int = 11, height: int = 11, snakes=(), food=(), hazards=()) -> Board:
    return Board(width=width, height=height, food=cells(*food), hazards=cells(*hazards),
                 snakes=tuple(snakes))


def state(you: Snake, b: Board | None = None, ruleset: str = "standard",
          game_id: str = "tst", turn: int = 0) -> GameState:
    if b is None:
        b = board(snakes=[you])
    return GameState(game=Game(id=game_id, ruleset=Ruleset(ruleset)), turn=turn, board=b, you=you)


def move_request(you: Snake, b: Board | None = None, ruleset: str = "standard",
                 game_id: str = "tst", turn: int = 3) -> dict:
    return state(you, b, ruleset, game_id, turn).to_dict()


class PickLast(random.Random):
    """Deterministic stand-in for the tie-break source: always the last option."""

    def choice(self, seq):
        return seq[-1]


class PickFirst(random.Random):
    def choice(self, seq):
        return seq[0]
