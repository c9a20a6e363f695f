"""
Snakes, boards and game state as decoded from a Battlesnake request.

Everything here is an immutable snapshot. Simulating a move returns a new
Snake and never touches the one it was called on.
"""

from dataclasses import dataclass, field, replace

from snakesolver.coord import ALL_DIRECTIONS, Coord, coords_from_dicts

MAX_HEALTH = 100
HAZARD_DAMAGE = 15

RULESETS = ("standard", "wrapped", "solo", "royale", "squad", "constrictor")


class NoPossibleMove(Exception):
    """No legal move exists from the current position.

    `fallback` holds a random direction when the error comes out of move
    selection, so a caller always has something to answer with.
    """

    def __init__(self, message: str = "no possible moves", fallback=None):
        super().__init__(message)
        self.fallback = fallback


@dataclass(frozen=True)
class Ruleset:
    name: str = "standard"
    version: str = ""

    @property
    def is_wrapped(self) -> bool:
        return self.name == "wrapped"

    @classmethod
    def from_dict(cls, d: dict | None) -> "Ruleset":
        d = d or {}
        return cls(name=d.get("name") or "standard", version=d.get("version", ""))

    def to_dict(self) -> dict:
        return {"name": self.name, "version": self.version}


STANDARD = Ruleset()


@dataclass(frozen=True)
class Snake:
    id: str
    body: tuple[Coord, ...]
    health: int = MAX_HEALTH
    name: str = ""
    shout: str = ""

    def __post_init__(self):
        if not self.body:
            raise ValueError(f"snake {self.id!r} has an empty body")
        object.__setattr__(self, "body", tuple(self.body))

    @property
    def head(self) -> Coord:
        return self.body[0]

    @property
    def length(self) -> int:
        return len(self.body)

    @classmethod
    def from_dict(cls, d: dict) -> "Snake":
        body = coords_from_dicts(d.get("body"))
        if not body and d.get("head"):
            body = (Coord.from_dict(d["head"]),)
        return cls(
            id=str(d["id"]),
            body=body,
            health=int(d.get("health", MAX_HEALTH)),
            name=d.get("name", ""),
            shout=d.get("shout", ""),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "health": self.health,
            "body": [c.to_dict() for c in self.body],
            "head": self.head.to_dict(),
            "length": self.length,
            "shout": self.shout,
        }

    def possible_moves(self, board: "Board", ruleset: Ruleset = STANDARD) -> list[Coord]:
        """Cells the head can step into this turn.

        Each result carries the direction that produced it. Walls are
        rejected (or wrapped, under the wrapped ruleset) and so is any cell
        of the current, pre-move body.

        Raises:
            NoPossibleMove: if every direction is blocked.
        """
        body = set(self.body)
        moves = []
        for d in ALL_DIRECTIONS:
            c = self.head.project(d)
            if ruleset.is_wrapped:
                c = c.wrap(board.width, board.height)
            elif not c.within_bounds(board.width, board.height):
                continue
            if c in body:
                continue
            moves.append(c)
        if not moves:
            raise NoPossibleMove()
        return moves

    def project(self, target: Coord, board: "Board") -> "Snake":
        """Return the snake as it would be after its head moves to `target`.

        Health drops by one, and by HAZARD_DAMAGE more inside a hazard.
        Eating resets health to MAX_HEALTH and keeps the tail, so the snake
        grows by one.
        """
        health = self.health - 1
        if board.is_hazard(target):
            health -= HAZARD_DAMAGE
        head = Coord(target.x, target.y)
        if board.has_food(target):
            return replace(self, body=(head,) + self.body, health=MAX_HEALTH)
        return replace(self, body=(head,) + self.body[:-1], health=health)

    def is_valid(self, board: "Board", ruleset: Ruleset = STANDARD) -> bool:
        """Alive, with at least one move available."""
        if self.health <= 0:
            return False
        try:
            self.possible_moves(board, ruleset)
        except NoPossibleMove:
            return False
        return True


@dataclass(frozen=True)
class Board:
    width: int
    height: int
    food: tuple[Coord, ...] = ()
    hazards: tuple[Coord, ...] = ()
    snakes: tuple[Snake, ...] = ()
    _food_set: frozenset = field(init=False, repr=False, compare=False)
    _hazard_set: frozenset = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"invalid board size {self.width}x{self.height}")
        object.__setattr__(self, "food", tuple(self.food))
        object.__setattr__(self, "hazards", tuple(self.hazards))
        object.__setattr__(self, "snakes", tuple(self.snakes))
        object.__setattr__(self, "_food_set", frozenset(self.food))
        object.__setattr__(self, "_hazard_set", frozenset(self.hazards))

    @classmethod
    def from_dict(cls, d: dict) -> "Board":
        return cls(
            width=int(d["width"]),
            height=int(d["height"]),
            food=coords_from_dicts(d.get("food")),
            hazards=coords_from_dicts(d.get("hazards")),
            snakes=tuple(Snake.from_dict(s) for s in d.get("snakes") or ()),
        )

    def to_dict(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "food": [c.to_dict() for c in self.food],
            "hazards": [c.to_dict() for c in self.hazards],
            "snakes": [s.to_dict() for s in self.snakes],
        }

    def has_food(self, c: Coord) -> bool:
        return c in self._food_set

    def is_hazard(self, c: Coord) -> bool:
        return c in self._hazard_set

    def others(self, snake_id: str) -> list[Snake]:
        return [s for s in self.snakes if s.id != snake_id]


@dataclass(frozen=True)
class Game:
    id: str = ""
    ruleset: Ruleset = STANDARD
    timeout: int = 500

    @classmethod
    def from_dict(cls, d: dict | None) -> "Game":
        d = d or {}
        return cls(
            id=str(d.get("id", "")),
            ruleset=Ruleset.from_dict(d.get("ruleset")),
            timeout=int(d.get("timeout", 500)),
        )

    def to_dict(self) -> dict:
        return {"id": self.id, "ruleset": self.ruleset.to_dict(), "timeout": self.timeout}


@dataclass(frozen=True)
class GameState:
    """One turn of one game, from the point of view of `you`."""

    game: Game
    turn: int
    board: Board
    you: Snake

    @property
    def ruleset(self) -> Ruleset:
        return self.game.ruleset

    @classmethod
    def from_request(cls, data: dict) -> "GameState":
        """Decode a Battlesnake /start, /move or /end request body.

        Raises:
            ValueError: if the body is missing required fields or has
                values of the wrong type.
        """
        if not isinstance(data, dict):
            raise ValueError("request body must be a JSON object")
        try:
            return cls(
                game=Game.from_dict(data.get("game")),
                turn=int(data.get("turn", 0)),
                board=Board.from_dict(data["board"]),
                you=Snake.from_dict(data["you"]),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"malformed game request: {e!r}") from e

    def to_board_state(self) -> dict:
        return {
            "turn": self.turn,
            "board": self.board.to_dict(),
            "you": self.you.to_dict(),
        }

    def to_dict(self) -> dict:
        d = self.to_board_state()
        d["game"] = self.game.to_dict()
        return d
