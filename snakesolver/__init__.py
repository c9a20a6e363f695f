"""Battlesnake move solver and server."""

from snakesolver.board import Board, Game, GameState, NoPossibleMove, Ruleset, Snake
from snakesolver.coord import ALL_DIRECTIONS, Coord, Direction
from snakesolver.solver import Decision, SolveOptions, Solver, decide_move

__all__ = [
    "ALL_DIRECTIONS",
    "Board",
    "Coord",
    "Decision",
    "Direction",
    "Game",
    "GameState",
    "NoPossibleMove",
    "Ruleset",
    "Snake",
    "SolveOptions",
    "Solver",
    "decide_move",
]
