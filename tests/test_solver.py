import random

import pytest

from snakesolver.board import NoPossibleMove
from snakesolver.coord import ALL_DIRECTIONS, Coord, Direction
from snakesolver.solver import (
    NEGATIVE_SHOUTS,
    SolveOptions,
    Solver,
    decide_move,
)
from tests.helpers import PickFirst, PickLast, board, move_request, snake, state


def scored(x, y, direction, score):
    return Coord(x, y, direction=direction, score=score)


# ── Threats ───────────────────────────────────────────────────────

def test_threats_cover_opponent_body_and_next_moves():
    me = snake("me", (5, 5))
    them = snake("them", (1, 1), (1, 0))
    st = state(me, board(snakes=[me, them]))
    assert Solver(st).threats() == {
        Coord(1, 1), Coord(1, 0),
        Coord(1, 2), Coord(0, 1), Coord(2, 1),
    }


def test_threats_without_opponent_next_move():
    me = snake("me", (5, 5))
    them = snake("them", (1, 1), (1, 0))
    st = state(me, board(snakes=[me, them]))
    opts = SolveOptions(consider_opponent_next_move=False)
    assert Solver(st, opts).threats() == {Coord(1, 1), Coord(1, 0)}


def test_threats_exclude_own_snake():
    me = snake("me", (5, 5), (5, 4))
    assert Solver(state(me)).threats() == set()


def test_cornered_opponent_only_threatens_its_body():
    me = snake("me", (5, 5))
    them = snake("them", (0, 0), (0, 1), (1, 1), (1, 0))
    st = state(me, board(snakes=[me, them]))
    assert Solver(st).threats() == set(them.body)


def test_dead_opponent_has_no_next_move():
    me = snake("me", (5, 5))
    them = snake("them", (1, 1), (1, 0), health=0)
    st = state(me, board(snakes=[me, them]))
    assert Solver(st).threats() == {Coord(1, 1), Coord(1, 0)}


def test_opponent_limits_options():
    me = snake("me", (0, 1), (0, 0))
    them = snake("them", (1, 1), (1, 0))
    st = state(me, board(snakes=[me, them]))
    moves = Solver(st).next()
    assert [m.direction for m in moves] == [Direction.UP]


def test_opponent_next_move_is_avoided():
    me = snake("me", (5, 5), (5, 4))
    them = snake("them", (7, 5), (8, 5))
    st = state(me, board(snakes=[me, them]))
    assert Direction.RIGHT not in {m.direction for m in Solver(st).next()}


# ── Lookahead ─────────────────────────────────────────────────────

def test_lookahead_rejects_dead_end_pocket():
    # LEFT walks into (0,0) with the body wrapped around it
    me = snake("me", (1, 0), (1, 1), (0, 1), (0, 2), (0, 3))
    st = state(me)
    with_lookahead = Solver(st).next()
    without = Solver(st, SolveOptions(lookahead=False)).next()
    assert [m.direction for m in with_lookahead] == [Direction.RIGHT]
    assert {m.direction for m in without} == {Direction.LEFT, Direction.RIGHT}


def test_lookahead_rejects_starvation():
    me = snake("me", (5, 5), (5, 4), health=1)
    with pytest.raises(NoPossibleMove):
        Solver(state(me)).next()


def test_lookahead_keeps_food_when_starving():
    me = snake("me", (5, 5), (5, 4), health=1)
    st = state(me, board(snakes=[me], food=[(4, 5)]))
    assert [m.direction for m in Solver(st).next()] == [Direction.LEFT]


def test_every_move_threatened_raises():
    me = snake("me", (5, 5))
    walls = [
        snake("a", (5, 6), (5, 7)),
        snake("b", (5, 4), (5, 3)),
        snake("c", (4, 5), (3, 5)),
        snake("d", (6, 5), (7, 5)),
    ]
    st = state(me, board(snakes=[me, *walls]))
    with pytest.raises(NoPossibleMove):
        Solver(st).next()


# ── Scoring ───────────────────────────────────────────────────────

def test_score_prefers_moving_away_from_body():
    me = snake("me", (5, 5), (5, 4), (5, 3), (5, 2), (5, 1))
    up = Coord(5, 6, direction=Direction.UP)
    left = Coord(4, 5, direction=Direction.LEFT)
    result = Solver(state(me)).score([left, up])
    assert [c.direction for c in result] == [Direction.UP, Direction.LEFT]
    assert result[0].score == pytest.approx(3.0)
    assert result[0].score > result[1].score


def test_score_only_uses_recent_body():
    short = snake("me", *[(5, y) for y in range(5, -1, -1)], (6, 0), (7, 0))
    longer = snake("me", *[(5, y) for y in range(5, -1, -1)], (6, 0), (7, 0), (8, 0), (9, 0))
    move = [Coord(4, 5, direction=Direction.LEFT)]
    a = Solver(state(short)).score(move)[0].score
    b = Solver(state(longer)).score(move)[0].score
    assert a == b


@pytest.mark.parametrize("health, delta", [(100, -20), (70, -20), (50, 0), (30, 20), (5, 20)])
def test_food_adjusts_score_by_health(health, delta):
    me = snake("me", (5, 5), (5, 4), health=health)
    move = [Coord(5, 6, direction=Direction.UP)]
    plain = Solver(state(me)).score(move)[0].score
    fed = Solver(state(me, board(snakes=[me], food=[(5, 6)]))).score(move)[0].score
    assert fed - plain == pytest.approx(delta)


def test_custom_food_reward():
    me = snake("me", (5, 5), (5, 4), health=90)
    move = [Coord(5, 6, direction=Direction.UP)]
    opts = SolveOptions(food_reward=5)
    plain = Solver(state(me), opts).score(move)[0].score
    fed = Solver(state(me, board(snakes=[me], food=[(5, 6)])), opts).score(move)[0].score
    assert plain - fed == pytest.approx(5)


def test_hazard_penalty():
    me = snake("me", (5, 5), (5, 4))
    move = [Coord(5, 6, direction=Direction.UP)]
    plain = Solver(state(me)).score(move)[0].score
    hazard = Solver(state(me, board(snakes=[me], hazards=[(5, 6)]))).score(move)[0].score
    assert plain - hazard == pytest.approx(40)


def test_scoring_is_repeatable_and_leaves_input_alone():
    me = snake("me", (5, 5), (4, 5), (4, 4))
    solver = Solver(state(me))
    moves = solver.candidates()
    first = solver.score(moves)
    second = solver.score(moves)
    assert [(c, c.direction, c.score) for c in first] == [(c, c.direction, c.score) for c in second]
    assert all(c.score is None for c in moves)


# ── Selection ─────────────────────────────────────────────────────

def test_pick_single_move_ignores_score():
    solver = Solver(state(snake("me", (5, 5))))
    assert solver.pick_move([scored(5, 6, Direction.UP, -1000)]) is Direction.UP


def test_pick_from_nothing_raises_with_fallback():
    solver = Solver(state(snake("me", (5, 5))), rng=random.Random(7))
    with pytest.raises(NoPossibleMove) as excinfo:
        solver.pick_move([])
    assert excinfo.value.fallback in ALL_DIRECTIONS


def test_pick_confident_winner():
    moves = [scored(5, 4, Direction.DOWN, 5.0), scored(5, 6, Direction.UP, 9.0)]
    solver = Solver(state(snake("me", (5, 5))), rng=PickLast())
    assert solver.pick_move(moves) is Direction.UP


def test_pick_close_call_is_random_between_top_two():
    moves = [
        scored(5, 6, Direction.UP, 9.0),
        scored(5, 4, Direction.DOWN, 7.0),
        scored(4, 5, Direction.LEFT, 1.0),
    ]
    solver = Solver(state(snake("me", (5, 5))))
    assert Solver(solver.state, rng=PickFirst()).pick_move(moves) is Direction.UP
    assert Solver(solver.state, rng=PickLast()).pick_move(moves) is Direction.DOWN
    seen = {Solver(solver.state, rng=random.Random(i)).pick_move(moves) for i in range(50)}
    assert seen == {Direction.UP, Direction.DOWN}


def test_pick_single_best_option_skips_tie_break():
    moves = [scored(5, 6, Direction.UP, 9.0), scored(5, 4, Direction.DOWN, 8.5)]
    opts = SolveOptions(use_single_best_option=True)
    assert Solver(state(snake("me", (5, 5))), opts, rng=PickLast()).pick_move(moves) is Direction.UP


def test_pick_wrapped_is_random_across_all():
    moves = [
        scored(5, 6, Direction.UP, 50.0),
        scored(5, 4, Direction.DOWN, 7.0),
        scored(4, 5, Direction.LEFT, 1.0),
    ]
    st = state(snake("me", (5, 5)), ruleset="wrapped")
    assert Solver(st, rng=PickLast()).pick_move(moves) is Direction.LEFT


# ── Facade ────────────────────────────────────────────────────────

def test_next_ranks_best_first():
    me = snake("me", (5, 5), (5, 4), (5, 3))
    moves = Solver(state(me)).next()
    assert {m.direction for m in moves} == {Direction.UP, Direction.LEFT, Direction.RIGHT}
    assert moves[0].direction is Direction.UP
    scores = [m.score for m in moves]
    assert scores == sorted(scores, reverse=True)


def test_decide_falls_back_when_trapped():
    me = snake("me", (0, 0), (0, 1), (1, 1), (1, 0))
    decision = Solver(state(me), rng=random.Random(3)).decide()
    assert decision.fell_back
    assert isinstance(decision.error, NoPossibleMove)
    assert decision.direction in ALL_DIRECTIONS
    assert decision.shout in NEGATIVE_SHOUTS
    assert decision.moves == ()


def test_decide_on_open_board():
    me = snake("me", (5, 5), (5, 4), (5, 3))
    decision = Solver(state(me), rng=random.Random(1)).decide()
    assert not decision.fell_back
    assert decision.direction in {Direction.UP, Direction.LEFT, Direction.RIGHT}
    assert decision.moves


def test_decide_move_takes_raw_request():
    me = snake("me", (0, 0), (1, 0))
    assert decide_move(move_request(me)) == "up"


def test_decide_does_not_touch_state():
    me = snake("me", (5, 5), (5, 4), health=20)
    st = state(me, board(snakes=[me], food=[(5, 6)]))
    before = st.to_dict()
    Solver(st).decide()
    assert st.to_dict() == before
