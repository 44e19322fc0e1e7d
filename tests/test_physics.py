"""
Physics Engine Tests — paddle bounds, wall / paddle / block collisions,
win and ball-lost detection.
"""

import sys
import os
import random
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from entities import Session, Block, FIELD_WIDTH, FIELD_HEIGHT
from input_tracker import InputTracker
from physics import PhysicsEngine, hit_fraction, BLOCK_POINTS


# ── Helpers ──────────────────────────────────────────────

def make_running(seed: int = 0) -> Session:
    s = Session(rng=random.Random(seed))
    s.reset_game()
    s.running = True
    return s


def place_ball(s: Session, x, y, dx, dy) -> None:
    s.ball.x, s.ball.y, s.ball.dx, s.ball.dy = x, y, dx, dy


def event_types(engine: PhysicsEngine) -> list:
    return [ev["type"] for ev in engine.events]


# ── Paddle movement ──────────────────────────────────────

class TestPaddleMovement:

    def test_left_moves_by_speed(self):
        s = make_running()
        keys = InputTracker()
        keys.key_down("ArrowLeft")
        x0 = s.paddle.x
        PhysicsEngine().update(s, keys)
        assert s.paddle.x == x0 - s.paddle.speed

    def test_right_moves_by_speed(self):
        s = make_running()
        keys = InputTracker()
        keys.key_down("d")
        x0 = s.paddle.x
        PhysicsEngine().update(s, keys)
        assert s.paddle.x == x0 + s.paddle.speed

    def test_clamped_at_left_wall(self):
        s = make_running()
        s.paddle.x = 3
        PhysicsEngine.move_paddle(s.paddle, FIELD_WIDTH, left=True, right=False)
        assert s.paddle.x == 0

    def test_clamped_at_right_wall(self):
        s = make_running()
        max_x = FIELD_WIDTH - s.paddle.width
        s.paddle.x = max_x - 3
        PhysicsEngine.move_paddle(s.paddle, FIELD_WIDTH, left=False, right=True)
        assert s.paddle.x == max_x

    def test_both_keys_cancel_out(self):
        s = make_running()
        x0 = s.paddle.x
        PhysicsEngine.move_paddle(s.paddle, FIELD_WIDTH, left=True, right=True)
        assert s.paddle.x == x0

    def test_stays_in_bounds_over_random_input(self):
        s = make_running()
        rng = random.Random(42)
        max_x = FIELD_WIDTH - s.paddle.width
        for _ in range(2000):
            PhysicsEngine.move_paddle(s.paddle, FIELD_WIDTH,
                                      left=rng.random() < 0.6, right=rng.random() < 0.3)
            assert 0 <= s.paddle.x <= max_x

    def test_no_movement_while_paused(self):
        s = make_running()
        s.running = False
        keys = InputTracker()
        keys.key_down("a")
        x0, bx, by = s.paddle.x, s.ball.x, s.ball.y
        PhysicsEngine().update(s, keys)
        assert (s.paddle.x, s.ball.x, s.ball.y) == (x0, bx, by)


# ── Walls ────────────────────────────────────────────────

class TestWalls:

    def test_right_wall_flips_dx(self):
        s = make_running()
        place_ball(s, 795, 300, 5, -1)
        eng = PhysicsEngine()
        eng.update(s, InputTracker())
        assert s.ball.dx == -5
        assert s.ball.dy == -1
        assert {"type": "wall", "side": "right"} in eng.events

    def test_left_wall_flips_dx(self):
        s = make_running()
        place_ball(s, 5, 300, -5, -1)
        eng = PhysicsEngine()
        eng.update(s, InputTracker())
        assert s.ball.dx == 5
        assert {"type": "wall", "side": "left"} in eng.events

    def test_top_wall_flips_dy(self):
        s = make_running()
        place_ball(s, 400, 10, 0, -5)
        eng = PhysicsEngine()
        eng.update(s, InputTracker())
        assert s.ball.dy == 5
        assert s.ball.dx == 0

    def test_open_field_keeps_signs(self):
        s = make_running()
        place_ball(s, 400, 300, 3, -2)
        eng = PhysicsEngine()
        eng.update(s, InputTracker())
        assert (s.ball.x, s.ball.y) == (403, 298)
        assert (s.ball.dx, s.ball.dy) == (3, -2)
        assert eng.events == []


# ── Paddle bounce ────────────────────────────────────────

class TestPaddleBounce:

    @pytest.mark.parametrize("ball_x,expected_dx", [
        (350, -4.0),    # left edge, hit fraction 0
        (375, -2.0),
        (400, 0.0),     # center
        (425, 2.0),
        (450, 4.0),     # right edge, hit fraction 1
    ])
    def test_spin_from_hit_fraction(self, ball_x, expected_dx):
        s = make_running()
        assert s.paddle.x == 350
        place_ball(s, ball_x, 558, 0, 5)
        eng = PhysicsEngine()
        eng.update(s, InputTracker())
        assert s.ball.dy == -5
        assert s.ball.dx == pytest.approx(expected_dx)
        assert "paddle" in event_types(eng)

    def test_hit_fraction_helper(self):
        s = make_running()
        s.ball.x = s.paddle.x + s.paddle.width * 0.25
        assert hit_fraction(s.ball, s.paddle) == pytest.approx(0.25)

    def test_upward_ball_overlapping_paddle_not_reflected(self):
        s = make_running()
        place_ball(s, 400, 575, 1, -5)
        eng = PhysicsEngine()
        eng.update(s, InputTracker())
        assert s.ball.dy == -5
        assert s.ball.dx == 1
        assert "paddle" not in event_types(eng)

    def test_ball_beside_paddle_falls_through(self):
        s = make_running()
        place_ball(s, 300, 558, 0, 5)
        eng = PhysicsEngine()
        eng.update(s, InputTracker())
        assert s.ball.dy == 5

    def test_ball_above_paddle_not_reflected(self):
        s = make_running()
        place_ball(s, 400, 540, 0, 5)
        PhysicsEngine().update(s, InputTracker())
        assert s.ball.dy == 5


# ── Blocks ───────────────────────────────────────────────

class TestBlocks:

    def test_block_destroyed_scores_and_reflects(self):
        s = make_running()
        place_ball(s, 70, 71, 0, -1)       # moves into block (0, 0)
        eng = PhysicsEngine()
        eng.update(s, InputTracker())
        assert s.blocks[0].visible is False
        assert s.score == BLOCK_POINTS == 10
        assert s.ball.dy == 1
        assert len(s.visible_blocks()) == 59
        assert {"type": "block", "row": 0, "col": 0} in eng.events

    def test_block_destroyed_only_once(self):
        s = make_running()
        place_ball(s, 70, 70, 0, 0)
        eng = PhysicsEngine()
        eng.update(s, InputTracker())
        eng.update(s, InputTracker())
        assert s.score == 10
        assert s.blocks[0].visible is False

    def test_block_edge_is_not_inside(self):
        s = make_running()
        place_ball(s, 35, 70, 0, 0)        # exactly on the left edge of block (0, 0)
        PhysicsEngine().update(s, InputTracker())
        assert s.blocks[0].visible is True
        assert s.score == 0

    def test_overlapping_blocks_all_hit_same_frame(self):
        """Every overlapping block scores and flips dy on its own."""
        s = make_running()
        s.blocks = [
            Block(x=50, y=250, width=100, height=100, row=0, col=0),
            Block(x=100, y=300, width=100, height=100, row=0, col=1),
            Block(x=600, y=100, row=1, col=0),
        ]
        place_ball(s, 125, 327, 0, -2)
        eng = PhysicsEngine()
        eng.update(s, InputTracker())
        assert s.score == 20
        assert s.ball.dy == -2      # flipped twice
        hits = [(ev["row"], ev["col"]) for ev in eng.events if ev["type"] == "block"]
        assert hits == [(0, 1), (0, 0)]     # reverse creation order

    def test_last_block_triggers_win_and_skips_bottom_check(self):
        s = make_running()
        for b in s.blocks[1:]:
            b.visible = False
        place_ball(s, 70, 70, 0, 0)
        lives = s.lives
        eng = PhysicsEngine()
        eng.update(s, InputTracker())
        assert event_types(eng)[-1] == "win"
        assert s.lives == lives

    def test_no_win_while_blocks_remain(self):
        s = make_running()
        place_ball(s, 70, 70, 0, 0)
        eng = PhysicsEngine()
        eng.update(s, InputTracker())
        assert "win" not in event_types(eng)


# ── Ball lost ────────────────────────────────────────────

class TestBallLost:

    def test_life_lost_resets_ball_only(self):
        s = make_running()
        s.score = 40
        s.blocks[0].visible = False
        s.paddle.x = 650
        place_ball(s, 100, 590, 0, 5)
        eng = PhysicsEngine()
        eng.update(s, InputTracker())
        assert s.lives == 2
        assert {"type": "life_lost", "lives": 2} in eng.events
        assert (s.ball.x, s.ball.y) == (FIELD_WIDTH / 2, FIELD_HEIGHT / 2)
        assert s.score == 40
        assert s.blocks[0].visible is False
        assert s.running is True

    def test_last_life_is_game_over(self):
        s = make_running()
        s.lives = 1
        s.paddle.x = 650
        place_ball(s, 100, 590, 0, 5)
        eng = PhysicsEngine()
        eng.update(s, InputTracker())
        assert s.lives == 0
        assert "game_over" in event_types(eng)
        assert "life_lost" not in event_types(eng)

    def test_ball_touching_bottom_edge_is_not_lost(self):
        s = make_running()
        s.paddle.x = 650
        place_ball(s, 100, 587, 0, 5)      # lower edge lands exactly on 600
        PhysicsEngine().update(s, InputTracker())
        assert s.lives == 3
