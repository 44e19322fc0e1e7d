"""
Block Breaker Physics & Collision Engine
Paddle movement, explicit-Euler ball step, wall / paddle / block collisions,
win and ball-lost detection.
"""

from entities import Ball, Block, Paddle, Session
from input_tracker import InputTracker

# ── Runtime-editable behavior constants ───────────────────────────────────────
# These are read by name every call, so server.py can mutate them live via:
#   import physics as _phys;  _phys.SPIN_FACTOR = 10
SPIN_FACTOR: float = 8.0            # paddle bounce: dx = SPIN_FACTOR * (hit - 0.5)
BLOCK_POINTS: int = 10              # score per destroyed block


def hit_fraction(ball: Ball, paddle: Paddle) -> float:
    """Normalized contact position on the paddle: 0 = left edge, 1 = right edge."""
    return (ball.x - paddle.x) / paddle.width


class PhysicsEngine:
    """
    Per-frame update for one Session.

    Every update clears `events` and appends one dict per thing that happened:
      {"type": "wall", "side": "left"|"right"|"top"}
      {"type": "paddle", "hit": <hit fraction>}
      {"type": "block", "row": r, "col": c}
      {"type": "win"}
      {"type": "life_lost", "lives": n}
      {"type": "game_over"}
    The controller reacts to win / game_over; the others are informational.
    """

    def __init__(self):
        self.events: list = []

    # ──────────────────────────────────────────
    # 1. Paddle movement (level-sampled input)
    # ──────────────────────────────────────────
    @staticmethod
    def move_paddle(paddle: Paddle, field_width: float,
                    left: bool, right: bool) -> None:
        max_x = field_width - paddle.width
        if left and paddle.x > 0:
            paddle.x -= paddle.speed
        if right and paddle.x < max_x:
            paddle.x += paddle.speed
        # A speed that does not divide the field evenly would overshoot otherwise.
        paddle.x = min(max(paddle.x, 0.0), max_x)

    # ──────────────────────────────────────────
    # 2. Ball translation
    # ──────────────────────────────────────────
    @staticmethod
    def move_ball(ball: Ball) -> None:
        """Fixed step per frame, no delta-time scaling."""
        ball.x += ball.dx
        ball.y += ball.dy

    # ──────────────────────────────────────────
    # 3. Walls (left / right / top, no bottom)
    # ──────────────────────────────────────────
    def _check_walls(self, ball: Ball, field_width: float) -> None:
        if ball.x + ball.radius > field_width or ball.x - ball.radius < 0:
            ball.dx = -ball.dx
            side = "right" if ball.x + ball.radius > field_width else "left"
            self.events.append({"type": "wall", "side": side})
        if ball.y - ball.radius < 0:
            ball.dy = -ball.dy
            self.events.append({"type": "wall", "side": "top"})

    # ──────────────────────────────────────────
    # 4. Paddle bounce with spin
    # ──────────────────────────────────────────
    @staticmethod
    def paddle_hit(ball: Ball, paddle: Paddle) -> bool:
        """
        Contact predicate. The dy > 0 guard keeps a ball that still overlaps the
        paddle after bouncing from being reflected again on the next frame.
        """
        return (ball.y + ball.radius > paddle.y and
                paddle.x <= ball.x <= paddle.x + paddle.width and
                ball.dy > 0)

    def _check_paddle(self, ball: Ball, paddle: Paddle) -> None:
        if not self.paddle_hit(ball, paddle):
            return
        ball.dy = -ball.dy
        hit = hit_fraction(ball, paddle)
        ball.dx = SPIN_FACTOR * (hit - 0.5)
        self.events.append({"type": "paddle", "hit": hit})

    # ──────────────────────────────────────────
    # 5. Blocks
    # ──────────────────────────────────────────
    @staticmethod
    def block_contains(block: Block, ball: Ball) -> bool:
        return (block.x < ball.x < block.x + block.width and
                block.y < ball.y < block.y + block.height)

    def _check_blocks(self, session: Session) -> None:
        """
        Destroy every visible block containing the ball center.

        All overlapping blocks are hit in the same frame: each one flips dy
        and scores on its own, so two simultaneous hits cancel the reflection.
        """
        ball = session.ball
        for block in reversed(session.blocks):
            if block.visible and self.block_contains(block, ball):
                block.visible = False
                ball.dy = -ball.dy
                session.score += BLOCK_POINTS
                self.events.append({"type": "block", "row": block.row, "col": block.col})

    # ──────────────────────────────────────────
    # Main Update
    # ──────────────────────────────────────────
    def update(self, session: Session, keys: InputTracker) -> None:
        """Advance one frame. No-op unless session.running."""
        self.events.clear()
        if not session.running:
            return

        ball, paddle = session.ball, session.paddle

        self.move_paddle(paddle, session.width,
                         left=keys.held("left"), right=keys.held("right"))
        self.move_ball(ball)
        self._check_walls(ball, session.width)
        self._check_paddle(ball, paddle)
        self._check_blocks(session)

        # 6. Win: the controller resets everything, so skip the bottom check.
        if session.all_cleared():
            self.events.append({"type": "win"})
            return

        # 7. Ball lost past the bottom edge
        if ball.y + ball.radius > session.height:
            session.lives -= 1
            if session.lives <= 0:
                self.events.append({"type": "game_over"})
            else:
                self.events.append({"type": "life_lost", "lives": session.lives})
                session.reset_ball()
