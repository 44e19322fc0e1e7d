"""
Block Breaker Entity Model
Paddle, Ball, Block grid and Session state (score / lives / running).
"""

import random
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from PIL import ImageColor

# ──────────────────────────────────────────────
# Field / geometry constants (logical units)
# ──────────────────────────────────────────────
FIELD_WIDTH: int = 800
FIELD_HEIGHT: int = 600

PADDLE_WIDTH: float = 100
PADDLE_HEIGHT: float = 10
PADDLE_SPEED: float = 8
PADDLE_BOTTOM_GAP: float = 30       # paddle.y = FIELD_HEIGHT - gap

BALL_RADIUS: float = 8

BLOCK_ROWS: int = 6
BLOCK_COLS: int = 10
BLOCK_WIDTH: float = 70
BLOCK_HEIGHT: float = 20
BLOCK_PADDING: float = 5
BLOCK_OFFSET_TOP: float = 60
BLOCK_OFFSET_LEFT: float = 35

START_LIVES: int = 3

# ── Runtime-editable behavior constants ───────────────────────────────────────
# Read by name on every reset, so server.py can mutate them live via:
#   import entities as _ent;  _ent.BALL_SPEED = 6
BALL_SPEED: float = 5.0             # |dx| and |dy| after a ball reset

Color = Tuple[int, ...]


def block_color(row: int) -> Color:
    """Deterministic row color: hsl(row * 30, 70%, 50%) as an RGB tuple."""
    return ImageColor.getrgb(f"hsl({row * 30}, 70%, 50%)")


@dataclass
class Paddle:
    x: float = 0.0
    y: float = 0.0
    width: float = PADDLE_WIDTH
    height: float = PADDLE_HEIGHT
    speed: float = PADDLE_SPEED


@dataclass
class Ball:
    """Ball center plus per-frame velocity."""
    x: float = 0.0
    y: float = 0.0
    radius: float = BALL_RADIUS
    dx: float = 0.0
    dy: float = 0.0


@dataclass
class Block:
    x: float
    y: float
    width: float = BLOCK_WIDTH
    height: float = BLOCK_HEIGHT
    visible: bool = True
    color: Color = (255, 255, 255)
    row: int = 0
    col: int = 0


@dataclass
class Session:
    """
    All mutable game state for one game instance.

    The controller owns exactly one Session. Physics mutates it during the
    update phase of a frame, the renderer only reads it.
    """
    width: int = FIELD_WIDTH
    height: int = FIELD_HEIGHT
    paddle: Paddle = field(default_factory=Paddle)
    ball: Ball = field(default_factory=Ball)
    blocks: List[Block] = field(default_factory=list)
    score: int = 0
    lives: int = START_LIVES
    running: bool = False
    rng: Optional[random.Random] = None

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Session: field size must be positive, got {self.width}x{self.height}")
        if self.paddle.speed < 0:
            raise ValueError(f"Session: paddle speed must be >= 0, got {self.paddle.speed}")
        if self.rng is None:
            self.rng = random.Random()
        self.paddle.y = self.height - PADDLE_BOTTOM_GAP
        self.center_paddle()
        # A new session is playable without an explicit reset.
        if not self.blocks:
            self.init_blocks()
            self.reset_ball()

    # ──────────────────────────────────────────
    # Initialization contract
    # ──────────────────────────────────────────

    def init_blocks(self) -> None:
        """Rebuild the full rows x cols grid in row-major order, all visible."""
        self.blocks.clear()
        for r in range(BLOCK_ROWS):
            for c in range(BLOCK_COLS):
                self.blocks.append(Block(
                    x=c * (BLOCK_WIDTH + BLOCK_PADDING) + BLOCK_OFFSET_LEFT,
                    y=r * (BLOCK_HEIGHT + BLOCK_PADDING) + BLOCK_OFFSET_TOP,
                    color=block_color(r),
                    row=r,
                    col=c,
                ))

    def center_paddle(self) -> None:
        self.paddle.x = self.width / 2 - self.paddle.width / 2

    def reset_ball(self) -> None:
        """Recenter the ball, send it upward, random horizontal sign."""
        b = self.ball
        b.x = self.width / 2
        b.y = self.height / 2
        b.dx = (1 if self.rng.random() > 0.5 else -1) * BALL_SPEED
        b.dy = -BALL_SPEED

    def reset_game(self) -> None:
        """Full reset: score, lives, paddle, ball and block grid."""
        self.score = 0
        self.lives = START_LIVES
        self.center_paddle()
        self.reset_ball()
        self.init_blocks()

    # ──────────────────────────────────────────
    # Queries
    # ──────────────────────────────────────────

    def visible_blocks(self) -> List[Block]:
        return [blk for blk in self.blocks if blk.visible]

    def all_cleared(self) -> bool:
        return all(not blk.visible for blk in self.blocks)

    def snapshot(self) -> dict:
        """Plain-data copy of the session (JSON serializable)."""
        p, b = self.paddle, self.ball
        return {
            "field": [self.width, self.height],
            "paddle": {"x": round(p.x, 4), "y": round(p.y, 4),
                       "width": p.width, "height": p.height, "speed": p.speed},
            "ball": {"x": round(b.x, 4), "y": round(b.y, 4), "radius": b.radius,
                     "dx": round(b.dx, 4), "dy": round(b.dy, 4)},
            "blocks": [[blk.row, blk.col] for blk in self.blocks if blk.visible],
            "score": self.score,
            "lives": self.lives,
            "running": self.running,
        }
