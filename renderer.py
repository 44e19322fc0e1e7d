"""
Block Breaker Renderer — stateless per-frame draw onto a 2D surface.

Surfaces:
  CommandSurface : records canvas-style draw commands (sent to the browser page)
  ImageSurface   : paints into a Pillow RGB image (snapshots, pixel tests)
"""

from typing import List, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from entities import Session

# ── Palette ──────────────────────────────────────────────────────────────────
BACKGROUND   = (0, 0, 0)
PADDLE_COLOR = (0, 122, 204)          # #007acc
BALL_COLOR   = (255, 255, 255)
BLOCK_STROKE = (255, 255, 255)
SCRIM_COLOR  = (0, 0, 0, 128)         # rgba(0, 0, 0, 0.5)
TEXT_COLOR   = (255, 255, 255)

PROMPT_TEXT = "Press SPACE to start"
PROMPT_SIZE = 48


def css_color(color: Tuple[int, ...]) -> str:
    """RGB(A) tuple → CSS color string (alpha 0-255 becomes 0-1)."""
    if len(color) == 4:
        r, g, b, a = color
        return f"rgba({r},{g},{b},{round(a / 255, 3)})"
    r, g, b = color[:3]
    return f"rgb({r},{g},{b})"


# ──────────────────────────────────────────────────────────────────────────────
# Surfaces
# ──────────────────────────────────────────────────────────────────────────────

class CommandSurface:
    """Records draw calls as JSON-ready dicts for an HTML canvas client."""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.commands: List[dict] = []

    def clear(self, color=BACKGROUND) -> None:
        self.commands = [{"op": "clear", "color": css_color(color)}]

    def fill_rect(self, x, y, w, h, color) -> None:
        self.commands.append({"op": "fill_rect", "x": round(x, 2), "y": round(y, 2),
                              "w": w, "h": h, "color": css_color(color)})

    def stroke_rect(self, x, y, w, h, color) -> None:
        self.commands.append({"op": "stroke_rect", "x": round(x, 2), "y": round(y, 2),
                              "w": w, "h": h, "color": css_color(color)})

    def fill_circle(self, x, y, r, color) -> None:
        self.commands.append({"op": "fill_circle", "x": round(x, 2), "y": round(y, 2),
                              "r": r, "color": css_color(color)})

    def fill_text(self, text, x, y, color, size) -> None:
        self.commands.append({"op": "fill_text", "text": text, "x": x, "y": y,
                              "size": size, "color": css_color(color)})


class ImageSurface:
    """Pillow-backed surface. Translucent fills are alpha-blended."""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.image = Image.new("RGB", (width, height), BACKGROUND)
        self._draw = ImageDraw.Draw(self.image, "RGBA")
        self._fonts: dict = {}

    def _font(self, size: int):
        if size not in self._fonts:
            try:
                self._fonts[size] = ImageFont.truetype("arial.ttf", size)
            except OSError:
                self._fonts[size] = ImageFont.load_default(size=size)
        return self._fonts[size]

    def clear(self, color=BACKGROUND) -> None:
        self._draw.rectangle([0, 0, self.width, self.height], fill=tuple(color[:3]))

    def fill_rect(self, x, y, w, h, color) -> None:
        self._draw.rectangle([x, y, x + w - 1, y + h - 1], fill=tuple(color))

    def stroke_rect(self, x, y, w, h, color) -> None:
        self._draw.rectangle([x, y, x + w - 1, y + h - 1], outline=tuple(color), width=1)

    def fill_circle(self, x, y, r, color) -> None:
        self._draw.ellipse([x - r, y - r, x + r, y + r], fill=tuple(color))

    def fill_text(self, text, x, y, color, size) -> None:
        self._draw.text((x, y), text, fill=tuple(color), font=self._font(size), anchor="mm")

    def to_array(self) -> np.ndarray:
        """H x W x 3 uint8 copy of the current image."""
        return np.asarray(self.image).copy()

    def save(self, fp, format: str = None) -> None:
        self.image.save(fp, format=format)


# ──────────────────────────────────────────────────────────────────────────────
# Renderer
# ──────────────────────────────────────────────────────────────────────────────

class Renderer:
    """Paints a Session. Never mutates it."""

    @staticmethod
    def draw(session: Session, surface) -> None:
        surface.clear(BACKGROUND)

        p = session.paddle
        surface.fill_rect(p.x, p.y, p.width, p.height, PADDLE_COLOR)

        b = session.ball
        surface.fill_circle(b.x, b.y, b.radius, BALL_COLOR)

        for blk in session.blocks:
            if blk.visible:
                surface.fill_rect(blk.x, blk.y, blk.width, blk.height, blk.color)
                surface.stroke_rect(blk.x, blk.y, blk.width, blk.height, BLOCK_STROKE)

        if not session.running:
            surface.fill_rect(0, 0, session.width, session.height, SCRIM_COLOR)
            surface.fill_text(PROMPT_TEXT, session.width / 2, session.height / 2,
                              TEXT_COLOR, PROMPT_SIZE)


def snapshot(session: Session, fp, format: str = "PNG") -> None:
    """Render the session as an image into a path or binary file object."""
    surface = ImageSurface(session.width, session.height)
    Renderer.draw(session, surface)
    surface.save(fp, format=format)
