"""
BlockBreakerController — Game Loop Controller

Owns the Session, the physics engine, the input tracker and the render surface.
The host (server.py, or a test) drives it through:
  ctrl.key_down(key) / ctrl.key_up(key)   — raw key events
  ctrl.scheduler.tick()                   — one display refresh
  ctrl.acknowledge()                      — user dismissed the win / game-over notice
  ctrl.pending_events                     — list of dicts to consume (alert, update_ui)
"""

import json
import random
from typing import Callable, List, Optional

from entities import Session
from input_tracker import InputTracker
from physics import PhysicsEngine
from renderer import CommandSurface, Renderer


class FrameScheduler:
    """
    "Run this on the next refresh" queue.

    The host calls tick() once per display refresh; tests call it by hand.
    Callbacks requested during a tick run on the following tick.
    """

    def __init__(self):
        self._queue: List[Callable[[], None]] = []
        self.ticks = 0

    def request_frame(self, callback: Callable[[], None]) -> None:
        self._queue.append(callback)

    @property
    def pending(self) -> int:
        return len(self._queue)

    def tick(self) -> int:
        """Run every callback queued before this tick. Returns how many ran."""
        batch, self._queue = self._queue, []
        self.ticks += 1
        for cb in batch:
            cb()
        return len(batch)


class BlockBreakerController:
    """Update → render once per refresh while running; start / pause / reset."""

    WIN_MSG       = "Congratulations! You won!"
    GAME_OVER_MSG = "Game Over! Press SPACE to restart."

    # ── Constructor ───────────────────────────────────────────────────────────

    def __init__(self, surface=None, scheduler: Optional[FrameScheduler] = None,
                 notifier: Optional[Callable[[str, str], None]] = None,
                 on_readout: Optional[Callable[[int, int], None]] = None,
                 rng: Optional[random.Random] = None,
                 session: Optional[Session] = None):
        self.session   = session if session is not None else Session(rng=rng)
        self.engine    = PhysicsEngine()
        self.keys      = InputTracker(on_toggle=self.toggle)
        self.renderer  = Renderer()
        self.surface   = surface if surface is not None else CommandSurface(
            self.session.width, self.session.height)
        self.scheduler = scheduler if scheduler is not None else FrameScheduler()

        # notifier(kind, msg) blocks until the user acknowledges. Without one,
        # the host must call acknowledge() before the round is reset.
        self.notifier   = notifier
        self.on_readout = on_readout

        self.awaiting_ack: Optional[str] = None   # None | "win" | "game_over"
        self.frame_count = 0
        self.pending_events: list[dict] = []

        self._frame_pending = False
        self._disposed      = False

    @property
    def running(self) -> bool:
        return self.session.running

    # ──────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ──────────────────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Fresh round, paused, first frame drawn."""
        self.session.running = False
        self.reset_game()
        self.render()

    def reset_game(self) -> None:
        self.session.reset_game()
        self._sync_ui()
        print(f"[GAME] reset  blocks={len(self.session.blocks)}  lives={self.session.lives}")

    def dispose(self) -> None:
        self.session.running = False
        self.keys.release_all()
        self._disposed = True

    # ──────────────────────────────────────────────────────────────────────────
    # Input
    # ──────────────────────────────────────────────────────────────────────────

    def key_down(self, key: str) -> None:
        self.keys.key_down(key)

    def key_up(self, key: str) -> None:
        self.keys.key_up(key)

    def toggle(self) -> None:
        """Start / pause. Ignored while a round-end notice is unacknowledged."""
        if self._disposed or self.awaiting_ack is not None:
            return
        self.session.running = not self.session.running
        if self.session.running:
            if not self._frame_pending:
                self._request_frame()
        elif not self._frame_pending:
            self.render()

    # ──────────────────────────────────────────────────────────────────────────
    # Main loop
    # ──────────────────────────────────────────────────────────────────────────

    def _request_frame(self) -> None:
        self._frame_pending = True
        self.scheduler.request_frame(self.frame)

    def frame(self) -> None:
        """One refresh: update, render, reschedule while running."""
        self._frame_pending = False
        if self._disposed:
            return
        self.update()
        self.render()
        self.frame_count += 1
        if self.session.running:
            self._request_frame()

    def update(self) -> None:
        if not self.session.running:
            return
        self.engine.update(self.session, self.keys)

        kinds = [ev["type"] for ev in self.engine.events]
        if any(k in ("block", "life_lost", "game_over") for k in kinds):
            self._sync_ui()

        if "win" in kinds:
            self._end_round("win", self.WIN_MSG)
        elif "game_over" in kinds:
            self._end_round("game_over", self.GAME_OVER_MSG)

    def render(self) -> None:
        self.renderer.draw(self.session, self.surface)

    # ──────────────────────────────────────────────────────────────────────────
    # Round end
    # ──────────────────────────────────────────────────────────────────────────

    def _end_round(self, kind: str, msg: str) -> None:
        self.session.running = False
        self.awaiting_ack = kind
        print(f"[GAME] {kind}  score={self.session.score}")
        self.pending_events.append({"type": "alert", "kind": kind, "msg": msg})
        if self.notifier is not None:
            self.notifier(kind, msg)
            self.acknowledge()

    def acknowledge(self) -> None:
        """Round-end notice dismissed: full reset, then redraw."""
        if self.awaiting_ack is None:
            return
        self.awaiting_ack = None
        self.reset_game()
        self.render()

    # ──────────────────────────────────────────────────────────────────────────
    # Readouts / state
    # ──────────────────────────────────────────────────────────────────────────

    def _sync_ui(self) -> None:
        score, lives = self.session.score, self.session.lives
        if self.on_readout is not None:
            self.on_readout(score, lives)
        self.pending_events.append({"type": "update_ui", "score": score, "lives": lives})

    def get_state(self) -> dict:
        state = self.session.snapshot()
        state["awaiting_ack"] = self.awaiting_ack
        state["frame"] = self.frame_count
        return state

    def get_state_json(self) -> str:
        return json.dumps(self.get_state(), separators=(',', ':'))
