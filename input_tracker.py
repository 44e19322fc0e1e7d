"""
Input Tracker — raw key events → pressed-key map.

Two input semantics are kept apart:
  - movement (left / right) is level-sampled: physics reads held() every frame
  - toggle (start / pause) is edge-triggered: on_toggle fires once per press
"""

from typing import Callable, Dict, Optional

# Logical action → raw key identifiers (browser KeyboardEvent.key names plus
# lowercase aliases used by non-browser hosts).
KEY_BINDINGS: Dict[str, tuple] = {
    "left":   ("ArrowLeft", "a", "A", "left"),
    "right":  ("ArrowRight", "d", "D", "right"),
    "toggle": (" ", "Space", "space"),
}

_ACTION_FOR_KEY = {k: action for action, keys in KEY_BINDINGS.items() for k in keys}


def action_for(key: str) -> Optional[str]:
    """Return the logical action bound to a raw key, or None."""
    return _ACTION_FOR_KEY.get(key)


class InputTracker:
    """Persistent pressed-key map with an edge-triggered toggle callback."""

    def __init__(self, on_toggle: Optional[Callable[[], None]] = None):
        self.keys: Dict[str, bool] = {}
        self.on_toggle = on_toggle

    def key_down(self, key: str) -> None:
        was_pressed = self.keys.get(key, False)
        self.keys[key] = True
        # Auto-repeat sends key_down again while held; only the transition counts.
        if not was_pressed and action_for(key) == "toggle" and self.on_toggle is not None:
            self.on_toggle()

    def key_up(self, key: str) -> None:
        self.keys[key] = False

    def held(self, action: str) -> bool:
        """True if any raw key bound to `action` is currently pressed."""
        return any(self.keys.get(k, False) for k in KEY_BINDINGS.get(action, ()))

    def release_all(self) -> None:
        self.keys.clear()
