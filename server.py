"""
Block Breaker Web Server — local host (FastAPI + WebSocket)

Serves the canvas page and ticks the frame scheduler at display rate,
streaming draw commands and score / lives to browser clients over WebSocket.
"""

import asyncio
import io
import json
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse, Response
from fastapi.staticfiles import StaticFiles

from controller import BlockBreakerController
from entities import FIELD_WIDTH, FIELD_HEIGHT
import entities as _ent
import physics as _phys
from renderer import CommandSurface, snapshot

STATIC_DIR = Path(__file__).parent / "static"

# ── Controller ──────────────────────────────────────────────────────────────

ctrl = BlockBreakerController(surface=CommandSurface(FIELD_WIDTH, FIELD_HEIGHT))


# ── Lifespan (startup/shutdown) ─────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    ctrl.start()
    task = asyncio.create_task(game_loop())
    yield
    task.cancel()
    ctrl.dispose()


app = FastAPI(lifespan=lifespan)

clients: list[WebSocket] = []

# ── Game params (runtime tunables) ──────────────────────────────────────────

# SPIN_FACTOR only reshapes paddle bounces. Any non-default BLOCK_POINTS or
# BALL_SPEED steps outside the standard rules (10 points per block, speed 5 on
# every ball reset); they are sandbox knobs, restored by "reset_params".
GAME_PARAMS = [
    (_phys, "SPIN_FACTOR",  "Paddle Spin",  0.0,  16.0, 0.5),
    (_phys, "BLOCK_POINTS", "Block Points", 1,    100,  1),
    (_ent,  "BALL_SPEED",   "Ball Speed",   1.0,  15.0, 0.5),
]

PARAM_DEFAULTS = {attr: getattr(mod, attr) for mod, attr, *_ in GAME_PARAMS}

# ── Async game loop ─────────────────────────────────────────────────────────

TARGET_FPS = 60
FRAME_DT = 1.0 / TARGET_FPS


async def game_loop():
    """Refresh ticker: one scheduler tick and one broadcast per frame."""
    while True:
        now = time.perf_counter()

        ctrl.scheduler.tick()

        if clients:
            await _broadcast(_build_frame_message())

        elapsed = time.perf_counter() - now
        sleep_time = FRAME_DT - elapsed
        if sleep_time > 0:
            await asyncio.sleep(sleep_time)
        else:
            await asyncio.sleep(0)


async def _broadcast(text: str) -> None:
    """Send to every client, dropping the ones whose socket has gone away."""
    dead: list[WebSocket] = []
    for ws in clients:
        try:
            await ws.send_text(text)
        except Exception:
            dead.append(ws)
    for ws in dead:
        if ws in clients:
            clients.remove(ws)
    if dead:
        print(f"[WS] dropped {len(dead)} dead client(s) ({len(clients)} left)")


def _build_frame_message() -> str:
    """Serialize the last rendered frame plus drained controller events."""
    events = list(ctrl.pending_events)
    ctrl.pending_events.clear()

    frame = {
        "type": "frame",
        "commands": ctrl.surface.commands,
        "score": ctrl.session.score,
        "lives": ctrl.session.lives,
        "running": ctrl.running,
        "awaiting_ack": ctrl.awaiting_ack,
        "events": events,
    }
    return json.dumps(frame, separators=(',', ':'))


# ── Params helpers ──────────────────────────────────────────────────────────

def _get_params_data() -> list:
    """Return all tunables with current values."""
    result = []
    for mod, attr, label, mn, mx, step in GAME_PARAMS:
        result.append({
            "attr": attr, "label": label,
            "value": getattr(mod, attr),
            "min": mn, "max": mx, "step": step,
        })
    return result


def _adjust_param(idx: int, direction: int) -> dict | None:
    if not 0 <= idx < len(GAME_PARAMS):
        return None
    mod, attr, label, mn, mx, step = GAME_PARAMS[idx]
    cur = getattr(mod, attr)
    new_val = type(cur)(max(mn, min(mx, cur + direction * step)))
    setattr(mod, attr, new_val)
    print(f"[PARAM] {attr} {cur} -> {new_val}")
    return {"type": "param_update", "index": idx, "value": new_val}


def _reset_params() -> None:
    for mod, attr, *_ in GAME_PARAMS:
        setattr(mod, attr, PARAM_DEFAULTS[attr])
    print("[PARAM] defaults restored")


# ── Message dispatch ────────────────────────────────────────────────────────

def _handle_message(msg: dict) -> dict | None:
    """Apply one client command. Returns a reply message or None."""
    cmd = msg.get("cmd", "")
    if cmd == "key_down":
        ctrl.key_down(msg.get("key", ""))
    elif cmd == "key_up":
        ctrl.key_up(msg.get("key", ""))
    elif cmd == "ack":
        ctrl.acknowledge()
    elif cmd == "get_state":
        return {"type": "state", "data": ctrl.get_state()}
    elif cmd == "get_params":
        return {"type": "params", "data": _get_params_data()}
    elif cmd == "adjust_param":
        try:
            idx = int(msg.get("index", -1))
            direction = int(msg.get("direction", 0))
        except (TypeError, ValueError):
            return None
        return _adjust_param(idx, direction)
    elif cmd == "reset_params":
        _reset_params()
        return {"type": "params", "data": _get_params_data()}
    return None


# ── WebSocket endpoint ──────────────────────────────────────────────────────

@app.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await ws.accept()
    clients.append(ws)
    print(f"[WS] client connected ({len(clients)} total)")

    await ws.send_text(json.dumps({
        "type": "init",
        "width": ctrl.session.width,
        "height": ctrl.session.height,
    }))

    try:
        while True:
            data = await ws.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                continue
            if not isinstance(msg, dict):
                continue

            reply = _handle_message(msg)
            if reply is not None:
                await ws.send_text(json.dumps(reply))
    except WebSocketDisconnect:
        pass
    finally:
        if ws in clients:
            clients.remove(ws)
        ctrl.keys.release_all()
        print(f"[WS] client disconnected ({len(clients)} left)")


# ── Static files + root route ───────────────────────────────────────────────

app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")


@app.get("/")
async def root():
    return FileResponse(STATIC_DIR / "index.html")


@app.get("/snapshot.png")
async def snapshot_png():
    """Current session rasterized server-side, for bug reports and debugging."""
    buf = io.BytesIO()
    snapshot(ctrl.session, buf)
    return Response(buf.getvalue(), media_type="image/png")


# ── Run with uvicorn ────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("server:app", host="0.0.0.0", port=8000, reload=False)
