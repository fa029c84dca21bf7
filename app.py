import os, secrets
from datetime import datetime, timezone
from flask import Flask, jsonify, request
from flask_socketio import SocketIO, join_room, emit
from loguru import logger
from sqlmodel import SQLModel, Session, select
from models import Widget, make_engine
from puzzles.eco_sort import Category, EcoSortChallenge, Verdict
from services import game_state, mqtt_bridge
from services.countdown import Countdown

# ------------------ DB / APP / SOCKET ------------------
DB_URI = os.getenv("DB_URI", "sqlite://")
engine = make_engine(DB_URI)
SQLModel.metadata.create_all(engine)

app = Flask(__name__)
app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", "dev")
socketio = SocketIO(app, async_mode=os.getenv("SOCKETIO_ASYNC_MODE", "eventlet"),
                    cors_allowed_origins="*")

# ------------------ IN-MEMORY STATE ------------------
_CHALLENGES: dict[str, EcoSortChallenge] = {}
_COUNTDOWNS: dict[str, Countdown] = {}
_ROWS: dict[str, int] = {}          # widget code -> Widget.id of the live challenge
_OWNERS: dict[str, set[str]] = {}   # socket sid -> widget codes

# ledger verdict for widgets closed while still pending
ABANDONED = "abandoned"

# ------------------ HELPERS ------------------
def save(obj):
    with Session(engine) as s:
        s.add(obj); s.commit(); s.refresh(obj); return obj

def get_row(code: str) -> Widget | None:
    """Most recent ledger row for a widget (replays add rows)."""
    with Session(engine) as s:
        return s.exec(select(Widget).where(Widget.code == code)
                      .order_by(Widget.id.desc())).first()

def state_payload(code: str, ch: EcoSortChallenge) -> dict:
    payload = ch.snapshot()
    payload.update({
        "widget": code,
        "finished": ch.is_over,
        "colors": {c.value: game_state.bin_color(ch, c) for c in Category},
        "chrono": game_state.chrono_color(ch.time_remaining, ch.duration, ch.is_over),
        "message": game_state.outcome_message(ch),
    })
    return payload

def verdict_payload(ch: EcoSortChallenge) -> dict:
    return {
        "verdict": ch.verdict.value,
        "reason": ch.reason.value,
        "time_remaining": ch.time_remaining,
        "message": game_state.outcome_message(ch),
    }

def parse_item_id(raw) -> int | None:
    """Drag sources send the id as a number or a digit string; anything else is junk."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.isascii() and raw.isdigit():
        return int(raw)
    return None

def open_widget(code: str) -> EcoSortChallenge:
    ch = game_state.new_challenge()
    _CHALLENGES[code] = ch
    _ROWS[code] = save(Widget(code=code, duration_sec=ch.duration)).id
    start_countdown(code, ch)
    logger.info("[Widget] {} started ({} items, {}s)", code, len(ch.catalog), ch.duration)
    return ch

def record(code: str, ch: EcoSortChallenge, verdict: str | None = None):
    """Stamp the ledger row of the live challenge as finished."""
    row_id = _ROWS.get(code)
    if row_id is None:
        return
    with Session(engine) as s:
        row = s.get(Widget, row_id)
        if row:
            row.verdict = verdict or ch.verdict.value
            row.reason = ch.reason.value
            row.time_remaining = ch.time_remaining
            row.placed_count = len(ch.catalog) - len(ch.pool)
            row.finished_at = datetime.now(timezone.utc)
            s.add(row); s.commit()

def dispose_widget(code: str):
    cd = _COUNTDOWNS.get(code)
    if cd:
        cd.cancel()
    ch = _CHALLENGES.get(code)
    if ch and not ch.is_over:
        # closed before a verdict: the row must not look live
        record(code, ch, verdict=ABANDONED)
    _CHALLENGES.pop(code, None)
    _ROWS.pop(code, None)
    logger.info("[Widget] {} disposed", code)

def finish(code: str, ch: EcoSortChallenge):
    """Terminal verdict reached: record it, stop the clock, notify observers."""
    cd = _COUNTDOWNS.get(code)
    if cd:
        cd.cancel()

    record(code, ch)

    mqtt_bridge.verdict(code, ch.verdict.value, ch.reason.value)
    if ch.verdict is Verdict.PASSED:
        mqtt_bridge.led(code, True)
    else:
        mqtt_bridge.buzzer(code, 300)

    socketio.emit("verdict", verdict_payload(ch), to=code)
    logger.info("[Widget] {} {} ({}) with {}s left",
                code, ch.verdict.value, ch.reason.value, ch.time_remaining)

def on_countdown_tick(code: str, ch: EcoSortChallenge, last: dict):
    color = game_state.chrono_color(ch.time_remaining, ch.duration, ch.is_over)
    if color != last.get("color"):
        mqtt_bridge.chrono_color(code, color); last["color"] = color
    socketio.emit("state", state_payload(code, ch), to=code)
    if ch.is_over:
        finish(code, ch)

def start_countdown(code: str, ch: EcoSortChallenge) -> Countdown:
    last: dict = {}

    def _release(c: EcoSortChallenge):
        if _COUNTDOWNS.get(code) is cd:
            _COUNTDOWNS.pop(code)
        mqtt_bridge.chrono_color(code, "off")

    cd = Countdown(ch, on_tick=lambda c: on_countdown_tick(code, c, last),
                   on_release=_release, sleep=socketio.sleep, name=code)
    _COUNTDOWNS[code] = cd
    socketio.start_background_task(cd.run)
    return cd

# ------------------ ROUTES ------------------
@app.route("/")
def index():
    return jsonify(game_state.prompt())

@app.route("/widget/<code>")
def widget(code):
    ch = _CHALLENGES.get(code)
    if ch:
        return jsonify(state_payload(code, ch))
    row = get_row(code)
    if not row:
        return jsonify({"error": "unknown widget"}), 404
    return jsonify({
        "widget": code,
        "finished": row.finished_at is not None,
        "verdict": row.verdict,
        "reason": row.reason,
        "time_remaining": row.time_remaining,
    })

# ------------------ SOCKETS ------------------
@socketio.on("start")
def on_start(data=None):
    code = secrets.token_hex(3).upper()
    ch = open_widget(code)
    _OWNERS.setdefault(request.sid, set()).add(code)
    join_room(code)
    emit("state", state_payload(code, ch))

@socketio.on("drop")
def on_drop(data):
    if not isinstance(data, dict):
        return
    code = data.get("room")
    if not isinstance(code, str) or code not in _OWNERS.get(request.sid, set()):
        return
    ch = _CHALLENGES.get(code)
    if not ch:
        return
    item_id = parse_item_id(data.get("item_id"))
    if item_id is None:
        logger.debug("[Widget] {} ignored drop: bad item id {!r}", code, data.get("item_id"))
        return
    if not ch.place_item(data.get("bin"), item_id):
        logger.debug("[Widget] {} ignored drop: {} -> {}", code, item_id, data.get("bin"))
        return
    emit("state", state_payload(code, ch), to=code)
    if ch.is_over:
        finish(code, ch)

@socketio.on("replay")
def on_replay(data):
    if not isinstance(data, dict):
        return
    code = data.get("room")
    if not isinstance(code, str) or code not in _OWNERS.get(request.sid, set()):
        return
    dispose_widget(code)
    ch = open_widget(code)
    emit("state", state_payload(code, ch), to=code)

@socketio.on("disconnect")
def on_disconnect(*args):
    for code in _OWNERS.pop(request.sid, set()):
        dispose_widget(code)

# ------------------ MAIN ------------------
def main():
    socketio.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 5050)))

if __name__ == "__main__":
    main()
