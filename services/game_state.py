# services/game_state.py
from __future__ import annotations
import os
from typing import Any, Dict, List

from puzzles.eco_sort import Category, EcoSortChallenge, FailureReason, Item, Verdict

# ---- Challenge timing (seconds)
CHALLENGE_DURATION_SEC = int(os.getenv("CHALLENGE_DURATION_SEC", "120"))
TICK_INTERVAL_SEC = float(os.getenv("TICK_INTERVAL_SEC", "1.0"))

# =========================
# Catalog & receptacles
# =========================
DEFAULT_CATALOG: List[Item] = [
    Item(1, "Plastic Bottle", "🥤", Category.RECYCLING),
    Item(2, "Apple Core", "🍎", Category.COMPOST),
    Item(3, "Newspaper", "📰", Category.RECYCLING),
    Item(4, "Candy Wrapper", "🍬", Category.TRASH),
]
BINS = [
    {"id": "recycling", "name": "Recycling", "icon": "♻️",
     "instruction": "Plastic bottles, newspapers."},
    {"id": "compost", "name": "Compost", "icon": "🌱",
     "instruction": "Organic waste like apple cores."},
    {"id": "trash", "name": "Trash", "icon": "🗑️",
     "instruction": "Non-recyclable items like candy wrappers."},
]

MESSAGES = {
    FailureReason.NONE: "🎉 Congratulations! You’ve sorted all items correctly.",
    FailureReason.WRONG_BIN: "❌ CAPTCHA failed. Please try again.",
    FailureReason.EXPIRED: "⏰ Time’s up! CAPTCHA expired.",
}


def new_challenge(catalog: List[Item] | None = None, duration_sec: int | None = None) -> EcoSortChallenge:
    return EcoSortChallenge(
        catalog if catalog is not None else DEFAULT_CATALOG,
        duration_sec if duration_sec is not None else CHALLENGE_DURATION_SEC,
    )


def prompt(catalog: List[Item] | None = None) -> Dict[str, Any]:
    items = catalog if catalog is not None else DEFAULT_CATALOG
    glyphs = ", ".join(i.emoji for i in items)
    return {
        "type": "eco_sort",
        "title": "🌍 EcoSort CAPTCHA",
        "instruction": f"Drag items like {glyphs} into their correct bins.",
        "bins": BINS,
        "objects": [i.to_dict() for i in items],
        "duration": CHALLENGE_DURATION_SEC,
    }


def outcome_message(ch: EcoSortChallenge) -> str | None:
    """Alert text for a finished challenge, None while it is running."""
    if not ch.is_over:
        return None
    return MESSAGES[ch.reason]


def bin_color(ch: EcoSortChallenge, category: Category | str) -> str:
    # a wrong drop wins over a pass (only one can happen anyway)
    if ch.receptacle(category).has_error:
        return "red"
    if ch.verdict is Verdict.PASSED:
        return "green"
    return "gray"


def chrono_color(remaining: int, duration: int, finished: bool = False) -> str:
    if finished:
        return "off"
    ratio = remaining / max(1, duration)
    return "green" if ratio >= 0.6 else ("yellow" if ratio >= 0.3 else "red")
