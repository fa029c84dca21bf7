from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


class Category(str, Enum):
    RECYCLING = "recycling"
    COMPOST = "compost"
    TRASH = "trash"

    @classmethod
    def parse(cls, value: Any) -> Optional["Category"]:
        """Tolerant lookup: unknown values give None instead of raising."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class Verdict(str, Enum):
    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"


class FailureReason(str, Enum):
    NONE = "none"
    WRONG_BIN = "wrong-bin"
    EXPIRED = "expired"


@dataclass(frozen=True)
class Item:
    id: int
    name: str
    emoji: str
    category: Category

    def __post_init__(self):
        # catalogs loaded from dicts carry plain strings
        object.__setattr__(self, "category", Category(self.category))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "emoji": self.emoji,
                "category": self.category.value}


@dataclass
class Receptacle:
    category: Category
    items: List[Item] = field(default_factory=list)
    has_error: bool = False  # sticky


class EcoSortChallenge:
    """
    Drag-and-drop sorting challenge: every catalog item must land in its
    own category before the countdown runs out.

    A single wrong drop fails the whole challenge (reason ``wrong-bin``);
    the countdown reaching zero fails it with reason ``expired``. Once the
    verdict leaves ``pending`` the challenge is frozen.
    """

    def __init__(self, catalog: Iterable[Item], duration_sec: int = 120):
        self.catalog: tuple[Item, ...] = tuple(catalog)
        _check_catalog(self.catalog)
        if int(duration_sec) <= 0:
            raise ValueError(f"duration must be positive, got {duration_sec}")

        self.duration = int(duration_sec)
        self.time_remaining = self.duration
        self.verdict = Verdict.PENDING
        self.reason = FailureReason.NONE
        self.receptacles: Dict[Category, Receptacle] = {c: Receptacle(c) for c in Category}
        self._pool: Dict[int, Item] = {item.id: item for item in self.catalog}

    # ---- Observable state
    @property
    def pool(self) -> List[Item]:
        return list(self._pool.values())

    @property
    def is_over(self) -> bool:
        return self.verdict is not Verdict.PENDING

    def receptacle(self, category: Category | str) -> Receptacle:
        return self.receptacles[Category(category)]

    # ---- Transitions
    def place_item(self, category: Category | str, item_id: int) -> bool:
        """
        Drop ``item_id`` into ``category``. Returns True if state changed.
        Stale or malformed drops (terminal challenge, item not in the pool,
        unknown category) are ignored.
        """
        if self.is_over:
            return False
        target = Category.parse(category)
        item = self._pool.get(item_id) if _is_item_id(item_id) else None
        if target is None or item is None:
            return False

        if item.category is not target:
            self.receptacles[target].has_error = True
            self._fail(FailureReason.WRONG_BIN)
            return True

        del self._pool[item.id]
        self.receptacles[target].items.append(item)
        # evaluated after the placement is committed
        if not self._pool:
            self.verdict = Verdict.PASSED
        return True

    def tick(self) -> bool:
        """One second elapsed. Returns True if the countdown moved."""
        if self.is_over or self.time_remaining == 0:
            return False
        self.time_remaining -= 1
        if self.time_remaining == 0:
            self._fail(FailureReason.EXPIRED)
        return True

    def _fail(self, reason: FailureReason) -> None:
        self.verdict = Verdict.FAILED
        self.reason = reason

    # ---- Renderer payload
    def snapshot(self) -> Dict[str, Any]:
        return {
            "pool": [i.to_dict() for i in self._pool.values()],
            "bins": {
                c.value: {
                    "items": [i.to_dict() for i in r.items],
                    "has_error": r.has_error,
                }
                for c, r in self.receptacles.items()
            },
            "time_remaining": self.time_remaining,
            "duration": self.duration,
            "verdict": self.verdict.value,
            "reason": self.reason.value,
        }


def _is_item_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_catalog(catalog: tuple[Item, ...]) -> None:
    if not catalog:
        raise ValueError("catalog is empty")
    seen: set[int] = set()
    for item in catalog:
        if not _is_item_id(item.id) or item.id <= 0:
            raise ValueError(f"item id must be a positive int: {item.id!r}")
        if item.id in seen:
            raise ValueError(f"duplicate item id {item.id}")
        seen.add(item.id)
