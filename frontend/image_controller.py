"""Per-item image state for one day's workout or diet list.

Each ``DayImageList`` owns the states of its items and the list's cooldown
clock. A fetch goes through ``begin`` (rate gate, sequence bump), then the
fetcher, then ``complete`` or ``fail``. Completions carrying a sequence older
than the item's latest are dropped.
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence
from urllib.parse import quote

from backend.errors import ImageFetchError
from backend.models import DailyDiet, DailyWorkout

from .image_cache import ImageCache

logger = logging.getLogger(__name__)

COOLDOWN_SECONDS = 5.0
CACHE_PREFIX = "cache_img_"

Fetcher = Callable[[str], str]


def _normalize(text: str) -> str:
    # "|" and "%" are percent-encoded, so the separator below is unambiguous
    return quote(" ".join(text.split()).casefold(), safe=" ")


def cache_key(day: str, name: str) -> str:
    """Deterministic cache key for an item; ignores case and incidental whitespace."""
    return f"{CACHE_PREFIX}{_normalize(day)}|{_normalize(name)}"


class ItemKind(str, Enum):
    WORKOUT = "workout"
    DIET = "diet"

    def prompt_for(self, name: str, focus: str = "") -> str:
        if self is ItemKind.WORKOUT:
            return f"{name}, {focus} exercise form, photorealistic, gym background"
        return f"{name}, realistic food photography, high angle, studio lighting"


class ItemStatus(str, Enum):
    IDLE = "idle"
    ATTEMPTED_EMPTY = "attempted_empty"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass
class ItemImageState:
    name: str
    key: str
    status: ItemStatus = ItemStatus.IDLE
    image: Optional[str] = None
    error: Optional[str] = None
    is_open: bool = False
    seq: int = 0


@dataclass(frozen=True)
class FetchTicket:
    index: int
    seq: int
    prompt: str


class DayImageList:
    def __init__(
        self,
        day: str,
        names: Sequence[str],
        kind: ItemKind,
        cache: ImageCache,
        fetch: Fetcher,
        focus: str = "",
        cooldown: float = COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.day = day
        self.kind = kind
        self.focus = focus
        self.cooldown = cooldown
        self.last_success: Optional[float] = None
        self._cache = cache
        self._fetch = fetch
        self._clock = clock
        self.items: List[ItemImageState] = []
        for name in names:
            key = cache_key(day, name)
            cached = cache.get(key)
            state = ItemImageState(name=name, key=key)
            if cached:
                state.image = cached
                state.status = ItemStatus.READY
            self.items.append(state)

    @classmethod
    def for_workout(cls, day_plan: DailyWorkout, cache: ImageCache, fetch: Fetcher, **kwargs) -> "DayImageList":
        names = [ex.name for ex in day_plan.exercises]
        return cls(day_plan.day, names, ItemKind.WORKOUT, cache, fetch, focus=day_plan.focus, **kwargs)

    @classmethod
    def for_diet(cls, day_plan: DailyDiet, cache: ImageCache, fetch: Fetcher, **kwargs) -> "DayImageList":
        names = [meal.name for meal in day_plan.meals]
        return cls(day_plan.day, names, ItemKind.DIET, cache, fetch, **kwargs)

    def prompt(self, index: int) -> str:
        return self.kind.prompt_for(self.items[index].name, self.focus)

    def cooldown_remaining(self) -> float:
        if self.last_success is None:
            return 0.0
        return max(0.0, self.cooldown - (self._clock() - self.last_success))

    # --- fetch lifecycle ---

    def begin(self, index: int) -> Optional[FetchTicket]:
        """Pass the rate gate and move the item to LOADING, or reject it."""
        item = self.items[index]
        remaining = self.cooldown_remaining()
        if remaining > 0:
            item.status = ItemStatus.FAILED
            item.error = f"Rate limit: Wait {math.ceil(remaining)}s."
            logger.debug("Rate limited %s (%.1fs left)", item.key, remaining)
            return None
        item.seq += 1
        item.status = ItemStatus.LOADING
        item.error = None
        return FetchTicket(index=index, seq=item.seq, prompt=self.prompt(index))

    def _is_current(self, ticket: FetchTicket) -> bool:
        item = self.items[ticket.index]
        if ticket.seq != item.seq:
            logger.info("Discarding stale image result for %s (seq %d, latest %d)", item.key, ticket.seq, item.seq)
            return False
        return True

    def complete(self, ticket: FetchTicket, handle: str) -> bool:
        if not self._is_current(ticket):
            return False
        item = self.items[ticket.index]
        self._cache.set(item.key, handle)
        item.image = handle
        item.error = None
        item.status = ItemStatus.READY
        self.last_success = self._clock()
        return True

    def fail(self, ticket: FetchTicket, message: str) -> bool:
        if not self._is_current(ticket):
            return False
        item = self.items[ticket.index]
        item.error = message
        item.status = ItemStatus.FAILED
        return True

    def run(self, ticket: FetchTicket) -> ItemImageState:
        try:
            handle = self._fetch(ticket.prompt)
        except ImageFetchError as e:
            logger.warning("Image fetch failed for %s: %s", self.items[ticket.index].key, e)
            self.fail(ticket, str(e))
        else:
            self.complete(ticket, handle)
        return self.items[ticket.index]

    def _trigger(self, index: int) -> ItemImageState:
        ticket = self.begin(index)
        if ticket is not None:
            self.run(ticket)
        return self.items[index]

    # --- user actions ---

    def toggle(self, index: int) -> ItemImageState:
        """Expand or collapse an item; the first expansion without an image fetches one."""
        item = self.items[index]
        item.is_open = not item.is_open
        if item.is_open and item.status not in (ItemStatus.READY, ItemStatus.LOADING):
            return self._trigger(index)
        return item

    def generate(self, index: int) -> ItemImageState:
        item = self.items[index]
        if item.status in (ItemStatus.READY, ItemStatus.LOADING):
            return item
        return self._trigger(index)

    def regenerate(self, index: int) -> ItemImageState:
        self.clear(index)
        return self._trigger(index)

    def clear(self, index: int) -> ItemImageState:
        """Drop the cached image; any fetch still in flight for the item is orphaned."""
        item = self.items[index]
        self._cache.delete(item.key)
        item.seq += 1
        item.image = None
        item.error = None
        item.status = ItemStatus.ATTEMPTED_EMPTY
        return item
