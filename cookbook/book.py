"""
Page navigation for the virtual book.

Page 0 is the welcome page and pages 1..N show the recipes in store order.
Turning a page is a two-phase transition: the index moves after
FLIP_TURN_DELAY and the flip lock is released after FLIP_SETTLE_DELAY.
Requests made while a flip is running, or past either end of the book, are
ignored.
"""
import threading
from enum import Enum
from functools import partial
from typing import Callable, List, Optional

from .pages import RecipePage
from .schemas import Recipe
from .timers import Scheduler, ThreadingScheduler, TimerHandle


FLIP_TURN_DELAY = 0.25
FLIP_SETTLE_DELAY = 0.5


class FlipDirection(str, Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


class RecipeBook:
    def __init__(self, scheduler: Optional[Scheduler] = None, page: Optional[RecipePage] = None):
        self.scheduler = scheduler or ThreadingScheduler()
        self.page = page or RecipePage()
        self.recipes: List[Recipe] = []
        self.current_page_index = 0
        self.is_flipping = False
        self.flip_direction = FlipDirection.FORWARD
        self._timers: List[TimerHandle] = []
        # Flip callbacks arrive on timer threads
        self._lock = threading.RLock()

    @property
    def total_pages(self) -> int:
        return len(self.recipes) + 1

    @property
    def last_index(self) -> int:
        return self.total_pages - 1

    @property
    def current_recipe(self) -> Optional[Recipe]:
        if self.current_page_index == 0:
            return None
        return self.recipes[self.current_page_index - 1]

    @property
    def can_go_previous(self) -> bool:
        return not self.is_flipping and self.current_page_index > 0

    @property
    def can_go_next(self) -> bool:
        return not self.is_flipping and self.current_page_index < self.last_index

    def _clamp(self, index: int) -> int:
        return max(0, min(index, self.last_index))

    def _refresh_page(self):
        self.page.show(self.current_recipe)

    def set_recipes(self, recipes: List[Recipe]):
        """Replace the recipes with a new snapshot, keeping the index on a real page."""
        with self._lock:
            self.recipes = list(recipes)
            self.current_page_index = self._clamp(self.current_page_index)
            self._refresh_page()

    def go_to(self, index: int):
        with self._lock:
            self.current_page_index = self._clamp(index)
            self._refresh_page()

    def request_next(self) -> bool:
        return self._start_flip(FlipDirection.FORWARD)

    def request_previous(self) -> bool:
        return self._start_flip(FlipDirection.BACKWARD)

    def _start_flip(self, direction: FlipDirection) -> bool:
        with self._lock:
            allowed = self.can_go_next if direction is FlipDirection.FORWARD else self.can_go_previous
            if not allowed:
                return False
            self.is_flipping = True
            self.flip_direction = direction
            self._timers = [
                self.scheduler.call_later(FLIP_TURN_DELAY, partial(self._turn, direction)),
                self.scheduler.call_later(FLIP_SETTLE_DELAY, self._settle),
            ]
            return True

    def _turn(self, direction: FlipDirection):
        step = 1 if direction is FlipDirection.FORWARD else -1
        with self._lock:
            self.current_page_index = self._clamp(self.current_page_index + step)
            self._refresh_page()

    def _settle(self):
        with self._lock:
            self.is_flipping = False
            self._timers = []

    def toggle_ingredient(self, index: int) -> bool:
        """Check or uncheck an ingredient on the displayed page."""
        with self._lock:
            return self.page.toggle_ingredient(index)

    def delete_page(self, recipe_id: str, delete: Callable[[str], object]):
        """Delete a recipe shown in the book, then step back one page."""
        with self._lock:
            index = self.current_page_index
        # Not held across delete: snapshot delivery takes the store lock, then this one
        delete(recipe_id)
        with self._lock:
            if index > 0:
                self.current_page_index = self._clamp(index - 1)
            self._refresh_page()

    def close(self):
        """Cancel a flip in progress."""
        with self._lock:
            for timer in self._timers:
                timer.cancel()
            self._timers = []
            self.is_flipping = False
