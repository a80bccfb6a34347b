from datetime import datetime
from typing import Dict, Optional

from .schemas import Recipe

WELCOME_TITLE = "Family Cookbook"
WELCOME_HINT = "Click the (+) button to add your first recipe!"


def format_date(value: datetime) -> str:
    local = value.astimezone()
    return f"{local:%b} {local.day}, {local.year}"


class RecipePage:
    """One page of the book: a recipe, or the welcome page when there is none.

    Ingredient check-offs are keyed by position and only live while the same
    recipe stays on the page.
    """

    def __init__(self):
        self.recipe: Optional[Recipe] = None
        self.checked: Dict[int, bool] = {}
        self.pending_delete = False

    @property
    def is_welcome(self) -> bool:
        return self.recipe is None

    def show(self, recipe: Optional[Recipe]):
        previous_id = self.recipe.id if self.recipe else None
        self.recipe = recipe
        if (recipe.id if recipe else None) != previous_id:
            self.checked = {}
            self.pending_delete = False

    @property
    def date_label(self) -> str:
        if self.recipe is None or self.recipe.date_added is None:
            return ""
        return format_date(self.recipe.date_added)

    def is_checked(self, index: int) -> bool:
        return self.checked.get(index, False)

    def toggle_ingredient(self, index: int) -> bool:
        if self.recipe is None or not 0 <= index < len(self.recipe.ingredients):
            return False
        self.checked[index] = not self.checked.get(index, False)
        return True

    @property
    def confirm_message(self) -> str:
        if self.recipe is None:
            return ""
        return f'Delete "{self.recipe.title}"? This cannot be undone.'

    def request_delete(self) -> bool:
        if self.recipe is None:
            return False
        self.pending_delete = True
        return True

    def cancel_delete(self):
        self.pending_delete = False

    def confirm_delete(self) -> Optional[str]:
        """Return the id of the recipe to delete, if deletion was requested."""
        if not self.pending_delete or self.recipe is None:
            return None
        self.pending_delete = False
        return self.recipe.id
