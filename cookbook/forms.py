from typing import Callable, List, Optional

from .schemas import Recipe, RecipeDraft


def parse_ingredients(text: str) -> List[str]:
    """Split textarea input into ingredient lines, dropping blank lines."""
    lines = [line.strip() for line in text.split("\n")]
    return [line for line in lines if line]


class RecipeForm:
    """Field state of the add/edit recipe form."""

    def __init__(self):
        self.initial: Optional[Recipe] = None
        self.title = ""
        self.ingredients = ""
        self.instructions = ""
        self.is_saving = False

    def populate(self, recipe: Optional[Recipe]):
        """Reset the fields to ``recipe`` (edit mode) or to empty (add mode)."""
        self.initial = recipe
        if recipe is not None:
            self.title = recipe.title or ""
            self.ingredients = "\n".join(recipe.ingredients)
            self.instructions = recipe.instructions or ""
        else:
            self.title = ""
            self.ingredients = ""
            self.instructions = ""

    def update(self, title: Optional[str] = None, ingredients: Optional[str] = None, instructions: Optional[str] = None):
        if title is not None:
            self.title = title
        if ingredients is not None:
            self.ingredients = ingredients
        if instructions is not None:
            self.instructions = instructions

    @property
    def is_edit(self) -> bool:
        return self.initial is not None

    @property
    def submit_label(self) -> str:
        if self.is_saving:
            return "Saving..."
        return "Update Recipe" if self.is_edit else "Add to Cookbook"

    def is_complete(self) -> bool:
        return bool(self.title.strip() and self.ingredients.strip() and self.instructions.strip())

    def to_draft(self) -> Optional[RecipeDraft]:
        if not self.is_complete():
            return None
        ingredients = parse_ingredients(self.ingredients)
        if not ingredients:
            return None
        return RecipeDraft(title=self.title, ingredients=ingredients, instructions=self.instructions)

    def submit(self, on_submit: Callable[[RecipeDraft], object]) -> Optional[RecipeDraft]:
        """Hand the form data to ``on_submit``; incomplete forms are ignored."""
        if self.is_saving:
            return None
        draft = self.to_draft()
        if draft is None:
            return None
        on_submit(draft)
        return draft
