import json
import logging
from pathlib import Path
from typing import List

from pydantic import ValidationError

from .forms import parse_ingredients
from .schemas import RecipeDraft

logger = logging.getLogger(__name__)


def load_recipes(path) -> List[dict]:
    """Load recipes from a JSON file and return a list of dicts.

    Args:
        path (str or Path): Path to the JSON file.

    Returns:
        list: list of recipe dictionaries, empty if the file does not exist.
    """
    p = Path(path)
    if not p.exists():
        return []
    with p.open("r", encoding="utf-8") as f:
        return json.load(f)


def draft_from_entry(entry: dict) -> RecipeDraft:
    """Build a draft from an imported entry.

    Ingredients may be a list or newline-separated text; instructions may be
    text or a list of steps, which are joined one per line.
    """
    ingredients = entry.get("ingredients") or []
    if isinstance(ingredients, str):
        ingredients = parse_ingredients(ingredients)
    instructions = entry.get("instructions") or ""
    if isinstance(instructions, list):
        instructions = "\n".join(str(step) for step in instructions)
    return RecipeDraft(
        title=entry.get("title") or "",
        ingredients=ingredients,
        instructions=instructions,
    )


def drafts_from_entries(entries: List[dict]) -> List[RecipeDraft]:
    drafts = []
    for i, entry in enumerate(entries):
        try:
            drafts.append(draft_from_entry(entry))
        except ValidationError as e:
            logger.warning(f"Skipping entry {i}: {e.error_count()} invalid field(s)")
    return drafts
