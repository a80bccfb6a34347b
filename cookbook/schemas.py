from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RecipeBase(BaseModel):
    title: str = Field(
        "", json_schema_extra={"example": "Grandma's Apple Pie"}
    )
    ingredients: List[str] = Field(
        default_factory=list,
        json_schema_extra={"example": ["2 cups flour", "1 tsp cinnamon", "3 large apples"]},
    )
    instructions: str = Field(
        "", json_schema_extra={"example": "Step 1: Preheat the oven..."}
    )


class RecipeDraft(RecipeBase):
    """The editable fields of a recipe, as submitted by the form or the API."""

    @field_validator("title", "instructions")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("ingredients")
    @classmethod
    def ingredient_lines(cls, value: List[str]) -> List[str]:
        lines = [item.strip() for item in value if item.strip()]
        if not lines:
            raise ValueError("needs at least one ingredient")
        return lines


class Recipe(RecipeBase):
    id: str
    date_added: Optional[datetime] = Field(None, alias="dateAdded")

    model_config = ConfigDict(populate_by_name=True)
