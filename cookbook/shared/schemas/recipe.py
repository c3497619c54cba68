from typing import List, Optional

from pydantic import BaseModel, Field


class RecipeIngredientIn(BaseModel):
    """
    One line of a recipe's ingredient list.
    """

    ingredient_id: int
    amount: float = Field(
        ..., description="Quantity, must be positive", examples=[200], allow_inf_nan=False
    )
    unit: str = Field(..., description="Unit of measurement", examples=["g"])


class RecipeIngredientOut(RecipeIngredientIn):
    model_config = {
        "from_attributes": True,
    }


class RecipeCreate(BaseModel):
    """
    Model for creating a new recipe together with its ingredient list.
    """

    name: str
    instructions: str = ""
    vegetarian: bool = False
    servings: int
    ingredients: Optional[List[RecipeIngredientIn]] = None


class RecipeUpdate(RecipeCreate):
    """
    Model for updating an existing recipe.
    The ingredient list replaces the stored one as a whole.
    """


class RecipeOut(BaseModel):
    """
    Model for outputting a recipe.
    """

    id: int
    name: str
    instructions: str
    vegetarian: bool
    servings: int
    ingredients: List[RecipeIngredientOut]

    model_config = {
        "from_attributes": True,
    }
