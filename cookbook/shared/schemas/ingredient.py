from pydantic import BaseModel, Field


class IngredientCreate(BaseModel):
    """
    Model for creating a new ingredient.
    """

    name: str = Field(
        ...,
        description="Name of the ingredient, unique across the catalog",
        examples=["Flour"],
    )


class IngredientUpdate(IngredientCreate):
    """
    Model for renaming an existing ingredient.
    """


class IngredientOut(BaseModel):
    """
    Ingredient schema for the API
    """

    id: int
    name: str

    model_config = {
        "from_attributes": True,
    }
