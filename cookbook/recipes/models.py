from sqlalchemy import (
    Boolean,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)

from cookbook.recipes.db import Base


class IngredientRow(Base):
    """
    An ingredient, referenced by any number of recipes.
    """

    __tablename__ = "ingredient"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)

    __table_args__ = (Index("ix_ingredient_name", "name", unique=True),)


class RecipeRow(Base):
    """
    A recipe for a dish, without its ingredient list.
    """

    __tablename__ = "recipe"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    instructions = Column(Text, nullable=False, default="")
    vegetarian = Column(Boolean, nullable=False, default=False)
    servings = Column(Integer, nullable=False)

    __table_args__ = (Index("ix_recipe_name", "name"),)


class RecipeIngredientRow(Base):
    """
    Links one recipe to one ingredient with a quantity and a unit.
    """

    __tablename__ = "recipe_ingredient"

    id = Column(Integer, primary_key=True, autoincrement=True)
    recipe_id = Column(
        Integer, ForeignKey("recipe.id", ondelete="CASCADE"), nullable=False
    )
    ingredient_id = Column(
        Integer, ForeignKey("ingredient.id", ondelete="CASCADE"), nullable=False
    )
    amount = Column(Float, nullable=False)
    unit = Column(String, nullable=False)

    # a recipe lists each ingredient at most once
    __table_args__ = (
        Index(
            "ix_recipe_ingredient_pair", "recipe_id", "ingredient_id", unique=True
        ),
        Index("ix_recipe_ingredient_ingredient_id", "ingredient_id"),
    )
