"""
Persistence contracts consumed by the search engine, the replace
coordinator and the crud facade. Implementations live in
`cookbook.recipes.repositories`.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from cookbook.recipes.domain import Ingredient, Recipe, RecipeFields, RecipeIngredient


class IngredientStore(ABC):
    @abstractmethod
    def create(self, name: str) -> Ingredient:
        """Insert a new ingredient. Raises DuplicateError on a name collision."""

    @abstractmethod
    def update(self, ingredient: Ingredient) -> Ingredient: ...

    @abstractmethod
    def find_by_id(self, ingredient_id: int) -> Optional[Ingredient]: ...

    @abstractmethod
    def find_by_name(self, name: str) -> Optional[Ingredient]: ...

    @abstractmethod
    def list_all(self) -> List[Ingredient]: ...

    @abstractmethod
    def delete_by_id(self, ingredient_id: int) -> None:
        """Delete the ingredient and every association referencing it."""

    @abstractmethod
    def exists_by_id(self, ingredient_id: int) -> bool: ...


class RecipeStore(ABC):
    @abstractmethod
    def create(self, fields: RecipeFields) -> Recipe:
        """Insert the scalar part of a recipe and return it with its new id."""

    @abstractmethod
    def find_by_id(self, recipe_id: int) -> Optional[Recipe]: ...

    @abstractmethod
    def find_by_name(self, name: str) -> Optional[Recipe]: ...

    @abstractmethod
    def list_all(self) -> List[Recipe]: ...

    @abstractmethod
    def update(self, recipe: Recipe) -> None:
        """Write the scalar fields of `recipe`. Associations are not touched."""

    @abstractmethod
    def delete_by_id(self, recipe_id: int) -> None:
        """Delete the recipe and every association it owns."""

    @abstractmethod
    def exists_by_id(self, recipe_id: int) -> bool: ...

    # Pre-filtered lookups. Callers may use them to narrow a scan, never to
    # change what a search means.

    @abstractmethod
    def find_by_vegetarian(self, vegetarian: bool) -> List[Recipe]: ...

    @abstractmethod
    def find_by_servings(self, servings: int) -> List[Recipe]: ...

    @abstractmethod
    def find_by_instructions_containing(self, text: str) -> List[Recipe]:
        """Case-insensitive substring match on instructions."""


class RecipeIngredientStore(ABC):
    @abstractmethod
    def create(
        self, recipe_id: int, ingredient_id: int, amount: float, unit: str
    ) -> RecipeIngredient: ...

    @abstractmethod
    def delete_all_for_recipe(self, recipe_id: int) -> int:
        """Remove every association of a recipe, returns how many were removed."""

    @abstractmethod
    def delete_all_for_ingredient(self, ingredient_id: int) -> int: ...

    @abstractmethod
    def recipe_ids_for_ingredient(self, ingredient_id: int) -> List[int]: ...

    @abstractmethod
    def count_for_recipe(self, recipe_id: int) -> int: ...


class UnitOfWork(ABC):
    """
    One transaction spanning the three stores.

    Use as a context manager. Leaving the block with an exception, or
    without calling `commit()`, rolls everything back.
    """

    ingredients: IngredientStore
    recipes: RecipeStore
    recipe_ingredients: RecipeIngredientStore

    def __enter__(self) -> "UnitOfWork":
        self._committed = False
        return self

    def __exit__(self, exc_type, exc_val, tb):
        if exc_type is not None or not self._committed:
            self.rollback()
        return False

    def commit(self) -> None:
        self._commit()
        self._committed = True

    @abstractmethod
    def _commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
