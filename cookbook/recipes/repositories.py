from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cookbook.recipes.domain import Ingredient, Recipe, RecipeFields, RecipeIngredient
from cookbook.recipes.models import IngredientRow, RecipeIngredientRow, RecipeRow
from cookbook.recipes.ports import (
    IngredientStore,
    RecipeIngredientStore,
    RecipeStore,
    UnitOfWork,
)
from cookbook.shared.errors import DuplicateError


def _ingredient(row: IngredientRow) -> Ingredient:
    return Ingredient(id=row.id, name=row.name)


def _association(row: RecipeIngredientRow) -> RecipeIngredient:
    return RecipeIngredient(
        id=row.id,
        recipe_id=row.recipe_id,
        ingredient_id=row.ingredient_id,
        amount=row.amount,
        unit=row.unit,
    )


def _is_unique_violation(exc: IntegrityError) -> bool:
    # "UNIQUE constraint failed" on sqlite, "violates unique constraint" on postgres
    return "unique" in str(exc.orig).lower()


class SqlIngredientStore(IngredientStore):
    def __init__(self, db: Session):
        self.db = db

    def create(self, name: str) -> Ingredient:
        row = IngredientRow(name=name)
        self.db.add(row)
        try:
            self.db.flush()
        except IntegrityError as exc:
            if not _is_unique_violation(exc):
                raise
            raise DuplicateError(
                f"Ingredient with name {name} already exists."
            ) from exc
        return _ingredient(row)

    def update(self, ingredient: Ingredient) -> Ingredient:
        row = self.db.get(IngredientRow, ingredient.id)
        row.name = ingredient.name
        try:
            self.db.flush()
        except IntegrityError as exc:
            if not _is_unique_violation(exc):
                raise
            raise DuplicateError(
                f"Ingredient with name {ingredient.name} already exists."
            ) from exc
        return _ingredient(row)

    def find_by_id(self, ingredient_id: int) -> Optional[Ingredient]:
        row = self.db.get(IngredientRow, ingredient_id)
        return _ingredient(row) if row else None

    def find_by_name(self, name: str) -> Optional[Ingredient]:
        row = self.db.query(IngredientRow).filter(IngredientRow.name == name).first()
        return _ingredient(row) if row else None

    def list_all(self) -> List[Ingredient]:
        rows = self.db.query(IngredientRow).order_by(IngredientRow.id).all()
        return [_ingredient(r) for r in rows]

    def delete_by_id(self, ingredient_id: int) -> None:
        # associations first, the row itself last
        self.db.query(RecipeIngredientRow).filter(
            RecipeIngredientRow.ingredient_id == ingredient_id
        ).delete()
        self.db.query(IngredientRow).filter(IngredientRow.id == ingredient_id).delete()

    def exists_by_id(self, ingredient_id: int) -> bool:
        return (
            self.db.query(IngredientRow.id)
            .filter(IngredientRow.id == ingredient_id)
            .first()
            is not None
        )


class SqlRecipeStore(RecipeStore):
    def __init__(self, db: Session):
        self.db = db

    def _to_domain(self, rows: Iterable[RecipeRow]) -> List[Recipe]:
        """
        Attach associations to each recipe with one query for the whole batch.
        """
        rows = list(rows)
        if not rows:
            return []

        by_recipe: Dict[int, List[RecipeIngredient]] = defaultdict(list)
        links = (
            self.db.query(RecipeIngredientRow)
            .filter(RecipeIngredientRow.recipe_id.in_([r.id for r in rows]))
            .order_by(RecipeIngredientRow.id)
            .all()
        )
        for link in links:
            by_recipe[link.recipe_id].append(_association(link))

        return [
            Recipe(
                id=r.id,
                name=r.name,
                instructions=r.instructions or "",
                vegetarian=bool(r.vegetarian),
                servings=r.servings,
                ingredients=by_recipe[r.id],
            )
            for r in rows
        ]

    def _one(self, row: Optional[RecipeRow]) -> Optional[Recipe]:
        if row is None:
            return None
        return self._to_domain([row])[0]

    def create(self, fields: RecipeFields) -> Recipe:
        row = RecipeRow(
            name=fields.name,
            instructions=fields.instructions or "",
            vegetarian=fields.vegetarian,
            servings=fields.servings,
        )
        self.db.add(row)
        self.db.flush()
        return self._one(row)

    def find_by_id(self, recipe_id: int) -> Optional[Recipe]:
        return self._one(self.db.get(RecipeRow, recipe_id))

    def find_by_name(self, name: str) -> Optional[Recipe]:
        row = (
            self.db.query(RecipeRow)
            .filter(RecipeRow.name == name)
            .order_by(RecipeRow.id)
            .first()
        )
        return self._one(row)

    def list_all(self) -> List[Recipe]:
        return self._to_domain(self.db.query(RecipeRow).order_by(RecipeRow.id).all())

    def update(self, recipe: Recipe) -> None:
        row = self.db.get(RecipeRow, recipe.id)
        row.name = recipe.name
        row.instructions = recipe.instructions or ""
        row.vegetarian = recipe.vegetarian
        row.servings = recipe.servings
        self.db.flush()

    def delete_by_id(self, recipe_id: int) -> None:
        self.db.query(RecipeIngredientRow).filter(
            RecipeIngredientRow.recipe_id == recipe_id
        ).delete()
        self.db.query(RecipeRow).filter(RecipeRow.id == recipe_id).delete()

    def exists_by_id(self, recipe_id: int) -> bool:
        return (
            self.db.query(RecipeRow.id).filter(RecipeRow.id == recipe_id).first()
            is not None
        )

    def find_by_vegetarian(self, vegetarian: bool) -> List[Recipe]:
        rows = (
            self.db.query(RecipeRow)
            .filter(RecipeRow.vegetarian == vegetarian)
            .order_by(RecipeRow.id)
            .all()
        )
        return self._to_domain(rows)

    def find_by_servings(self, servings: int) -> List[Recipe]:
        rows = (
            self.db.query(RecipeRow)
            .filter(RecipeRow.servings == servings)
            .order_by(RecipeRow.id)
            .all()
        )
        return self._to_domain(rows)

    def find_by_instructions_containing(self, text: str) -> List[Recipe]:
        # SQL lower() folds ASCII only on sqlite, so the match runs on casefold
        needle = text.casefold()
        rows = (
            self.db.query(RecipeRow)
            .order_by(RecipeRow.id)
            .all()
        )
        return self._to_domain(
            r for r in rows if needle in (r.instructions or "").casefold()
        )


class SqlRecipeIngredientStore(RecipeIngredientStore):
    def __init__(self, db: Session):
        self.db = db

    def create(
        self, recipe_id: int, ingredient_id: int, amount: float, unit: str
    ) -> RecipeIngredient:
        row = RecipeIngredientRow(
            recipe_id=recipe_id,
            ingredient_id=ingredient_id,
            amount=amount,
            unit=unit,
        )
        self.db.add(row)
        try:
            self.db.flush()
        except IntegrityError as exc:
            if not _is_unique_violation(exc):
                raise
            raise DuplicateError(
                f"Recipe {recipe_id} already lists ingredient {ingredient_id}."
            ) from exc
        return _association(row)

    def delete_all_for_recipe(self, recipe_id: int) -> int:
        return (
            self.db.query(RecipeIngredientRow)
            .filter(RecipeIngredientRow.recipe_id == recipe_id)
            .delete()
        )

    def delete_all_for_ingredient(self, ingredient_id: int) -> int:
        return (
            self.db.query(RecipeIngredientRow)
            .filter(RecipeIngredientRow.ingredient_id == ingredient_id)
            .delete()
        )

    def recipe_ids_for_ingredient(self, ingredient_id: int) -> List[int]:
        rows = (
            self.db.query(RecipeIngredientRow.recipe_id)
            .filter(RecipeIngredientRow.ingredient_id == ingredient_id)
            .order_by(RecipeIngredientRow.recipe_id)
            .all()
        )
        return [r.recipe_id for r in rows]

    def count_for_recipe(self, recipe_id: int) -> int:
        return (
            self.db.query(RecipeIngredientRow)
            .filter(RecipeIngredientRow.recipe_id == recipe_id)
            .count()
        )


class SqlUnitOfWork(UnitOfWork):
    """
    Binds the three SQLAlchemy stores to one session and its transaction.
    """

    def __init__(self, db: Session):
        self.db = db
        self.ingredients = SqlIngredientStore(db)
        self.recipes = SqlRecipeStore(db)
        self.recipe_ingredients = SqlRecipeIngredientStore(db)

    def _commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
