from typing import List, Optional

from sqlalchemy.orm import Session

from cookbook.framework.logging import Span, log_event
from cookbook.framework.tracing import traced
from cookbook.recipes import coordinator, search
from cookbook.recipes.domain import (
    Ingredient,
    IngredientLine,
    RecipeFields,
    validate_ingredient_name,
)
from cookbook.recipes.repositories import SqlUnitOfWork
from cookbook.shared.errors import BadRequestError, DuplicateError, NotFoundError
from cookbook.shared.lib.db import storage_errors
from cookbook.shared.schemas import ingredient as ins
from cookbook.shared.schemas import recipe as rs
from cookbook.shared.schemas.generic import DeleteResponse

# ---- INGREDIENTS


@traced
async def add_ingredient(data: ins.IngredientCreate, db: Session) -> ins.IngredientOut:
    """
    Creates a new ingredient. Names are unique, compared case-sensitively.
    """
    name = validate_ingredient_name(data.name)

    with Span("db_create_ingredient"), storage_errors(db), SqlUnitOfWork(db) as uow:
        if uow.ingredients.find_by_name(name) is not None:
            raise DuplicateError(f"Ingredient with name {name} already exists.")

        ingredient = uow.ingredients.create(name)
        uow.commit()

    log_event("ingredient_added", ingredient_id=ingredient.id, name=ingredient.name)
    return ins.IngredientOut.model_validate(ingredient)


@traced
async def update_ingredient(
    ingredient_id: int, data: ins.IngredientUpdate, db: Session
) -> ins.IngredientOut:
    """
    Renames an existing ingredient. Its recipe associations are untouched.
    """
    with Span("db_update_ingredient"), storage_errors(db), SqlUnitOfWork(db) as uow:
        if uow.ingredients.find_by_id(ingredient_id) is None:
            raise NotFoundError(f"Ingredient with id {ingredient_id} not found.")

        name = validate_ingredient_name(data.name)
        holder = uow.ingredients.find_by_name(name)
        if holder is not None and holder.id != ingredient_id:
            raise DuplicateError(f"Ingredient with name {name} already exists.")

        ingredient = uow.ingredients.update(Ingredient(id=ingredient_id, name=name))
        uow.commit()

    log_event("ingredient_updated", ingredient_id=ingredient.id, name=ingredient.name)
    return ins.IngredientOut.model_validate(ingredient)


@traced
async def delete_ingredient(ingredient_id: int, db: Session) -> DeleteResponse:
    """
    Deletes an ingredient and every recipe association referencing it.

    Refused when the ingredient is the only one left in some recipe, since
    that recipe would end up without ingredients.
    """
    with Span("db_delete_ingredient"), storage_errors(db), SqlUnitOfWork(db) as uow:
        if not uow.ingredients.exists_by_id(ingredient_id):
            raise NotFoundError(f"Ingredient with id {ingredient_id} does not exist.")

        links = uow.recipe_ingredients
        stranded = [
            recipe_id
            for recipe_id in links.recipe_ids_for_ingredient(ingredient_id)
            if links.count_for_recipe(recipe_id) == 1
        ]
        if stranded:
            raise BadRequestError(
                f"Ingredient with id {ingredient_id} is the only ingredient of "
                f"recipe(s) {stranded}; update those recipes first."
            )

        removed = links.delete_all_for_ingredient(ingredient_id)
        uow.ingredients.delete_by_id(ingredient_id)
        uow.commit()

    log_event(
        "ingredient_deleted", ingredient_id=ingredient_id, associations_removed=removed
    )
    return DeleteResponse(success=True)


@traced
async def get_ingredient_by_id(ingredient_id: int, db: Session) -> ins.IngredientOut:
    with Span("db_query_ingredient"), storage_errors(db), SqlUnitOfWork(db) as uow:
        ingredient = uow.ingredients.find_by_id(ingredient_id)
        if ingredient is None:
            raise NotFoundError(f"Ingredient with id {ingredient_id} not found.")
        return ins.IngredientOut.model_validate(ingredient)


@traced
async def get_ingredient_by_name(name: str, db: Session) -> ins.IngredientOut:
    with Span("db_query_ingredient"), storage_errors(db), SqlUnitOfWork(db) as uow:
        ingredient = uow.ingredients.find_by_name(name)
        if ingredient is None:
            raise NotFoundError(f"Ingredient with name {name} not found.")
        return ins.IngredientOut.model_validate(ingredient)


@traced
async def list_ingredients(db: Session) -> List[ins.IngredientOut]:
    with Span("db_list_ingredients"), storage_errors(db), SqlUnitOfWork(db) as uow:
        return [ins.IngredientOut.model_validate(i) for i in uow.ingredients.list_all()]


# ---- RECIPES


def _fields(data: rs.RecipeCreate) -> RecipeFields:
    return RecipeFields(
        name=data.name,
        instructions=data.instructions or "",
        vegetarian=data.vegetarian,
        servings=data.servings,
    )


def _lines(data: rs.RecipeCreate) -> Optional[List[IngredientLine]]:
    if data.ingredients is None:
        return None
    return [
        IngredientLine(ingredient_id=i.ingredient_id, amount=i.amount, unit=i.unit)
        for i in data.ingredients
    ]


@traced
async def add_recipe(data: rs.RecipeCreate, db: Session) -> rs.RecipeOut:
    """
    Creates a new recipe together with its ingredient list.
    """
    with Span("db_create_recipe"), storage_errors(db):
        recipe = coordinator.create_recipe(SqlUnitOfWork(db), _fields(data), _lines(data))
    return rs.RecipeOut.model_validate(recipe)


@traced
async def update_recipe(
    recipe_id: int, data: rs.RecipeUpdate, db: Session
) -> rs.RecipeOut:
    """
    Updates an existing recipe, replacing its whole ingredient list.
    """
    with Span("db_update_recipe"), storage_errors(db):
        recipe = coordinator.replace_recipe(
            SqlUnitOfWork(db), recipe_id, _fields(data), _lines(data)
        )
    return rs.RecipeOut.model_validate(recipe)


@traced
async def delete_recipe(recipe_id: int, db: Session) -> DeleteResponse:
    """
    Deletes a recipe and its ingredient associations.
    """
    with Span("db_delete_recipe"), storage_errors(db), SqlUnitOfWork(db) as uow:
        if not uow.recipes.exists_by_id(recipe_id):
            raise NotFoundError(f"Recipe with id {recipe_id} not found.")

        removed = uow.recipe_ingredients.delete_all_for_recipe(recipe_id)
        uow.recipes.delete_by_id(recipe_id)
        uow.commit()

    log_event("recipe_deleted", recipe_id=recipe_id, associations_removed=removed)
    return DeleteResponse(success=True)


@traced
async def get_recipe_by_id(recipe_id: int, db: Session) -> rs.RecipeOut:
    with Span("db_query_recipe"), storage_errors(db), SqlUnitOfWork(db) as uow:
        recipe = uow.recipes.find_by_id(recipe_id)
        if recipe is None:
            raise NotFoundError(f"Recipe with id {recipe_id} not found.")
        return rs.RecipeOut.model_validate(recipe)


@traced
async def get_recipe_by_name(name: str, db: Session) -> rs.RecipeOut:
    with Span("db_query_recipe"), storage_errors(db), SqlUnitOfWork(db) as uow:
        recipe = uow.recipes.find_by_name(name)
        if recipe is None:
            raise NotFoundError(f"Recipe with name {name} not found.")
        return rs.RecipeOut.model_validate(recipe)


@traced
async def list_recipes(db: Session) -> List[rs.RecipeOut]:
    with Span("db_list_recipes"), storage_errors(db), SqlUnitOfWork(db) as uow:
        return [rs.RecipeOut.model_validate(r) for r in uow.recipes.list_all()]


def _search(db: Session, criteria: search.SearchCriteria) -> List[rs.RecipeOut]:
    with Span("db_search_recipes"), storage_errors(db), SqlUnitOfWork(db) as uow:
        recipes = search.search(uow.recipes, criteria)
        log_event("recipes_searched", matches=len(recipes), **criteria.to_log())
        return [rs.RecipeOut.model_validate(r) for r in recipes]


@traced
async def search_recipes(
    db: Session,
    vegetarian: Optional[bool] = None,
    servings: Optional[int] = None,
    include_ingredients: Optional[List[int]] = None,
    exclude_ingredients: Optional[List[int]] = None,
    instruction: Optional[str] = None,
) -> List[rs.RecipeOut]:
    """
    Recipes matching every supplied criterion; no criteria returns all recipes.
    """
    criteria = search.SearchCriteria.build(
        vegetarian=vegetarian,
        servings=servings,
        include_ingredients=include_ingredients,
        exclude_ingredients=exclude_ingredients,
        instruction=instruction,
    )
    return _search(db, criteria)


@traced
async def list_vegetarian_recipes(db: Session) -> List[rs.RecipeOut]:
    return _search(db, search.SearchCriteria(vegetarian=True))


@traced
async def list_non_vegetarian_recipes(db: Session) -> List[rs.RecipeOut]:
    return _search(db, search.SearchCriteria(vegetarian=False))


@traced
async def list_recipes_by_servings(servings: int, db: Session) -> List[rs.RecipeOut]:
    return _search(db, search.SearchCriteria(servings=servings))


@traced
async def list_recipes_by_instruction(text: str, db: Session) -> List[rs.RecipeOut]:
    return _search(db, search.SearchCriteria.build(instruction=text))
