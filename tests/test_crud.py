import pytest
from sqlalchemy.exc import OperationalError

from cookbook.recipes import crud
from cookbook.shared.errors import (
    BadRequestError,
    DuplicateError,
    NotFoundError,
    UnexpectedError,
    ValidationError,
)
from cookbook.shared.schemas.ingredient import IngredientCreate, IngredientUpdate
from cookbook.shared.schemas.recipe import RecipeCreate, RecipeIngredientIn, RecipeUpdate


def recipe_payload(
    ingredients,
    name: str = "Cake",
    instructions: str = "Mix and bake for 30 minutes.",
    vegetarian: bool = True,
    servings: int = 4,
    model=RecipeCreate,
):
    return model(
        name=name,
        instructions=instructions,
        vegetarian=vegetarian,
        servings=servings,
        ingredients=[
            RecipeIngredientIn(ingredient_id=i, amount=a, unit=u)
            for i, a, u in ingredients
        ],
    )


# ---- INGREDIENTS


@pytest.mark.asyncio
async def test_ingredient_round_trip(db) -> None:
    created = await crud.add_ingredient(IngredientCreate(name="Basil"), db)

    assert await crud.get_ingredient_by_id(created.id, db) == created
    assert await crud.get_ingredient_by_name("Basil", db) == created
    assert await crud.list_ingredients(db) == [created]


@pytest.mark.asyncio
async def test_duplicate_ingredient_is_rejected_without_mutation(db) -> None:
    await crud.add_ingredient(IngredientCreate(name="Basil"), db)

    with pytest.raises(DuplicateError):
        await crud.add_ingredient(IngredientCreate(name="Basil"), db)

    assert [i.name for i in await crud.list_ingredients(db)] == ["Basil"]


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", "   "])
async def test_blank_ingredient_name_is_invalid(db, name: str) -> None:
    with pytest.raises(ValidationError):
        await crud.add_ingredient(IngredientCreate(name=name), db)

    assert await crud.list_ingredients(db) == []


@pytest.mark.asyncio
async def test_update_ingredient(db, pantry) -> None:
    renamed = await crud.update_ingredient(
        pantry["Flour"], IngredientUpdate(name="Rye flour"), db
    )
    assert renamed.name == "Rye flour"

    # keeping its own name is not a collision
    same = await crud.update_ingredient(
        pantry["Flour"], IngredientUpdate(name="Rye flour"), db
    )
    assert same == renamed

    with pytest.raises(DuplicateError):
        await crud.update_ingredient(pantry["Flour"], IngredientUpdate(name="Sugar"), db)
    with pytest.raises(ValidationError):
        await crud.update_ingredient(pantry["Flour"], IngredientUpdate(name=" "), db)
    with pytest.raises(NotFoundError):
        await crud.update_ingredient(404, IngredientUpdate(name="Salt"), db)


@pytest.mark.asyncio
async def test_missing_ingredient_lookups(db) -> None:
    with pytest.raises(NotFoundError):
        await crud.get_ingredient_by_id(1, db)
    with pytest.raises(NotFoundError):
        await crud.get_ingredient_by_name("Flour", db)
    with pytest.raises(NotFoundError):
        await crud.delete_ingredient(1, db)


# ---- RECIPES


@pytest.mark.asyncio
async def test_cake_example(db, pantry) -> None:
    flour, sugar = pantry["Flour"], pantry["Sugar"]
    cake = await crud.add_recipe(
        recipe_payload([(flour, 200, "g"), (sugar, 100, "g")]), db
    )

    found = await crud.search_recipes(db, include_ingredients=[flour])
    assert [r.name for r in found] == ["Cake"]
    assert await crud.search_recipes(db, exclude_ingredients=[sugar]) == []

    await crud.update_recipe(
        cake.id, recipe_payload([(flour, 300, "g")], model=RecipeUpdate), db
    )
    stored = await crud.get_recipe_by_id(cake.id, db)
    assert [(i.ingredient_id, i.amount) for i in stored.ingredients] == [(flour, 300)]


@pytest.mark.asyncio
async def test_recipe_lookups(db, pantry) -> None:
    cake = await crud.add_recipe(recipe_payload([(pantry["Flour"], 200, "g")]), db)

    assert await crud.get_recipe_by_name("Cake", db) == cake
    assert await crud.list_recipes(db) == [cake]
    with pytest.raises(NotFoundError):
        await crud.get_recipe_by_id(cake.id + 1, db)
    with pytest.raises(NotFoundError):
        await crud.get_recipe_by_name("Pie", db)


@pytest.mark.asyncio
async def test_invalid_recipes_are_not_stored(db, pantry) -> None:
    flour = pantry["Flour"]
    with pytest.raises(BadRequestError):
        await crud.add_recipe(recipe_payload([(flour, 1, "g")], servings=0), db)
    with pytest.raises(ValidationError):
        await crud.add_recipe(recipe_payload([]), db)
    with pytest.raises(ValidationError):
        await crud.add_recipe(
            RecipeCreate(name="Cake", servings=2, ingredients=None), db
        )
    with pytest.raises(ValidationError):
        await crud.add_recipe(recipe_payload([(flour, -1, "g")]), db)
    with pytest.raises(NotFoundError):
        await crud.add_recipe(recipe_payload([(flour, 1, "g"), (999, 1, "g")]), db)

    assert await crud.list_recipes(db) == []


@pytest.mark.asyncio
async def test_update_missing_recipe(db, pantry) -> None:
    with pytest.raises(NotFoundError):
        await crud.update_recipe(
            7, recipe_payload([(pantry["Flour"], 1, "g")], model=RecipeUpdate), db
        )


@pytest.mark.asyncio
async def test_delete_recipe(db, pantry) -> None:
    cake = await crud.add_recipe(recipe_payload([(pantry["Flour"], 200, "g")]), db)

    response = await crud.delete_recipe(cake.id, db)

    assert response.success
    assert await crud.list_recipes(db) == []
    with pytest.raises(NotFoundError):
        await crud.delete_recipe(cake.id, db)


@pytest.mark.asyncio
async def test_deleting_a_shared_ingredient_cascades(db, pantry) -> None:
    flour, sugar = pantry["Flour"], pantry["Sugar"]
    cake = await crud.add_recipe(
        recipe_payload([(flour, 200, "g"), (sugar, 100, "g")]), db
    )

    await crud.delete_ingredient(sugar, db)

    stored = await crud.get_recipe_by_id(cake.id, db)
    assert [i.ingredient_id for i in stored.ingredients] == [flour]
    with pytest.raises(NotFoundError):
        await crud.get_ingredient_by_id(sugar, db)


@pytest.mark.asyncio
async def test_cannot_delete_the_last_ingredient_of_a_recipe(db, pantry) -> None:
    flour = pantry["Flour"]
    bread = await crud.add_recipe(recipe_payload([(flour, 500, "g")], name="Bread"), db)

    with pytest.raises(BadRequestError, match=str(bread.id)):
        await crud.delete_ingredient(flour, db)

    assert await crud.get_ingredient_by_id(flour, db)
    assert (await crud.get_recipe_by_id(bread.id, db)).ingredients


@pytest.mark.asyncio
async def test_search_conjunction_and_listings(db, pantry) -> None:
    flour = pantry["Flour"]
    await crud.add_recipe(recipe_payload([(flour, 200, "g")], name="Cake"), db)
    await crud.add_recipe(
        recipe_payload(
            [(flour, 100, "g")], name="Pie", instructions="Bake", vegetarian=False
        ),
        db,
    )
    await crud.add_recipe(
        recipe_payload([(flour, 50, "g")], name="Crepes", instructions="Fry", servings=2),
        db,
    )

    found = await crud.search_recipes(
        db, vegetarian=True, servings=4, instruction="BAKE"
    )
    assert [r.name for r in found] == ["Cake"]
    assert [r.name for r in await crud.search_recipes(db)] == ["Cake", "Pie", "Crepes"]
    assert [r.name for r in await crud.list_vegetarian_recipes(db)] == ["Cake", "Crepes"]
    assert [r.name for r in await crud.list_non_vegetarian_recipes(db)] == ["Pie"]
    assert [r.name for r in await crud.list_recipes_by_servings(2, db)] == ["Crepes"]
    assert [r.name for r in await crud.list_recipes_by_instruction("bAkE", db)] == [
        "Cake",
        "Pie",
    ]


@pytest.mark.asyncio
async def test_storage_failures_surface_as_unexpected(db, monkeypatch) -> None:
    def broken(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is gone"))

    monkeypatch.setattr(db, "query", broken)

    with pytest.raises(UnexpectedError):
        await crud.list_recipes(db)


@pytest.mark.asyncio
async def test_instruction_listing_agrees_with_search_on_non_ascii(db, pantry) -> None:
    await crud.add_recipe(
        recipe_payload(
            [(pantry["Eggs"], 4, "pc")],
            name="Crème brûlée",
            instructions="CRÈME BRÛLÉE au four",
        ),
        db,
    )

    listed = await crud.list_recipes_by_instruction("crème", db)
    searched = await crud.search_recipes(db, instruction="crème")

    assert [r.name for r in listed] == ["Crème brûlée"]
    assert listed == searched


@pytest.mark.asyncio
async def test_nan_amount_is_a_validation_error(db, pantry) -> None:
    payload = RecipeCreate.model_construct(
        name="Cake",
        instructions="",
        vegetarian=True,
        servings=4,
        ingredients=[
            RecipeIngredientIn.model_construct(
                ingredient_id=pantry["Flour"], amount=float("nan"), unit="g"
            )
        ],
    )

    with pytest.raises(ValidationError, match="amount"):
        await crud.add_recipe(payload, db)

    assert await crud.list_recipes(db) == []
