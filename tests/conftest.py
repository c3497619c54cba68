import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cookbook.recipes.db import init_db
from cookbook.recipes.domain import IngredientLine, RecipeFields
from cookbook.recipes.repositories import SqlUnitOfWork


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def uow(db) -> SqlUnitOfWork:
    return SqlUnitOfWork(db)


@pytest.fixture
def pantry(db) -> dict[str, int]:
    """Flour, Sugar, Eggs and Chicken, name -> id."""
    uow = SqlUnitOfWork(db)
    with uow:
        ids = {
            name: uow.ingredients.create(name).id
            for name in ("Flour", "Sugar", "Eggs", "Chicken")
        }
        uow.commit()
    return ids


def fields(
    name: str = "Cake",
    instructions: str = "Mix and bake for 30 minutes.",
    vegetarian: bool = True,
    servings: int = 4,
) -> RecipeFields:
    return RecipeFields(
        name=name, instructions=instructions, vegetarian=vegetarian, servings=servings
    )


def line(ingredient_id: int, amount: float = 100, unit: str = "g") -> IngredientLine:
    return IngredientLine(ingredient_id=ingredient_id, amount=amount, unit=unit)
