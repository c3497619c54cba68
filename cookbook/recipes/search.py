"""
Multi-criteria recipe search.

Every criterion is optional and an absent one does not constrain the
result. The supplied criteria are combined with AND through a fixed,
ordered pipeline of pure predicates, so the outcome does not depend on
which candidate set the store hands back first.

    vegetarian           recipe.vegetarian == value
    servings             recipe.servings == value
    include_ingredients  recipe lists every one of these ingredient ids
    exclude_ingredients  recipe lists none of these ingredient ids
    instruction          instructions contain the text, ignoring case
"""

from dataclasses import dataclass
from typing import Callable, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from cookbook.framework.tracing import traced
from cookbook.recipes.domain import Recipe
from cookbook.recipes.ports import RecipeStore

Predicate = Callable[[Recipe], bool]


@dataclass(frozen=True)
class SearchCriteria:
    vegetarian: Optional[bool] = None
    servings: Optional[int] = None
    include_ingredients: FrozenSet[int] = frozenset()
    exclude_ingredients: FrozenSet[int] = frozenset()
    instruction: Optional[str] = None

    @classmethod
    def build(
        cls,
        vegetarian: Optional[bool] = None,
        servings: Optional[int] = None,
        include_ingredients: Optional[Iterable[int]] = None,
        exclude_ingredients: Optional[Iterable[int]] = None,
        instruction: Optional[str] = None,
    ) -> "SearchCriteria":
        """
        Normalise loosely typed transport values. An empty instruction or an
        empty id collection counts as absent.
        """
        return cls(
            vegetarian=vegetarian,
            servings=servings,
            include_ingredients=frozenset(include_ingredients or ()),
            exclude_ingredients=frozenset(exclude_ingredients or ()),
            instruction=instruction or None,
        )

    def predicates(self) -> List[Tuple[str, Predicate]]:
        """
        The active predicates, always in the same order.
        """
        active: List[Tuple[str, Predicate]] = []

        if self.vegetarian is not None:
            active.append(("vegetarian", _vegetarian_is(self.vegetarian)))
        if self.servings is not None:
            active.append(("servings", _servings_is(self.servings)))
        if self.include_ingredients:
            active.append(
                ("include_ingredients", _contains_all(self.include_ingredients))
            )
        if self.exclude_ingredients:
            active.append(
                ("exclude_ingredients", _contains_none(self.exclude_ingredients))
            )
        if self.instruction:
            active.append(("instruction", _instructions_contain(self.instruction)))

        return active

    def to_log(self) -> dict:
        return {
            "vegetarian": self.vegetarian,
            "servings": self.servings,
            "include_ingredients": sorted(self.include_ingredients),
            "exclude_ingredients": sorted(self.exclude_ingredients),
            "instruction": self.instruction,
        }


def _vegetarian_is(value: bool) -> Predicate:
    return lambda recipe: recipe.vegetarian == value


def _servings_is(value: int) -> Predicate:
    return lambda recipe: recipe.servings == value


def _contains_all(ids: FrozenSet[int]) -> Predicate:
    return lambda recipe: ids <= recipe.ingredient_ids


def _contains_none(ids: FrozenSet[int]) -> Predicate:
    return lambda recipe: ids.isdisjoint(recipe.ingredient_ids)


def _instructions_contain(text: str) -> Predicate:
    needle = text.casefold()
    return lambda recipe: needle in (recipe.instructions or "").casefold()


def candidates(store: RecipeStore, criteria: SearchCriteria) -> List[Recipe]:
    """
    Narrow the scan with an equality lookup when one is available.
    Membership and substring predicates always run in memory.
    """
    if criteria.vegetarian is not None:
        return store.find_by_vegetarian(criteria.vegetarian)
    if criteria.servings is not None:
        return store.find_by_servings(criteria.servings)
    return store.list_all()


def apply(recipes: Sequence[Recipe], criteria: SearchCriteria) -> List[Recipe]:
    result = list(recipes)
    for _, predicate in criteria.predicates():
        result = [recipe for recipe in result if predicate(recipe)]
    return result


@traced
def search(store: RecipeStore, criteria: SearchCriteria) -> List[Recipe]:
    return apply(candidates(store, criteria), criteria)
