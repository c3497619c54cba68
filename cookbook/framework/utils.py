import importlib
import inspect
from typing import List, Optional

from fastapi import Query

QUERY_TYPES = {
    "bool": bool,
    "int": int,
    "str": str,
    "float": float,
    "int[]": List[int],
    "str[]": List[str],
}


def import_from_string(path: str):
    """
    Convert 'cookbook.recipes.crud.search_recipes'
    into the real Python object.
    """
    module_path, name = path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, name)


def build_query_dependency(route):
    """
    Generate a FastAPI dependency for extracting query params dynamically.
    Each `query_params` entry of the route contract becomes an optional
    query parameter; the returned dict becomes **kwargs to the CRUD handler.
    Returns None when the route declares no query params.
    """
    if not route.query_params:
        return None

    parameters = []
    for name, qp in route.query_params.items():
        if qp.type not in QUERY_TYPES:
            raise ValueError(f"Unsupported query param type '{qp.type}' for {name}")

        parameters.append(
            inspect.Parameter(
                name,
                inspect.Parameter.KEYWORD_ONLY,
                default=Query(
                    qp.default,
                    alias=qp.alias,
                    ge=qp.ge,
                    le=qp.le,
                    examples=[qp.example] if qp.example is not None else None,
                ),
                annotation=Optional[QUERY_TYPES[qp.type]],
            )
        )

    def query_dep(**kwargs):
        return kwargs

    # FastAPI reads the dependency signature through inspect.signature
    query_dep.__signature__ = inspect.Signature(parameters)
    return query_dep
