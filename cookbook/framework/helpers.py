import inspect

from fastapi import Body, Depends, Request

from cookbook.framework.logging import Span
from cookbook.framework.utils import build_query_dependency, import_from_string


async def _run(handler_fn, args, qp=None):
    """
    Helper to run a handler function that may or may not be a coroutine.
    """
    with Span(handler_fn.__name__):
        res = handler_fn(*args, **(qp or {}))
        return await res if inspect.isawaitable(res) else res


def resolve_handler(handler_path: str):
    """
    Resolve a handler function from a string path, e.g. "cookbook.recipes.crud.get_recipe_by_id".
    """
    return import_from_string(handler_path)


def build_body_handler(request_model, handler_fn, get_db):
    """
    Helper to build an endpoint for routes that expect a request body.
    The handler is called with the path params in declaration order,
    then the validated body, then the DB session.
    """

    async def endpoint(
        request: Request,
        data: request_model = Body(..., embed=False),
        db=Depends(get_db),
    ):
        args = list(request.path_params.values())
        args.append(data)
        args.append(db)
        return await _run(handler_fn, args)

    return endpoint


def build_query_handler(handler_fn, get_db, qp_dep):
    """
    Helper to build an endpoint for routes that do not expect a request body.
    The handler is called with the path params, then the DB session, and the
    query params as keyword arguments.
    """

    if qp_dep is None:

        async def endpoint(request: Request, db=Depends(get_db)):
            args = list(request.path_params.values()) + [db]
            return await _run(handler_fn, args)

        return endpoint

    async def endpoint_with_query(
        request: Request,
        db=Depends(get_db),
        qp: dict = Depends(qp_dep),
    ):
        args = list(request.path_params.values()) + [db]
        return await _run(handler_fn, args, qp)

    return endpoint_with_query


def make_endpoint(route, handler_fn, get_db):
    """
    Helper to build an endpoint for a given route.
    This handles the FastAPI dependency injection for both body and query parameters,
    and then calls the actual handler function with the correct arguments.
    """
    if route.request_model:
        return build_body_handler(route.request_model, handler_fn, get_db)

    return build_query_handler(handler_fn, get_db, build_query_dependency(route))
