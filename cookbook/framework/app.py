from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from cookbook.config import get_config, get_config_for_service
from cookbook.framework.helpers import make_endpoint, resolve_handler
from cookbook.framework.logging import log_event
from cookbook.framework.tracing import tracing_middleware
from cookbook.shared.errors import (
    BadRequestError,
    CookbookError,
    DuplicateError,
    NotFoundError,
    UnexpectedError,
    ValidationError,
)
from cookbook.shared.schemas.generic import ErrorResponse

app_config = get_config()

ERROR_STATUS = {
    NotFoundError: 404,
    BadRequestError: 400,
    DuplicateError: 409,
    ValidationError: 422,
    UnexpectedError: 500,
}


def status_for(exc: CookbookError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500


async def cookbook_error_handler(request: Request, exc: CookbookError):
    """
    Translate a typed failure of the recipe core into an HTTP response.
    """
    status = status_for(exc)
    log_event(
        "request_failed",
        method=request.method,
        path=request.url.path,
        status=status,
        error=type(exc).__name__,
        detail=exc.message,
    )
    return JSONResponse(
        status_code=status, content=ErrorResponse(detail=exc.message).model_dump()
    )


def create_microservice(service_name: str, get_db, lifespan=None) -> FastAPI:
    """
    Build a FastAPI microservice dynamically from config.yaml
    """

    # Load config for service (recipes, ...)
    service = get_config_for_service(service_name)

    app = FastAPI(
        title=service.title,
        version=service.version,
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    router = APIRouter(prefix=app_config.urlPrefix)

    # Register all routes listed under this service config
    for route in service.routes:
        handler_fn = resolve_handler(route.handler)
        endpoint = make_endpoint(route, handler_fn, get_db)

        extra = {"status_code": route.status_code} if route.status_code else {}
        router.add_api_route(
            route.path,
            endpoint,
            methods=[route.method.upper()],
            response_model=route.response_model,
            summary=route.description,
            tags=route.tags or [service.name],
            name=f"{service.name}.{handler_fn.__name__}",
            **extra,
        )

        log_event(
            "startup",
            action="route_registration",
            service_name=service_name,
            path=f"{app_config.urlPrefix}{route.path}",
            handler=route.handler,
        )

    app.include_router(router)
    app.middleware("http")(tracing_middleware)
    app.add_exception_handler(CookbookError, cookbook_error_handler)

    @app.get("/healthz")
    async def health():
        return {"status": "ok"}

    return app
