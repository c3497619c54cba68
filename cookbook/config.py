import importlib
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import yaml

CONFIG_ENV_VAR = "COOKBOOK_CONFIG"
DATABASE_URL_ENV_VAR = "COOKBOOK_DATABASE_URL"

HTTP_METHODS = {"get", "post", "put", "patch", "delete"}


@dataclass
class QueryParam:
    """
    Represents a query parameter for a route.
    """

    type: str  # "int", "str", "bool" or "int[]"
    default: Any = None
    ge: Optional[float] = None
    le: Optional[float] = None
    alias: Optional[str] = None
    example: Any = None


@dataclass
class Route:
    """
    Represents a route in the service.
    """

    method: str
    path: str
    request_model: Optional[Any]
    response_model: Optional[Any]
    handler: str
    query_params: Dict[str, QueryParam]
    description: Optional[str]
    tags: List[str]
    status_code: Optional[int] = None


@dataclass
class Service:
    """
    Represents a service with its configuration, including routes and database.
    """

    name: str
    version: str
    title: str
    db: str
    routes: List[Route]


@dataclass
class Config:
    """
    Represents the entire configuration of the application, including all services.
    """

    urlPrefix: str
    title: str
    version: str
    services: dict[str, Service]
    logLevel: str = "INFO"


def load_model(ref: Optional[str]):
    """
    Loads a model class from a string reference.
    Handles optional `List` types by checking for `[]` suffix.
    """
    if not ref:
        return None

    is_list = ref.endswith("[]")
    if is_list:
        ref = ref[:-2]

    module_name, class_name = ref.rsplit(".", 1)
    module = importlib.import_module(module_name)
    cls = getattr(module, class_name)

    if is_list:
        return List[cls]

    return cls


def parse_query_params(data: Optional[dict]) -> Dict[str, QueryParam]:
    """
    Parses a dictionary of query parameter configurations into a dictionary of QueryParam objects.
    """
    if not data:
        return {}
    params: Dict[str, QueryParam] = {}
    for name, cfg in data.items():
        params[name] = QueryParam(
            type=cfg.get("type", "str"),
            default=cfg.get("default"),
            ge=cfg.get("ge"),
            le=cfg.get("le"),
            alias=cfg.get("alias"),
            example=cfg.get("example"),
        )
    return params


def parse_route(route_data: dict) -> Route:
    """
    Parses a dictionary of route configurations into a Route object.
    """
    method = route_data["method"].lower()
    if method not in HTTP_METHODS:
        raise ValueError(
            f"Unsupported method '{route_data['method']}' for {route_data['path']}"
        )

    return Route(
        method=method,
        path=route_data["path"],
        request_model=load_model(route_data.get("request_model")),
        response_model=load_model(route_data.get("response_model")),
        handler=route_data["handler"],
        description=route_data.get("description"),
        tags=route_data.get("tags", []),
        query_params=parse_query_params(route_data.get("query_params")),
        status_code=route_data.get("status_code"),
    )


def parse_service(service_data: dict) -> Service:
    """
    Parses a dictionary of service configurations into a Service object.
    The database URL may be overridden through the environment.
    """
    return Service(
        name=service_data["name"],
        title=service_data["title"],
        version=service_data["version"],
        db=os.environ.get(DATABASE_URL_ENV_VAR, service_data["db"]),
        routes=[parse_route(route) for route in service_data["routes"]],
    )


def get_config_for_service(name: str) -> Service:
    """
    Retrieves the configuration for a specific service by its name.
    """
    svc = get_config().services.get(name)
    if svc:
        return svc
    raise ValueError(f"Service with name {name} not found.")


def config_path() -> str:
    """
    Location of the contract file, `COOKBOOK_CONFIG` wins over the packaged one.
    """
    default = os.path.join(os.path.dirname(__file__), "config.yaml")
    return os.environ.get(CONFIG_ENV_VAR, default)


def get_config() -> Config:
    """
    Loads and parses the entire application configuration from the config.yaml file.
    """
    with open(config_path(), "r") as f:
        raw_config = yaml.safe_load(f)

    services = {
        name: parse_service({"name": name, **data})
        for name, data in raw_config["services"].items()
    }

    config = Config(
        urlPrefix=raw_config["urlPrefix"],
        title=raw_config["title"],
        version=raw_config["version"],
        logLevel=raw_config.get("logLevel", "INFO"),
        services=services,
    )
    return config
