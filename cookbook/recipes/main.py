import contextlib

from fastapi import FastAPI

from cookbook.framework.app import create_microservice
from cookbook.framework.logging import log_event
from cookbook.recipes.db import SessionLocal, init_db
from cookbook.shared.lib.db import get_db


def recipes_db():
    yield from get_db(SessionLocal)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    log_event("startup", action="init_db", service_name="recipes")
    yield


app = create_microservice("recipes", recipes_db, lifespan=lifespan)
