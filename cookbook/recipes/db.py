from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from cookbook.config import get_config_for_service

DATABASE_URL = get_config_for_service("recipes").db

engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None):
    """
    Create every table of the recipe catalog if it does not exist yet.
    """
    # models register themselves on Base when imported
    from cookbook.recipes import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
