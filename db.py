import logging
from collections.abc import Generator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

from config import DATABASE_ECHO, DATABASE_URL

logger = logging.getLogger(__name__)

engine = create_engine(DATABASE_URL, echo=DATABASE_ECHO)


def create_db_and_tables(bind: Engine = engine) -> None:
    """Create all tables in the database if they don't exist."""
    # models must be imported so their tables are registered on the metadata
    import models  # noqa: F401

    logger.info("Creating tables on %s", bind.url.render_as_string(hide_password=True))
    SQLModel.metadata.create_all(bind)


def get_engine() -> Engine:
    """Return the process-wide engine. Overridden in tests."""
    return engine


EngineDep = Annotated[Engine, Depends(get_engine)]


def get_session(bind: EngineDep) -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    with Session(bind) as session:
        yield session


SessionDep = Annotated[Session, Depends(get_session)]
