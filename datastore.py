"""
Create/read access to the marketplace tables.

Every write and read used by the intake and feed code goes through
``insert`` and ``select_rows`` so database failures surface as a single
``DatastoreError`` type instead of driver-specific exceptions.
"""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)


class DatastoreError(Exception):
    """A create or read against the datastore failed."""

    def __init__(self, table: str, operation: str):
        self.table = table
        self.operation = operation
        super().__init__(f"{operation} on {table} failed")


def _table_name(model: Type[SQLModel]) -> str:
    return getattr(model, "__tablename__", model.__name__)


def insert(session: Session, record: ModelT) -> ModelT:
    """Persist a single row and return it with generated columns filled in."""
    table = _table_name(type(record))
    try:
        session.add(record)
        session.commit()
        session.refresh(record)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Insert into %s failed: %s", table, exc)
        raise DatastoreError(table, "insert") from exc
    return record


def select_rows(
    session: Session,
    model: Type[ModelT],
    filters: Optional[Dict[str, Any]] = None,
    order_by: Optional[str] = None,
    descending: bool = False,
    limit: Optional[int] = None,
) -> List[ModelT]:
    """
    Read rows of ``model``.

    ``filters`` maps column names to required values. When ``order_by`` is
    given, rows with equal sort keys are ordered by id in the same direction.
    """
    table = _table_name(model)
    query = select(model)
    for column, value in (filters or {}).items():
        query = query.where(getattr(model, column) == value)
    if order_by is not None:
        columns = [getattr(model, order_by)]
        if order_by != "id" and hasattr(model, "id"):
            columns.append(model.id)
        query = query.order_by(
            *(col.desc() if descending else col.asc() for col in columns)
        )
    if limit is not None:
        query = query.limit(limit)
    try:
        return list(session.exec(query).all())
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Select from %s failed: %s", table, exc)
        raise DatastoreError(table, "select") from exc
