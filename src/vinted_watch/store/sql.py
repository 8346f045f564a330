"""Dialect-aware insert-or-ignore used for the stores' unique keys."""

from __future__ import annotations

import logging

from sqlalchemy import insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def insert_ignore(db: Session, model, values: dict, index_elements: list[str]) -> bool:
    """Insert ``values`` unless a row with the same unique key exists.

    Returns True when a row was written. A duplicate key is "already
    exists", never an error. Caller commits.
    """
    dialect_insert = _DIALECT_INSERTS.get(db.get_bind().dialect.name)
    if dialect_insert is not None:
        stmt = dialect_insert(model).values(**values).on_conflict_do_nothing(
            index_elements=index_elements,
        )
        return db.execute(stmt).rowcount == 1

    # Other backends: savepoint and treat the unique violation as a no-op
    try:
        with db.begin_nested():
            db.execute(insert(model).values(**values))
        return True
    except IntegrityError:
        logger.debug("Duplicate %s %s ignored", model.__tablename__, index_elements)
        return False
