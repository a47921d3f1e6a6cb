"""
services/db_helpers.py — Small persistence helpers shared by services.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def insert_if_absent(row, session: Session) -> bool:
    """
    Inserts a join-table row keyed by a composite primary key.

    Callers pre-check for an existing row and reject duplicates themselves.
    This covers the race where a concurrent request inserts the same key
    between that check and this insert: the duplicate-key failure is rolled
    back to a SAVEPOINT and reported as False ("already there") instead of
    failing the request.
    """
    try:
        with session.begin_nested():
            session.add(row)
            session.flush()
    except IntegrityError:
        logger.info("Duplicate %s insert ignored", type(row).__name__)
        return False
    return True
