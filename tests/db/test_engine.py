"""Tests for shopcore/db/engine.py - engine, schema creation and sessions."""

import contextlib
from unittest.mock import patch

from sqlalchemy import inspect
from sqlmodel import Session, create_engine
from sqlmodel.pool import StaticPool

from shopcore.db import engine as db_engine
from shopcore.db.engine import get_session, init_db


def test_get_session():
    """Test get_session() yields a database session."""
    gen = get_session()
    session = next(gen)

    assert isinstance(session, Session)

    with contextlib.suppress(StopIteration):
        next(gen)


def test_init_db_creates_auth_tables():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )

    with patch.object(db_engine, "engine", engine):
        init_db()

    tables = set(inspect(engine).get_table_names())
    assert {"users", "sessions"} <= tables
