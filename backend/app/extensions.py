"""
extensions.py — Flask extension singletons.

Creates SQLAlchemy and marshmallow as module-level objects with no app
attached; the app factory calls init_app(app) on each.

    from app.extensions import db, ma

All validation Schema classes (in app/schemas/) inherit from marshmallow.Schema
directly, NOT from ma.Schema: ma.Schema needs an application context and unit
tests run without one.
"""

from sqlite3 import Connection as SQLiteConnection

from flask_marshmallow import Marshmallow
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine

db = SQLAlchemy()

ma = Marshmallow()


# ── SQLite connection setup ────────────────────────────────────────────────
# The sqlite3 driver opens transactions lazily on its own, which breaks
# SAVEPOINT (Session.begin_nested). Hand transaction control to SQLAlchemy
# and switch on foreign keys so ON DELETE CASCADE is honoured.

@event.listens_for(Engine, "connect")
def _configure_sqlite_connection(dbapi_connection, connection_record) -> None:
    if isinstance(dbapi_connection, SQLiteConnection):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@event.listens_for(Engine, "begin")
def _begin_sqlite_transaction(conn) -> None:
    if conn.dialect.name == "sqlite":
        conn.exec_driver_sql("BEGIN")
