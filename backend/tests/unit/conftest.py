"""
tests/unit/conftest.py — Shared setup for unit tests.

Unit tests build model instances without an app. Mapper configuration needs
every model class that relationships refer to by name, so all model modules
are imported here once.
"""

from app.models import comment, experience, notification, tag, user  # noqa: F401
