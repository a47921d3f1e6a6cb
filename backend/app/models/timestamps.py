"""
models/timestamps.py — Application-assigned timestamps.

created_at / updated_at are set by the process at insert/update time rather
than by a database default, so every row of every table is stamped on the
same clock.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
