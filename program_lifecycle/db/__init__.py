"""Database Base — SQLAlchemy declarative base and shared column types.

Invariants:
    - All ORM models inherit from db.base.Base
    - Datetimes round-trip as timezone-aware UTC on every backend
"""
