"""Infrastructure Layer — persistence adapters, participant accounting and cross-cutting concerns.

Invariants:
    - Implements the ports in core/repository_protocols.py; never adds business rules
    - SQLAlchemy errors mapped to core error types before leaving this layer

Design Decisions:
    - Repositories receive an AsyncSession per request (FastAPI dependency)
"""
