"""Pydantic Schemas — request/response validation for the programs API.

Invariants:
    - Schemas validate at the system boundary (user input, API responses)
    - Domain enums and bounds from core/domain_types.py used for fields

Design Decisions:
    - Separate from models and core values: schemas are API contracts
"""
