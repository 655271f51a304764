"""Core Layer — program and enrollment lifecycle rules, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, models/ or db/
    - All functions are pure and deterministic; time arrives as a `now` argument

Design Decisions:
    - Functional core separated from imperative shell
"""
