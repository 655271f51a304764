"""Services Layer — use cases orchestrating core rules over the repository ports.

Invariants:
    - One class per use case, single async execute() method
    - Use cases catch nothing: core and repository failures propagate unchanged

Design Decisions:
    - Ports injected through __init__ (Protocol-typed) so tests swap in in-memory fakes
"""
