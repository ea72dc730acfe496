"""Core Layer — domain types, errors and pure rules. No IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Rule functions are pure and deterministic

Design Decisions:
    - Functional core separated from the imperative shell (repositories, providers, services)
"""
