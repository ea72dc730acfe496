"""Infrastructure Layer — database sessions, logging and HTTP request logging.

Invariants:
    - Infrastructure never imports domain rules from core/ (errors only)
    - Database failures leave this layer as AppError
"""
