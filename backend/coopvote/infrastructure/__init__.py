"""Infrastructure Layer — database engine, sessions, and logging setup.

Invariants:
    - Infrastructure never imports core/ domain logic (errors are the exception)
    - All database failures mapped to DatabaseError

Design Decisions:
    - Thin wrappers over SQLAlchemy and logging; no business rules here
"""
