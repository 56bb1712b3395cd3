"""Infrastructure Layer — database, crate storage and cross-cutting concerns.

Invariants:
    - Infrastructure never imports route modules
    - Storage failures are mapped to typed errors from core/errors.py

Design Decisions:
    - Thin wrappers over SQLAlchemy and the filesystem, swapped out in tests
"""
