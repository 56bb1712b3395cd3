"""Services Layer — entity data access, file import, collections and crate sync.

Invariants:
    - Services take an AsyncSession and return plain dicts
    - Services raise CrateApiError subclasses; routes decide the HTTP mapping

Design Decisions:
    - One module per concern for locality; no service imports a route module
"""
