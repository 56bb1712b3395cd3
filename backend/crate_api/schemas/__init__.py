"""Pydantic Schemas — request validation for API endpoints.

Invariants:
    - Schemas validate shape at the system boundary (user input)
    - Domain rules stay in services; schemas never touch the DB

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
