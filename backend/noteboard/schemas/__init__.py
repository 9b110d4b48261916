"""Pydantic Schemas — request/response validation for API endpoints.

Invariants:
    - Schemas validate at system boundary (user input, API responses)
    - NoteColor from core/ used for the color field

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
