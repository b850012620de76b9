"""Pydantic Schemas — request/response contracts for the order endpoints.

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
