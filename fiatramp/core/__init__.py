"""Core Layer — domain types, error taxonomy, and collaborator contracts.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - No IO, no async, no DB
"""
