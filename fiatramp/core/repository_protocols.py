"""Boundary Protocols — contracts for collaborators the order workflow consumes.

Invariants:
    - The workflow only ever sees these two quote operations
    - get_quote returns a frozen Quote or None; it never raises for a missing id

Design Decisions:
    - Protocol over ABC: structural subtyping, any pricing adapter fits
"""

from typing import Protocol

from fiatramp.core.domain_types import Quote


class QuoteService(Protocol):
    """Contract for the pricing service — validation and lookup of issued quotes."""
    async def validate_quote(self, quote_id: str) -> bool: ...
    async def get_quote(self, quote_id: str) -> Quote | None: ...
