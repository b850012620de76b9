"""OrderNumberCounter ORM — order numbering for backends without sequences.

Invariants:
    - One row per counter name; last_value only ever increases
    - Advanced by a single upsert-returning statement inside the order transaction

Design Decisions:
    - Used only when the dialect lacks sequences (SQLite in tests and local runs).
      PostgreSQL uses order_number_seq and never touches this table.
"""

from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column

from fiatramp.db.base import Base


class OrderNumberCounter(Base):
    """Named monotonic counter."""
    __tablename__ = "order_number_counters"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False)
