"""User ORM — identities that own orders, authenticated or anonymous.

Invariants:
    - email is unique; the anonymous sentinel email owns exactly one row
    - Rows are only ever inserted through the email upsert (services/identity_resolver.py)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from fiatramp.db.base import Base


class User(Base):
    """Identity row keyed by email."""
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
