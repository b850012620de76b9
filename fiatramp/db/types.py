"""Column Types — exact decimal storage for quote-derived amounts.

Invariants:
    - A Decimal written is the Decimal read back, digit for digit
    - PostgreSQL stores unscaled NUMERIC (no column scale to round into)
    - SQLite stores the decimal text; values never pass through float
"""

from decimal import Decimal

from sqlalchemy import Numeric, String
from sqlalchemy.types import TypeDecorator


class ExactDecimal(TypeDecorator):
    """Arbitrary-precision Decimal column."""
    impl = Numeric
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(64))
        return dialect.type_descriptor(Numeric(asdecimal=True))

    def process_bind_param(self, value, dialect):
        if value is None or dialect.name != "sqlite":
            return value
        return format(Decimal(value), "f")

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value if isinstance(value, Decimal) else Decimal(value)
