"""ORM Models — SQLAlchemy declarative models for users, orders, and order numbering.

Invariants:
    - All models inherit from Base (db/base.py)
    - orders.order_number and users.email carry unique constraints

Design Decisions:
    - One file per entity
    - All models imported here so relationship() string references resolve
      before any query runs
"""

from fiatramp.models.user import User  # noqa: F401
from fiatramp.models.order import Order, ORDER_NUMBER_SEQ  # noqa: F401
from fiatramp.models.order_number_counter import OrderNumberCounter  # noqa: F401
