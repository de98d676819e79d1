"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Resolution is the aggregate root; ballots live inside it

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all
      or alembic autogenerate runs
"""

from coopvote.models.resolution import Resolution  # noqa: F401
from coopvote.models.member import Member  # noqa: F401
