from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base for the booking store.

    Bookings, their audit trail, outbox tasks and verification sessions all
    hang off this metadata, which Alembic autogenerate and the test fixtures
    both read.
    """

    pass
