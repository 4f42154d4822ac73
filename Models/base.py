# Models/base.py
from sqlalchemy import Enum
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def state_column_type(enum_cls):
    """Enum column storing the member values ("InUse") rather than names."""
    return Enum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        validate_strings=True,
        length=32,
    )
