from __future__ import annotations

import uuid
from enum import Enum as PyEnum

from sqlalchemy import Enum
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def new_id() -> str:
    return str(uuid.uuid4())


def status_enum(enum_cls: type[PyEnum], name: str) -> Enum:
    # Stored as the enum's string value in a VARCHAR; no native DB enum type.
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        validate_strings=True,
        values_callable=lambda members: [member.value for member in members],
    )
