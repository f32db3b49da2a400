"""Declarative base and shared column types."""

from __future__ import annotations

from sqlalchemy import JSON, BigInteger, Integer
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    pass


class PositionMixin:
    """Position of the last event that modified a current-state row."""

    last_updated_timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    last_updated_block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    last_updated_log_index: Mapped[int] = mapped_column(Integer, nullable=False)

    @property
    def position(self) -> tuple[int, int]:
        return (self.last_updated_block_number, self.last_updated_log_index)
