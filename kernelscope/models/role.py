"""Role registry, current assignments and assignment history."""

from __future__ import annotations

from sqlalchemy import BigInteger, Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from kernelscope.models.base import Base, PositionMixin


class Role(Base):
    """A role seen at least once in a grant."""

    __tablename__ = "roles"

    chain_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    role: Mapped[str] = mapped_column(String(64), primary_key=True)


class RoleAssignment(Base, PositionMixin):
    __tablename__ = "role_assignments"

    chain_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    role: Mapped[str] = mapped_column(String(64), primary_key=True)
    assignee: Mapped[str] = mapped_column(String(42), primary_key=True)

    assignee_name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_granted: Mapped[bool] = mapped_column(Boolean, nullable=False)


class RoleEvent(Base):
    """One grant or revoke, as it happened."""

    __tablename__ = "role_events"

    chain_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    role: Mapped[str] = mapped_column(String(64), primary_key=True)
    transaction_hash: Mapped[str] = mapped_column(String(66), primary_key=True)
    log_index: Mapped[int] = mapped_column(Integer, primary_key=True)
    # NewAdminPulled writes a revoke and a grant under the same log
    assignee: Mapped[str] = mapped_column(String(42), primary_key=True)

    assignee_name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_granted: Mapped[bool] = mapped_column(Boolean, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
