"""Kernel, module and policy state plus their append-only history."""

from __future__ import annotations

from sqlalchemy import BigInteger, Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from kernelscope.models.base import Base, JSONType, PositionMixin


class Contract(Base, PositionMixin):
    """Current state of a contract registered with a kernel."""

    __tablename__ = "contracts"

    chain_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    address: Mapped[str] = mapped_column(String(42), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    version: Mapped[str | None] = mapped_column(String(20), nullable=True)
    kind: Mapped[str] = mapped_column(String(10), nullable=False)  # kernel, module, policy
    is_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False)

    # Policies only
    policy_permissions: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    policy_functions: Mapped[list | None] = mapped_column(JSONType, nullable=True)


class ContractEvent(Base):
    """Snapshot of a contract's state as of one kernel action."""

    __tablename__ = "contract_events"

    chain_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    transaction_hash: Mapped[str] = mapped_column(String(66), primary_key=True)
    log_index: Mapped[int] = mapped_column(Integer, primary_key=True)
    # An upgrade records both the superseded and the new module for one log
    address: Mapped[str] = mapped_column(String(42), primary_key=True)

    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    version: Mapped[str | None] = mapped_column(String(20), nullable=True)
    kind: Mapped[str] = mapped_column(String(10), nullable=False)
    action: Mapped[str] = mapped_column(String(30), nullable=False)
    is_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False)
    policy_permissions: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    policy_functions: Mapped[list | None] = mapped_column(JSONType, nullable=True)


class ActionExecutedEvent(Base):
    """Raw ``ActionExecuted`` log as received."""

    __tablename__ = "action_executed_events"

    chain_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    kernel: Mapped[str] = mapped_column(String(42), primary_key=True)
    transaction_hash: Mapped[str] = mapped_column(String(66), primary_key=True)
    log_index: Mapped[int] = mapped_column(Integer, primary_key=True)

    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    action: Mapped[str] = mapped_column(String(30), nullable=False)
    target: Mapped[str] = mapped_column(String(42), nullable=False)


class KernelExecutor(Base, PositionMixin):
    __tablename__ = "kernel_executors"

    chain_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    kernel: Mapped[str] = mapped_column(String(42), primary_key=True)
    executor: Mapped[str] = mapped_column(String(42), nullable=False)


class KernelExecutorEvent(Base):
    __tablename__ = "kernel_executor_events"

    chain_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    kernel: Mapped[str] = mapped_column(String(42), primary_key=True)
    transaction_hash: Mapped[str] = mapped_column(String(66), primary_key=True)
    log_index: Mapped[int] = mapped_column(Integer, primary_key=True)

    executor: Mapped[str] = mapped_column(String(42), nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
