"""Database models package."""

from kernelscope.models.base import Base, JSONType, PositionMixin  # noqa: F401
from kernelscope.models.contract import (  # noqa: F401
    ActionExecutedEvent,
    Contract,
    ContractEvent,
    KernelExecutor,
    KernelExecutorEvent,
)
from kernelscope.models.role import Role, RoleAssignment, RoleEvent  # noqa: F401

__all__ = [
    "Base",
    "JSONType",
    "PositionMixin",
    "Contract",
    "ContractEvent",
    "ActionExecutedEvent",
    "KernelExecutor",
    "KernelExecutorEvent",
    "Role",
    "RoleAssignment",
    "RoleEvent",
]
