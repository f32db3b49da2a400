"""Shared enums, inbound log schemas and the kernel action union."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Any, ClassVar, Union

from pydantic import BaseModel, Field, field_validator

from kernelscope.core.errors import UnknownActionError

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_HASH_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")

# Role name used to track the admin of the RolesAdmin policy.
ROLE_ROLES_ADMIN = "RolesAdmin"


# ── Enums ────────────────────────────────────────────────────────────────────


class ContractType(str, enum.Enum):
    """Kind of contract registered with the kernel."""

    KERNEL = "kernel"
    MODULE = "module"
    POLICY = "policy"


class ActionType(str, enum.Enum):
    """Kernel actions, in on-chain enum order."""

    INSTALL_MODULE = "installModule"
    UPGRADE_MODULE = "upgradeModule"
    ACTIVATE_POLICY = "activatePolicy"
    DEACTIVATE_POLICY = "deactivatePolicy"
    CHANGE_EXECUTOR = "changeExecutor"
    MIGRATE_KERNEL = "migrateKernel"


# ── Helpers ──────────────────────────────────────────────────────────────────


def normalize_address(value: str) -> str:
    """Validate an EVM address and return it lower-cased."""
    if not isinstance(value, str) or not _ADDRESS_RE.match(value):
        raise ValueError(f"Invalid address: {value!r}")
    return value.lower()


def normalize_hash(value: str) -> str:
    if not isinstance(value, str) or not _HASH_RE.match(value):
        raise ValueError(f"Invalid transaction hash: {value!r}")
    return value.lower()


def decode_bytes_text(value: bytes | str) -> str:
    """Decode a fixed-size bytes value (bytes5 keycode, bytes32 role) to text.

    Accepts raw bytes, ``0x``-prefixed hex, or already-decoded text. Trailing
    NUL padding is stripped.
    """
    if isinstance(value, str):
        if value.startswith("0x"):
            raw = bytes.fromhex(value[2:])
        else:
            return value.replace("\x00", "")
    else:
        raw = bytes(value)
    return raw.decode("utf-8", errors="replace").replace("\x00", "")


def selector_hex(value: bytes | str) -> str:
    """Return a 4-byte selector as lower-case ``0x`` hex."""
    if isinstance(value, str):
        return value.lower() if value.startswith("0x") else "0x" + value.lower()
    return "0x" + bytes(value).hex()


# ── Inbound logs ─────────────────────────────────────────────────────────────


class LogCoordinates(BaseModel):
    """Where an on-chain log sits in its chain's history."""

    chain_id: int
    transaction_hash: str
    log_index: int = Field(ge=0)
    block_number: int = Field(ge=0)
    timestamp: int = Field(ge=0)

    @field_validator("transaction_hash")
    @classmethod
    def _check_hash(cls, v: str) -> str:
        return normalize_hash(v)

    @property
    def position(self) -> tuple[int, int]:
        return (self.block_number, self.log_index)


class ActionLog(LogCoordinates):
    """Decoded ``Kernel.ActionExecuted(action_, target_)`` log."""

    kernel: str
    action: int
    target: str

    @field_validator("kernel", "target")
    @classmethod
    def _check_address(cls, v: str) -> str:
        return normalize_address(v)


class RoleLog(LogCoordinates):
    """Decoded ``ROLES.RoleGranted`` / ``ROLES.RoleRevoked`` log."""

    role: str
    assignee: str
    granted: bool

    @field_validator("role", mode="before")
    @classmethod
    def _decode_role(cls, v: Any) -> str:
        return decode_bytes_text(v)

    @field_validator("assignee")
    @classmethod
    def _check_address(cls, v: str) -> str:
        return normalize_address(v)


class AdminPulledLog(LogCoordinates):
    """Decoded ``RolesAdmin.NewAdminPulled(newAdmin_)`` log."""

    new_admin: str

    @field_validator("new_admin")
    @classmethod
    def _check_address(cls, v: str) -> str:
        return normalize_address(v)


ChainLog = Union[ActionLog, RoleLog, AdminPulledLog]


# ── Enrichment ───────────────────────────────────────────────────────────────


class FunctionDetails(BaseModel):
    """A contract function, keyed elsewhere by its selector."""

    name: str
    selector: str
    signature: str
    roles: list[str] = Field(default_factory=list)


class PolicyPermission(BaseModel):
    """A module function a policy is permitted to call."""

    keycode: str
    function: str


class EnrichmentResult(BaseModel):
    """Selector map for one contract, as produced by the extractor."""

    chain_id: int
    address: str
    name: str
    functions: dict[str, FunctionDetails] = Field(default_factory=dict)
    fetched_at: float = 0.0

    def guarded_functions(self) -> list[FunctionDetails]:
        return [f for f in self.functions.values() if f.roles]


# ── Kernel actions ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class KernelAction:
    """One classified ``ActionExecuted`` log."""

    code: ClassVar[int]
    action: ClassVar[ActionType]
    kind: ClassVar[ContractType]
    is_enabled: ClassVar[bool]

    target: str

    @property
    def records_contract_event(self) -> bool:
        return True


@dataclass(frozen=True)
class InstallModule(KernelAction):
    code = 0
    action = ActionType.INSTALL_MODULE
    kind = ContractType.MODULE
    is_enabled = True


@dataclass(frozen=True)
class UpgradeModule(KernelAction):
    """Replaces the enabled module for the target's keycode."""

    code = 1
    action = ActionType.UPGRADE_MODULE
    kind = ContractType.MODULE
    is_enabled = True


@dataclass(frozen=True)
class ActivatePolicy(KernelAction):
    code = 2
    action = ActionType.ACTIVATE_POLICY
    kind = ContractType.POLICY
    is_enabled = True


@dataclass(frozen=True)
class DeactivatePolicy(KernelAction):
    code = 3
    action = ActionType.DEACTIVATE_POLICY
    kind = ContractType.POLICY
    is_enabled = False


@dataclass(frozen=True)
class ChangeExecutor(KernelAction):
    """Target is the new executor, not a contract managed by the kernel."""

    code = 4
    action = ActionType.CHANGE_EXECUTOR
    kind = ContractType.KERNEL
    is_enabled = True

    @property
    def records_contract_event(self) -> bool:
        return False


@dataclass(frozen=True)
class MigrateKernel(KernelAction):
    """History for kernels is written once, at bootstrap."""

    code = 5
    action = ActionType.MIGRATE_KERNEL
    kind = ContractType.KERNEL
    is_enabled = True

    @property
    def records_contract_event(self) -> bool:
        return False


_ACTIONS: dict[int, type[KernelAction]] = {
    cls.code: cls
    for cls in (InstallModule, UpgradeModule, ActivatePolicy, DeactivatePolicy, ChangeExecutor, MigrateKernel)
}


def classify_action(code: int, target: str) -> KernelAction:
    """Map the on-chain action enum to its typed variant."""
    try:
        cls = _ACTIONS[code]
    except KeyError:
        raise UnknownActionError(code) from None
    return cls(target=target)
