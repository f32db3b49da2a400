"""Reads and writes of the materialized governance state.

All methods operate on the caller's session; committing or rolling back is
the caller's job (see :func:`kernelscope.core.database.transaction`).

Current-state rows remember the position ``(block_number, log_index)`` of the
event that last modified them. An update from an older position is ignored,
so replaying already-processed logs leaves current state untouched. History
rows are merged on their primary key, which makes re-delivery overwrite a row
with identical content.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from kernelscope.core.types import ActionType, ContractType, LogCoordinates
from kernelscope.models import (
    ActionExecutedEvent,
    Contract,
    ContractEvent,
    KernelExecutor,
    KernelExecutorEvent,
    Role,
    RoleAssignment,
    RoleEvent,
)
from kernelscope.models.base import PositionMixin

logger = logging.getLogger(__name__)


def _at_or_before(model: type[PositionMixin], coords: LogCoordinates) -> Any:
    """SQL filter: row was last updated at or before the event position."""
    return or_(
        model.last_updated_block_number < coords.block_number,
        and_(
            model.last_updated_block_number == coords.block_number,
            model.last_updated_log_index <= coords.log_index,
        ),
    )


def _is_stale(row: PositionMixin, coords: LogCoordinates) -> bool:
    return row.position > coords.position


def _stamp(row: PositionMixin, coords: LogCoordinates) -> None:
    row.last_updated_timestamp = coords.timestamp
    row.last_updated_block_number = coords.block_number
    row.last_updated_log_index = coords.log_index


class StateStore:
    """Transactional adapter over the contract, executor and role tables."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ── Contracts ────────────────────────────────────────────────────────────

    async def get_contract(self, chain_id: int, address: str) -> Contract | None:
        return await self.session.get(Contract, (chain_id, address))

    async def find_module_for_keycode(
        self,
        chain_id: int,
        keycode: str,
        coords: LogCoordinates,
        exclude: str | None = None,
        enabled_only: bool = False,
    ) -> Contract | None:
        """Module row holding ``keycode`` as of ``coords``.

        The enabled row wins; otherwise the most recently updated one.
        """
        stmt = select(Contract).where(
            Contract.chain_id == chain_id,
            Contract.kind == ContractType.MODULE.value,
            Contract.name == keycode,
            _at_or_before(Contract, coords),
        )
        if exclude is not None:
            stmt = stmt.where(Contract.address != exclude)
        if enabled_only:
            stmt = stmt.where(Contract.is_enabled.is_(True))
        stmt = stmt.order_by(
            Contract.is_enabled.desc(),
            Contract.last_updated_block_number.desc(),
            Contract.last_updated_log_index.desc(),
        ).limit(1)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def upsert_contract(
        self,
        chain_id: int,
        address: str,
        coords: LogCoordinates,
        *,
        name: str,
        kind: ContractType,
        is_enabled: bool,
        version: str | None = None,
        policy_permissions: list[dict[str, Any]] | None = None,
        policy_functions: list[dict[str, Any]] | None = None,
    ) -> Contract:
        row = await self.get_contract(chain_id, address)
        if row is None:
            row = Contract(chain_id=chain_id, address=address)
            self.session.add(row)
        elif _is_stale(row, coords):
            logger.debug(
                "Skipping stale update of %s at %s (stored %s)", address, coords.position, row.position,
                extra={"chain_id": chain_id},
            )
            return row
        row.name = name
        row.version = version
        row.kind = kind.value
        row.is_enabled = is_enabled
        row.policy_permissions = policy_permissions
        row.policy_functions = policy_functions
        _stamp(row, coords)
        await self.session.flush()
        return row

    async def disable_contract(self, row: Contract, coords: LogCoordinates) -> None:
        if _is_stale(row, coords):
            return
        row.is_enabled = False
        _stamp(row, coords)
        await self.session.flush()

    async def record_contract_event(
        self,
        coords: LogCoordinates,
        address: str,
        action: ActionType,
        *,
        name: str,
        kind: ContractType,
        is_enabled: bool,
        version: str | None = None,
        policy_permissions: list[dict[str, Any]] | None = None,
        policy_functions: list[dict[str, Any]] | None = None,
    ) -> None:
        await self.session.merge(
            ContractEvent(
                chain_id=coords.chain_id,
                transaction_hash=coords.transaction_hash,
                log_index=coords.log_index,
                address=address,
                timestamp=coords.timestamp,
                block_number=coords.block_number,
                name=name,
                version=version,
                kind=kind.value,
                action=action.value,
                is_enabled=is_enabled,
                policy_permissions=policy_permissions,
                policy_functions=policy_functions,
            )
        )

    async def record_action_event(self, coords: LogCoordinates, kernel: str, action: ActionType, target: str) -> None:
        await self.session.merge(
            ActionExecutedEvent(
                chain_id=coords.chain_id,
                kernel=kernel,
                transaction_hash=coords.transaction_hash,
                log_index=coords.log_index,
                timestamp=coords.timestamp,
                block_number=coords.block_number,
                action=action.value,
                target=target,
            )
        )

    # ── Executor ─────────────────────────────────────────────────────────────

    async def upsert_executor(self, coords: LogCoordinates, kernel: str, executor: str) -> KernelExecutor:
        await self.session.merge(
            KernelExecutorEvent(
                chain_id=coords.chain_id,
                kernel=kernel,
                transaction_hash=coords.transaction_hash,
                log_index=coords.log_index,
                executor=executor,
                timestamp=coords.timestamp,
                block_number=coords.block_number,
            )
        )
        row = await self.session.get(KernelExecutor, (coords.chain_id, kernel))
        if row is None:
            row = KernelExecutor(chain_id=coords.chain_id, kernel=kernel)
            self.session.add(row)
        elif _is_stale(row, coords):
            return row
        row.executor = executor
        _stamp(row, coords)
        await self.session.flush()
        return row

    # ── Roles ────────────────────────────────────────────────────────────────

    async def ensure_role(self, chain_id: int, role: str) -> None:
        if await self.session.get(Role, (chain_id, role)) is None:
            self.session.add(Role(chain_id=chain_id, role=role))
            await self.session.flush()

    async def get_assignment(self, chain_id: int, role: str, assignee: str) -> RoleAssignment | None:
        return await self.session.get(RoleAssignment, (chain_id, role, assignee))

    async def find_granted_holder(
        self,
        chain_id: int,
        role: str,
        coords: LogCoordinates,
        exclude: str | None = None,
    ) -> RoleAssignment | None:
        stmt = select(RoleAssignment).where(
            RoleAssignment.chain_id == chain_id,
            RoleAssignment.role == role,
            RoleAssignment.is_granted.is_(True),
            _at_or_before(RoleAssignment, coords),
        )
        if exclude is not None:
            stmt = stmt.where(RoleAssignment.assignee != exclude)
        stmt = stmt.order_by(
            RoleAssignment.last_updated_block_number.desc(),
            RoleAssignment.last_updated_log_index.desc(),
        ).limit(1)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def set_role_assignment(
        self,
        coords: LogCoordinates,
        role: str,
        assignee: str,
        assignee_name: str,
        is_granted: bool,
    ) -> RoleAssignment:
        """Record a grant or revoke and update the current assignment."""
        await self.session.merge(
            RoleEvent(
                chain_id=coords.chain_id,
                role=role,
                transaction_hash=coords.transaction_hash,
                log_index=coords.log_index,
                assignee=assignee,
                assignee_name=assignee_name,
                is_granted=is_granted,
                timestamp=coords.timestamp,
                block_number=coords.block_number,
            )
        )
        row = await self.get_assignment(coords.chain_id, role, assignee)
        if row is None:
            row = RoleAssignment(chain_id=coords.chain_id, role=role, assignee=assignee)
            self.session.add(row)
        elif _is_stale(row, coords):
            return row
        row.assignee_name = assignee_name
        row.is_granted = is_granted
        _stamp(row, coords)
        await self.session.flush()
        return row
