"""Materializes ROLES grants/revokes and RolesAdmin admin transfers."""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kernelscope.core.chains import get_chain_config
from kernelscope.core.database import transaction
from kernelscope.core.directory import get_contract_name
from kernelscope.core.logging import event_extra
from kernelscope.core.types import ROLE_ROLES_ADMIN, AdminPulledLog, LogCoordinates, RoleLog
from kernelscope.models import RoleAssignment, RoleEvent
from kernelscope.store.state_store import StateStore

logger = logging.getLogger(__name__)


class AdminReads(Protocol):
    async def roles_admin(self, chain_id: int, roles_admin: str, block_number: int | None = None) -> str: ...


class RoleEventProcessor:
    """Keeps ``Role``, ``RoleAssignment`` and ``RoleEvent`` in step with the chain."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        chain_reader: AdminReads | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._reader = chain_reader

    async def process(self, log: RoleLog) -> RoleAssignment | None:
        return await (self.grant(log) if log.granted else self.revoke(log))

    async def grant(self, log: RoleLog) -> RoleAssignment | None:
        async with transaction(self._session_factory) as session:
            if await self._seen(session, log, log.role, log.assignee):
                return None
            return await self._grant(StateStore(session), log, log.role, log.assignee)

    async def revoke(self, log: RoleLog) -> RoleAssignment | None:
        async with transaction(self._session_factory) as session:
            if await self._seen(session, log, log.role, log.assignee):
                return None
            return await self._revoke(StateStore(session), log, log.role, log.assignee)

    async def admin_pulled(self, log: AdminPulledLog) -> RoleAssignment | None:
        """Move the sentinel admin role from its current holder to ``new_admin``."""
        extra = event_extra(log.chain_id, log.transaction_hash, log.log_index, address=log.new_admin)
        async with transaction(self._session_factory) as session:
            if await self._seen(session, log, ROLE_ROLES_ADMIN, log.new_admin):
                return None
            store = StateStore(session)
            current = await store.get_assignment(log.chain_id, ROLE_ROLES_ADMIN, log.new_admin)
            previous = await store.find_granted_holder(log.chain_id, ROLE_ROLES_ADMIN, log, exclude=log.new_admin)
            if previous is None and current is not None and current.is_granted:
                logger.debug("%s already holds %s", log.new_admin, ROLE_ROLES_ADMIN, extra=extra)
            elif previous is None:
                logger.warning("No current %s holder found before transfer", ROLE_ROLES_ADMIN, extra=extra)
            else:
                logger.info("Admin transferred from %s to %s", previous.assignee, log.new_admin, extra=extra)
                await self._revoke(store, log, ROLE_ROLES_ADMIN, previous.assignee)
            return await self._grant(store, log, ROLE_ROLES_ADMIN, log.new_admin)

    async def bootstrap_roles_admin(self, chain_id: int) -> RoleAssignment | None:
        """Seed the sentinel admin role from ``admin()`` at the RolesAdmin deployment."""
        if self._reader is None:
            raise RuntimeError("bootstrap_roles_admin requires a chain reader")
        deployment = get_chain_config(chain_id).roles_admin
        coords = LogCoordinates(
            chain_id=chain_id,
            transaction_hash=deployment.creation_tx_hash,
            log_index=0,
            block_number=deployment.creation_block_number,
            timestamp=deployment.creation_timestamp,
        )
        admin = await self._reader.roles_admin(chain_id, deployment.address, deployment.creation_block_number)
        async with transaction(self._session_factory) as session:
            if await self._seen(session, coords, ROLE_ROLES_ADMIN, admin):
                logger.info("RolesAdmin already bootstrapped", extra={"chain_id": chain_id})
                return None
            return await self._grant(StateStore(session), coords, ROLE_ROLES_ADMIN, admin)

    # ── Internals ────────────────────────────────────────────────────────────

    @staticmethod
    async def _seen(session: AsyncSession, coords: LogCoordinates, role: str, assignee: str) -> bool:
        key = (coords.chain_id, role, coords.transaction_hash, coords.log_index, assignee)
        if await session.get(RoleEvent, key) is None:
            return False
        logger.info(
            "Role event already processed, skipping",
            extra=event_extra(coords.chain_id, coords.transaction_hash, coords.log_index, address=assignee),
        )
        return True

    async def _grant(self, store: StateStore, coords: LogCoordinates, role: str, assignee: str) -> RoleAssignment:
        name = get_contract_name(assignee, coords.chain_id)
        await store.ensure_role(coords.chain_id, role)
        row = await store.set_role_assignment(coords, role, assignee, name, is_granted=True)
        logger.info(
            "Granted %s to %s (%s)", role, assignee, name,
            extra=event_extra(coords.chain_id, coords.transaction_hash, coords.log_index, address=assignee),
        )
        return row

    async def _revoke(self, store: StateStore, coords: LogCoordinates, role: str, assignee: str) -> RoleAssignment:
        extra = event_extra(coords.chain_id, coords.transaction_hash, coords.log_index, address=assignee)
        if await store.get_assignment(coords.chain_id, role, assignee) is None:
            logger.warning("Revoking %s from %s, which was never granted", role, assignee, extra=extra)
        name = get_contract_name(assignee, coords.chain_id)
        row = await store.set_role_assignment(coords, role, assignee, name, is_granted=False)
        logger.info("Revoked %s from %s (%s)", role, assignee, name, extra=extra)
        return row
