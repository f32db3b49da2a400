"""Materializes ``Kernel.ActionExecuted`` logs into contract and executor state.

Each log is handled inside a single database transaction: the raw action,
the contract history snapshot(s) and the current-state upserts all commit
together or not at all. Chain reads and enrichment happen inside the same
unit, so a failing read leaves no partial writes behind.

A log whose ``ActionExecutedEvent`` row already exists has been processed
before and is skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kernelscope.core.chains import get_chain_config
from kernelscope.core.database import transaction
from kernelscope.core.directory import get_contract_name, get_contract_version
from kernelscope.core.errors import KeycodeCollisionError, MissingModuleError, MissingPreviousModuleError
from kernelscope.core.logging import event_extra
from kernelscope.core.types import (
    ActionLog,
    ActionType,
    ActivatePolicy,
    ChangeExecutor,
    ContractType,
    DeactivatePolicy,
    EnrichmentResult,
    InstallModule,
    KernelAction,
    LogCoordinates,
    MigrateKernel,
    PolicyPermission,
    UpgradeModule,
    classify_action,
)
from kernelscope.models import ActionExecutedEvent
from kernelscope.store.state_store import StateStore

logger = logging.getLogger(__name__)

KERNEL_NAME = "Kernel"


class ChainReads(Protocol):
    async def keycode(self, chain_id: int, module: str, block_number: int | None = None) -> str: ...

    async def request_permissions(
        self, chain_id: int, policy: str, block_number: int | None = None
    ) -> list[tuple[str, str]]: ...

    async def executor(self, chain_id: int, kernel: str, block_number: int | None = None) -> str: ...


class ContractMetadata(Protocol):
    async def process_contract(self, chain_id: int, address: str, name: str) -> EnrichmentResult: ...


@dataclass
class ProcessedAction:
    """Outcome of one ``process`` call."""

    action: KernelAction
    name: str | None = None
    skipped: bool = False


class ActionEventProcessor:
    """Applies kernel actions to the contract, permission and executor tables."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        chain_reader: ChainReads,
        metadata_cache: ContractMetadata,
    ) -> None:
        self._session_factory = session_factory
        self._reader = chain_reader
        self._cache = metadata_cache

    async def process(self, log: ActionLog) -> ProcessedAction:
        action = classify_action(log.action, log.target)
        extra = event_extra(
            log.chain_id, log.transaction_hash, log.log_index, action=action.action.value, address=action.target
        )

        async with transaction(self._session_factory) as session:
            key = (log.chain_id, log.kernel, log.transaction_hash, log.log_index)
            if await session.get(ActionExecutedEvent, key) is not None:
                logger.info("Action already processed, skipping", extra=extra)
                return ProcessedAction(action=action, skipped=True)

            store = StateStore(session)
            await store.record_action_event(log, log.kernel, action.action, action.target)

            if isinstance(action, (InstallModule, UpgradeModule)):
                name = await self._apply_module(store, log, action)
            elif isinstance(action, (ActivatePolicy, DeactivatePolicy)):
                name = await self._apply_policy(store, log, action)
            elif isinstance(action, ChangeExecutor):
                name = await self._apply_executor(store, log)
            elif isinstance(action, MigrateKernel):
                name = await self._apply_kernel(store, log, action)
            else:  # pragma: no cover
                raise TypeError(f"Unhandled kernel action {action!r}")

        logger.info("Processed %s for %s (%s)", action.action.value, name, action.target, extra=extra)
        return ProcessedAction(action=action, name=name)

    # ── Modules ──────────────────────────────────────────────────────────────

    async def _apply_module(
        self, store: StateStore, log: ActionLog, action: InstallModule | UpgradeModule
    ) -> str:
        chain_id = log.chain_id
        keycode = await self._reader.keycode(chain_id, action.target, log.block_number)

        if isinstance(action, UpgradeModule):
            previous = await store.find_module_for_keycode(chain_id, keycode, log, exclude=action.target)
            if previous is None:
                raise MissingPreviousModuleError(chain_id, keycode)
            logger.info(
                "Upgrading %s: %s -> %s", keycode, previous.address, action.target,
                extra=event_extra(chain_id, log.transaction_hash, log.log_index, action=action.action.value),
            )
            await store.record_contract_event(
                log,
                previous.address,
                action.action,
                name=previous.name,
                version=previous.version,
                kind=ContractType.MODULE,
                is_enabled=False,
            )
            await store.disable_contract(previous, log)
        else:
            existing = await store.find_module_for_keycode(
                chain_id, keycode, log, exclude=action.target, enabled_only=True
            )
            if existing is not None:
                raise KeycodeCollisionError(chain_id, keycode, existing.address, action.target)

        await self._write_contract(
            store, log, action, keycode, version=get_contract_version(action.target, chain_id)
        )
        return keycode

    # ── Policies ─────────────────────────────────────────────────────────────

    async def _apply_policy(
        self, store: StateStore, log: ActionLog, action: ActivatePolicy | DeactivatePolicy
    ) -> str:
        chain_id = log.chain_id
        name = get_contract_name(action.target, chain_id)
        permissions = await self._resolve_permissions(store, log, action.target)

        policy = await self._cache.process_contract(chain_id, action.target, name)
        functions = [f.model_dump() for f in policy.functions.values()]

        await self._write_contract(
            store, log, action, name,
            version=get_contract_version(action.target, chain_id),
            policy_permissions=permissions,
            policy_functions=functions,
        )
        return name

    async def _resolve_permissions(self, store: StateStore, log: ActionLog, policy: str) -> list[dict[str, Any]]:
        chain_id = log.chain_id
        requests = await self._reader.request_permissions(chain_id, policy, log.block_number)
        permissions: list[dict[str, Any]] = []
        for keycode, selector in requests:
            module = await store.find_module_for_keycode(chain_id, keycode, log)
            if module is None:
                raise MissingModuleError(chain_id, keycode, policy)
            enrichment = await self._cache.process_contract(chain_id, module.address, keycode)
            details = enrichment.functions.get(selector)
            if details is None:
                logger.warning(
                    "Selector %s not found in %s (%s), recording raw selector", selector, keycode, module.address,
                    extra=event_extra(chain_id, log.transaction_hash, log.log_index, address=policy),
                )
                function = selector
            else:
                function = details.signature
            permissions.append(PolicyPermission(keycode=keycode, function=function).model_dump())
        return permissions

    # ── Kernel ───────────────────────────────────────────────────────────────

    async def _apply_executor(self, store: StateStore, log: ActionLog) -> str:
        executor = await self._reader.executor(log.chain_id, log.kernel, log.block_number)
        await store.upsert_executor(log, log.kernel, executor)
        return get_contract_name(executor, log.chain_id)

    async def _apply_kernel(self, store: StateStore, log: ActionLog, action: MigrateKernel) -> str:
        await self._write_contract(
            store, log, action, KERNEL_NAME, version=get_contract_version(action.target, log.chain_id)
        )
        return KERNEL_NAME

    async def _write_contract(
        self,
        store: StateStore,
        coords: LogCoordinates,
        action: KernelAction,
        name: str,
        version: str | None = None,
        policy_permissions: list[dict[str, Any]] | None = None,
        policy_functions: list[dict[str, Any]] | None = None,
        record_event: bool | None = None,
    ) -> None:
        fields: dict[str, Any] = dict(
            name=name,
            version=version,
            kind=action.kind,
            is_enabled=action.is_enabled,
            policy_permissions=policy_permissions,
            policy_functions=policy_functions,
        )
        if action.records_contract_event if record_event is None else record_event:
            await store.record_contract_event(coords, action.target, action.action, **fields)
        await store.upsert_contract(coords.chain_id, action.target, coords, **fields)

    # ── Bootstrap ────────────────────────────────────────────────────────────

    async def bootstrap_kernel(self, chain_id: int) -> ProcessedAction:
        """Seed the kernel and its executor from the chain's deployment coordinates."""
        deployment = get_chain_config(chain_id).kernel
        coords = LogCoordinates(
            chain_id=chain_id,
            transaction_hash=deployment.creation_tx_hash,
            log_index=0,
            block_number=deployment.creation_block_number,
            timestamp=deployment.creation_timestamp,
        )
        action = MigrateKernel(target=deployment.address)
        extra = event_extra(chain_id, coords.transaction_hash, 0, action=action.action.value, address=deployment.address)

        async with transaction(self._session_factory) as session:
            key = (chain_id, deployment.address, coords.transaction_hash, 0)
            if await session.get(ActionExecutedEvent, key) is not None:
                logger.info("Kernel already bootstrapped", extra=extra)
                return ProcessedAction(action=action, name=KERNEL_NAME, skipped=True)

            store = StateStore(session)
            await store.record_action_event(coords, deployment.address, ActionType.MIGRATE_KERNEL, deployment.address)
            await self._write_contract(store, coords, action, KERNEL_NAME, record_event=True)
            executor = await self._reader.executor(chain_id, deployment.address, coords.block_number)
            await store.upsert_executor(coords, deployment.address, executor)

        logger.info("Bootstrapped kernel %s with executor %s", deployment.address, executor, extra=extra)
        return ProcessedAction(action=action, name=KERNEL_NAME)
