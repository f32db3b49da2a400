"""Tests for the kernel action processor (kernelscope/pipeline/action_processor.py).

Covers:
- Module install / upgrade and the one-enabled-module-per-keycode invariant
- Policy permission resolution, selector fallback and policy functions
- Executor changes and kernel migration
- Fatal errors roll back every write of the event
- Genesis bootstrap
- Idempotent re-delivery and replay
"""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select

from kernelscope.core.errors import (
    ChainReadError,
    EnrichmentUnavailableError,
    KeycodeCollisionError,
    MissingModuleError,
    MissingPreviousModuleError,
    UnknownActionError,
)
from kernelscope.core.types import FunctionDetails
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
from kernelscope.pipeline.action_processor import ActionEventProcessor
from kernelscope.tests.factories import (
    APPROVE_SELECTOR,
    CHAIN_ID,
    EXECUTOR,
    KERNEL,
    MODULE_A,
    MODULE_B,
    MODULE_C,
    POLICY,
    TRANSFER_SELECTOR,
    action_log,
    enrichment,
)

INSTALL, UPGRADE, ACTIVATE, DEACTIVATE, CHANGE_EXECUTOR, MIGRATE = range(6)

TRANSFER = FunctionDetails(name="transfer", selector=TRANSFER_SELECTOR, signature="transfer(address,uint256)")
APPROVE = FunctionDetails(name="approve", selector=APPROVE_SELECTOR, signature="approve(address,uint256)")
SET_LIMIT = FunctionDetails(
    name="setLimit", selector="0x12345678", signature="setLimit(uint256)", roles=["admin"]
)
VIEW_LIMIT = FunctionDetails(name="limit", selector="0x87654321", signature="limit()")


async def _get(factory, model, key):
    async with factory() as session:
        return await session.get(model, key)


async def _all(factory, model, *where):
    async with factory() as session:
        result = await session.execute(select(model).where(*where))
        return list(result.scalars().all())


async def _count(factory, model) -> int:
    async with factory() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


async def _snapshot(factory) -> dict[str, list[tuple]]:
    out: dict[str, list[tuple]] = {}
    for model in (
        Contract, ContractEvent, ActionExecutedEvent, KernelExecutor, KernelExecutorEvent,
        Role, RoleAssignment, RoleEvent,
    ):
        columns = [c.key for c in model.__table__.columns]
        rows = await _all(factory, model)
        out[model.__tablename__] = sorted(tuple(repr(getattr(r, c)) for c in columns) for r in rows)
    return out


# ── Fixtures ─────────────────────────────────────────────────────────────


@pytest.fixture
def treasury(chain_reader, metadata):
    """Two TRSRY implementations plus one policy that calls into TRSRY."""
    chain_reader.keycodes.update({MODULE_A: "TRSRY", MODULE_B: "TRSRY"})
    chain_reader.permissions[POLICY] = [("TRSRY", TRANSFER_SELECTOR)]
    metadata.results[MODULE_A] = enrichment(MODULE_A, "TRSRY", TRANSFER)
    metadata.results[MODULE_B] = enrichment(MODULE_B, "TRSRY", TRANSFER, APPROVE)
    metadata.results[POLICY] = enrichment(POLICY, "UNKNOWN", SET_LIMIT, VIEW_LIMIT)


# ── Modules ──────────────────────────────────────────────────────────────


class TestModules:
    @pytest.mark.asyncio
    async def test_install_module_records_keycode_name(self, action_processor, session_factory, treasury):
        result = await action_processor.process(action_log(INSTALL, MODULE_A, block=10))

        assert result.name == "TRSRY"
        row = await _get(session_factory, Contract, (CHAIN_ID, MODULE_A))
        assert row.name == "TRSRY"
        assert row.kind == "module"
        assert row.is_enabled is True
        assert row.position == (10, 0)
        assert row.policy_permissions is None

    @pytest.mark.asyncio
    async def test_keycode_read_at_event_block(self, action_processor, chain_reader, treasury):
        await action_processor.process(action_log(INSTALL, MODULE_A, block=10))
        assert ("keycode", MODULE_A, 10) in chain_reader.calls

    @pytest.mark.asyncio
    async def test_upgrade_leaves_one_enabled_module(self, action_processor, session_factory, treasury):
        await action_processor.process(action_log(INSTALL, MODULE_A, block=10))
        upgrade = action_log(UPGRADE, MODULE_B, block=20, log_index=3)
        await action_processor.process(upgrade)

        old = await _get(session_factory, Contract, (CHAIN_ID, MODULE_A))
        new = await _get(session_factory, Contract, (CHAIN_ID, MODULE_B))
        assert old.is_enabled is False
        assert new.is_enabled is True
        enabled = await _all(
            session_factory, Contract, Contract.name == "TRSRY", Contract.is_enabled.is_(True)
        )
        assert [c.address for c in enabled] == [MODULE_B]

        events = await _all(
            session_factory, ContractEvent, ContractEvent.transaction_hash == upgrade.transaction_hash
        )
        by_address = {e.address: e for e in events}
        assert set(by_address) == {MODULE_A, MODULE_B}
        assert by_address[MODULE_A].is_enabled is False
        assert by_address[MODULE_B].is_enabled is True
        assert {e.action for e in events} == {"upgradeModule"}

    @pytest.mark.asyncio
    async def test_upgrade_chain_disables_latest_predecessor(self, action_processor, chain_reader, session_factory, treasury):
        chain_reader.keycodes[MODULE_C] = "TRSRY"
        await action_processor.process(action_log(INSTALL, MODULE_A, block=10))
        await action_processor.process(action_log(UPGRADE, MODULE_B, block=20))
        await action_processor.process(action_log(UPGRADE, MODULE_C, block=30))

        rows = await _all(session_factory, Contract, Contract.name == "TRSRY")
        state = {r.address: (r.is_enabled, r.position) for r in rows}
        assert state == {
            MODULE_A: (False, (20, 0)),
            MODULE_B: (False, (30, 0)),
            MODULE_C: (True, (30, 0)),
        }

    @pytest.mark.asyncio
    async def test_upgrade_without_previous_module_is_fatal(self, action_processor, session_factory, treasury):
        with pytest.raises(MissingPreviousModuleError):
            await action_processor.process(action_log(UPGRADE, MODULE_B, block=20))

        assert await _count(session_factory, ActionExecutedEvent) == 0
        assert await _count(session_factory, Contract) == 0

    @pytest.mark.asyncio
    async def test_install_over_enabled_keycode_is_fatal(self, action_processor, session_factory, treasury):
        await action_processor.process(action_log(INSTALL, MODULE_A, block=10))
        with pytest.raises(KeycodeCollisionError) as exc_info:
            await action_processor.process(action_log(INSTALL, MODULE_B, block=20))

        assert exc_info.value.existing == MODULE_A
        assert await _get(session_factory, Contract, (CHAIN_ID, MODULE_B)) is None
        assert await _count(session_factory, ActionExecutedEvent) == 1

    @pytest.mark.asyncio
    async def test_failed_keycode_read_is_fatal(self, action_processor, session_factory):
        with pytest.raises(ChainReadError):
            await action_processor.process(action_log(INSTALL, MODULE_C, block=10))
        assert await _count(session_factory, ActionExecutedEvent) == 0


# ── Policies ─────────────────────────────────────────────────────────────


class TestPolicies:
    @pytest.mark.asyncio
    async def test_permissions_resolved_to_signatures(self, action_processor, session_factory, treasury):
        await action_processor.process(action_log(INSTALL, MODULE_A, block=10))
        await action_processor.process(action_log(ACTIVATE, POLICY, block=11))

        row = await _get(session_factory, Contract, (CHAIN_ID, POLICY))
        assert row.kind == "policy"
        assert row.is_enabled is True
        assert row.name == "UNKNOWN"
        assert row.policy_permissions == [{"keycode": "TRSRY", "function": "transfer(address,uint256)"}]

    @pytest.mark.asyncio
    async def test_policy_functions_list_every_function(self, action_processor, session_factory, treasury):
        await action_processor.process(action_log(INSTALL, MODULE_A, block=10))
        await action_processor.process(action_log(ACTIVATE, POLICY, block=11))

        row = await _get(session_factory, Contract, (CHAIN_ID, POLICY))
        assert row.policy_functions == [SET_LIMIT.model_dump(), VIEW_LIMIT.model_dump()]
        assert [f["roles"] for f in row.policy_functions] == [["admin"], []]

    @pytest.mark.asyncio
    async def test_unknown_selector_falls_back_to_raw_hash(
        self, action_processor, chain_reader, session_factory, treasury, caplog
    ):
        chain_reader.permissions[POLICY].append(("TRSRY", "0xdeadbeef"))
        await action_processor.process(action_log(INSTALL, MODULE_A, block=10))

        with caplog.at_level(logging.WARNING, logger="kernelscope.pipeline.action_processor"):
            await action_processor.process(action_log(ACTIVATE, POLICY, block=11))

        row = await _get(session_factory, Contract, (CHAIN_ID, POLICY))
        assert row.policy_permissions[1] == {"keycode": "TRSRY", "function": "0xdeadbeef"}
        assert "0xdeadbeef" in caplog.text

    @pytest.mark.asyncio
    async def test_permissions_follow_module_upgrade(self, action_processor, chain_reader, metadata, session_factory, treasury):
        chain_reader.permissions[POLICY] = [("TRSRY", APPROVE_SELECTOR)]
        await action_processor.process(action_log(INSTALL, MODULE_A, block=10))
        await action_processor.process(action_log(UPGRADE, MODULE_B, block=20))
        await action_processor.process(action_log(ACTIVATE, POLICY, block=30))

        assert (MODULE_B, "TRSRY") in metadata.requests
        assert (MODULE_A, "TRSRY") not in metadata.requests
        row = await _get(session_factory, Contract, (CHAIN_ID, POLICY))
        assert row.policy_permissions == [{"keycode": "TRSRY", "function": "approve(address,uint256)"}]

    @pytest.mark.asyncio
    async def test_deactivate_disables_and_keeps_permissions(self, action_processor, session_factory, treasury):
        await action_processor.process(action_log(INSTALL, MODULE_A, block=10))
        await action_processor.process(action_log(ACTIVATE, POLICY, block=11))
        await action_processor.process(action_log(DEACTIVATE, POLICY, block=12))

        row = await _get(session_factory, Contract, (CHAIN_ID, POLICY))
        assert row.is_enabled is False
        assert row.policy_permissions == [{"keycode": "TRSRY", "function": "transfer(address,uint256)"}]
        history = await _all(session_factory, ContractEvent, ContractEvent.address == POLICY)
        assert sorted((e.block_number, e.action, e.is_enabled) for e in history) == [
            (11, "activatePolicy", True),
            (12, "deactivatePolicy", False),
        ]

    @pytest.mark.asyncio
    async def test_missing_module_for_keycode_is_fatal(self, action_processor, chain_reader, session_factory, treasury):
        chain_reader.permissions[POLICY] = [("MINTR", TRANSFER_SELECTOR)]
        with pytest.raises(MissingModuleError) as exc_info:
            await action_processor.process(action_log(ACTIVATE, POLICY, block=11))

        assert exc_info.value.keycode == "MINTR"
        assert await _get(session_factory, Contract, (CHAIN_ID, POLICY)) is None
        assert await _count(session_factory, ActionExecutedEvent) == 0

    @pytest.mark.asyncio
    async def test_enrichment_failure_rolls_back(self, session_factory, chain_reader, treasury):
        failing = AsyncMock()
        failing.process_contract.side_effect = EnrichmentUnavailableError("explorer down", "NETWORK_ERROR")
        processor = ActionEventProcessor(session_factory, chain_reader, failing)

        await processor.process(action_log(INSTALL, MODULE_A, block=10))
        with pytest.raises(EnrichmentUnavailableError):
            await processor.process(action_log(ACTIVATE, POLICY, block=11))

        assert await _get(session_factory, Contract, (CHAIN_ID, POLICY)) is None
        assert await _count(session_factory, ActionExecutedEvent) == 1
        assert await _count(session_factory, ContractEvent) == 1


# ── Kernel ───────────────────────────────────────────────────────────────


class TestKernel:
    @pytest.mark.asyncio
    async def test_change_executor(self, action_processor, chain_reader, session_factory):
        chain_reader.executors[KERNEL] = EXECUTOR
        log = action_log(CHANGE_EXECUTOR, EXECUTOR, block=50, log_index=2)
        await action_processor.process(log)

        row = await _get(session_factory, KernelExecutor, (CHAIN_ID, KERNEL))
        assert row.executor == EXECUTOR
        assert row.position == (50, 2)
        event = await _get(session_factory, KernelExecutorEvent, (CHAIN_ID, KERNEL, log.transaction_hash, 2))
        assert event.executor == EXECUTOR
        assert ("executor", KERNEL, 50) in chain_reader.calls
        assert await _count(session_factory, ContractEvent) == 0
        assert await _count(session_factory, Contract) == 0
        raw = await _get(session_factory, ActionExecutedEvent, (CHAIN_ID, KERNEL, log.transaction_hash, 2))
        assert raw.action == "changeExecutor"
        assert raw.target == EXECUTOR

    @pytest.mark.asyncio
    async def test_migrate_kernel_records_new_kernel_without_history(self, action_processor, session_factory):
        new_kernel = "0x" + "f6" * 20
        await action_processor.process(action_log(MIGRATE, new_kernel, block=60))

        row = await _get(session_factory, Contract, (CHAIN_ID, new_kernel))
        assert (row.name, row.kind, row.is_enabled) == ("Kernel", "kernel", True)
        assert await _count(session_factory, ContractEvent) == 0
        assert await _count(session_factory, ActionExecutedEvent) == 1

    @pytest.mark.asyncio
    async def test_unknown_action_code(self, action_processor, session_factory):
        with pytest.raises(UnknownActionError):
            await action_processor.process(action_log(9, MODULE_A, block=10))
        assert await _count(session_factory, ActionExecutedEvent) == 0


# ── Bootstrap ────────────────────────────────────────────────────────────


class TestBootstrap:
    @pytest.mark.asyncio
    async def test_bootstrap_kernel(self, action_processor, chain_reader, session_factory):
        chain_reader.executors[KERNEL] = EXECUTOR
        result = await action_processor.bootstrap_kernel(CHAIN_ID)

        assert result.skipped is False
        kernel = await _get(session_factory, Contract, (CHAIN_ID, KERNEL))
        assert (kernel.name, kernel.kind, kernel.is_enabled) == ("Kernel", "kernel", True)
        assert kernel.position == (15998125, 0)
        executor = await _get(session_factory, KernelExecutor, (CHAIN_ID, KERNEL))
        assert executor.executor == EXECUTOR
        assert ("executor", KERNEL, 15998125) in chain_reader.calls
        history = await _all(session_factory, ContractEvent, ContractEvent.address == KERNEL)
        assert [(h.action, h.kind, h.is_enabled) for h in history] == [("migrateKernel", "kernel", True)]

    @pytest.mark.asyncio
    async def test_bootstrap_is_idempotent(self, action_processor, chain_reader, session_factory):
        chain_reader.executors[KERNEL] = EXECUTOR
        await action_processor.bootstrap_kernel(CHAIN_ID)
        before = await _snapshot(session_factory)

        again = await action_processor.bootstrap_kernel(CHAIN_ID)

        assert again.skipped is True
        assert await _snapshot(session_factory) == before


# ── Replay ───────────────────────────────────────────────────────────────


class TestReplay:
    def _history(self):
        return [
            action_log(INSTALL, MODULE_A, block=10),
            action_log(ACTIVATE, POLICY, block=11),
            action_log(UPGRADE, MODULE_B, block=20, log_index=1),
            action_log(CHANGE_EXECUTOR, EXECUTOR, block=21),
            action_log(DEACTIVATE, POLICY, block=30),
        ]

    @pytest.mark.asyncio
    async def test_redelivery_is_a_no_op(self, action_processor, chain_reader, session_factory, treasury):
        chain_reader.executors[KERNEL] = EXECUTOR
        history = self._history()
        for log in history:
            await action_processor.process(log)
        before = await _snapshot(session_factory)

        result = await action_processor.process(history[0])

        assert result.skipped is True
        assert await _snapshot(session_factory) == before

    @pytest.mark.asyncio
    async def test_full_replay_converges(self, action_processor, chain_reader, session_factory, treasury):
        chain_reader.executors[KERNEL] = EXECUTOR
        history = self._history()
        for log in history:
            await action_processor.process(log)
        before = await _snapshot(session_factory)

        for log in history:
            await action_processor.process(log)

        assert await _snapshot(session_factory) == before
