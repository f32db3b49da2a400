"""Shared fixtures for the KernelScope test suite."""

from __future__ import annotations

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from kernelscope.core.database import init_models
from kernelscope.pipeline.action_processor import ActionEventProcessor
from kernelscope.pipeline.role_processor import RoleEventProcessor
from kernelscope.tests.factories import FakeChainReader, FakeMetadata

TEST_DB_URL = "sqlite+aiosqlite://"


# ── Database ─────────────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


# ── Collaborators ────────────────────────────────────────────────────────────


@pytest.fixture
def chain_reader() -> FakeChainReader:
    return FakeChainReader()


@pytest.fixture
def metadata() -> FakeMetadata:
    return FakeMetadata()


@pytest.fixture
def action_processor(session_factory, chain_reader, metadata) -> ActionEventProcessor:
    return ActionEventProcessor(session_factory, chain_reader, metadata)


@pytest.fixture
def role_processor(session_factory, chain_reader) -> RoleEventProcessor:
    return RoleEventProcessor(session_factory, chain_reader)
