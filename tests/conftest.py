"""
Payroll CTC Engine - Test Configuration

Pytest fixtures and configuration.
"""

import os

# Settings are read at import time
os.environ["DATABASE_URL_ASYNC"] = "sqlite+aiosqlite://"
os.environ["APP_ENV"] = "testing"
os.environ["EMAIL_PROVIDER"] = "mock"

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Callable, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.database import Base, get_async_session
from app.models.user import EmployeeProfile, User, UserRole
from app.schemas.ctc import CTCCreate, LineItemIn
from main import app


TEST_DATABASE_URL = "sqlite+aiosqlite://"


@dataclass
class Person:
    """Plain ids of a seeded user; ORM instances expire on rollback."""
    user_id: int
    profile_id: Optional[int]
    email: str
    full_name: str


@pytest_asyncio.fixture(scope="function")
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory database shared by every session of one test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session override."""

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ===========================================
# DATA FIXTURES
# ===========================================

@pytest.fixture
def create_person(db_session: AsyncSession) -> Callable:
    """Factory that stores a user (and optionally a profile) and returns its ids."""

    async def _create(
        email: str,
        full_name: str,
        role: UserRole = UserRole.EMPLOYEE,
        with_profile: bool = True,
        is_active: bool = True,
    ) -> Person:
        user = User(email=email, full_name=full_name, role=role, is_active=is_active)
        db_session.add(user)
        await db_session.flush()

        profile_id = None
        if with_profile:
            profile = EmployeeProfile(user_id=user.id, employee_code=f"EMP-{user.id:04d}")
            db_session.add(profile)
            await db_session.flush()
            profile_id = profile.id

        person = Person(user.id, profile_id, user.email, user.full_name)
        await db_session.commit()
        return person

    return _create


@pytest_asyncio.fixture
async def hr_user(create_person) -> Person:
    """HR user that creates CTCs and payslips."""
    return await create_person("hr@example.com", "Hannah Reyes", UserRole.HR, with_profile=False)


@pytest_asyncio.fixture
async def hr_manager(create_person) -> Person:
    """HR manager that reviews and releases."""
    return await create_person("manager@example.com", "Marcus Obi", UserRole.HR_MANAGER, with_profile=False)


@pytest_asyncio.fixture
async def employee(create_person) -> Person:
    return await create_person("ada@example.com", "Ada Lovelace")


@pytest_asyncio.fixture
async def second_employee(create_person) -> Person:
    return await create_person("alan@example.com", "Alan Turing")


@pytest_asyncio.fixture
async def third_employee(create_person) -> Person:
    return await create_person("grace@example.com", "Grace Hopper")


@pytest.fixture
def ctc_request() -> Callable[..., CTCCreate]:
    """Builder for CTC create requests with sensible defaults."""

    def _build(
        effective_from: Optional[date] = date(2024, 1, 1),
        basic: str = "12000",
        hra: str = "6000",
        tax_percent: str = "10",
        allowances=(),
        deductions=(),
    ) -> CTCCreate:
        return CTCCreate(
            basic=Decimal(basic),
            hra=Decimal(hra),
            tax_percent=Decimal(tax_percent),
            effective_from=effective_from,
            allowances=[LineItemIn(label=label, amount=Decimal(amount)) for label, amount in allowances],
            deductions=[LineItemIn(label=label, amount=Decimal(amount)) for label, amount in deductions],
        )

    return _build
