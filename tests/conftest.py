"""
Shared fixtures for the test suite.

Every test gets a fresh in-memory SQLite database with the full
schema. Rate limiting is switched off before the application (and its
settings singleton) is imported.
"""

import os

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from decimal import Decimal
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from mudra.domain.paper_trading.entities import Bond, RiskLevel, User, Wallet, new_id
from mudra.infrastructure.paper_trading.database import build_engine, ensure_tables
from mudra.infrastructure.paper_trading.unit_of_work import SqlUnitOfWork
from mudra.interfaces.paper_trading.dependencies import get_engine
from mudra.main import app


@pytest.fixture
def engine() -> Iterator[Engine]:
    """A private in-memory database with the schema created."""
    eng = build_engine("sqlite://")
    ensure_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def uow_factory(engine: Engine) -> Callable[[], SqlUnitOfWork]:
    return lambda: SqlUnitOfWork(engine)


@pytest.fixture
def make_user(uow_factory) -> Callable[..., User]:
    """Insert a trader and return it. Each gets its own session token."""

    def _make(balance: str = "100000", name: str = "Asha") -> User:
        user = User(
            name=name,
            email=f"{new_id()}@example.com",
            wallet=Wallet(balance=Decimal(balance).quantize(Decimal("0.01"))),
            session_token=new_id(),
        )
        with uow_factory() as uow:
            uow.users.add(user)
            uow.commit()
        return user

    return _make


@pytest.fixture
def make_bond(uow_factory) -> Callable[..., Bond]:
    """Insert a catalog bond and return it."""

    def _make(
        price: str = "10000",
        available_units: int = 1000,
        return_rate: str = "7.5",
        is_active: bool = True,
        risk_level: RiskLevel = RiskLevel.LOW,
        sector: str = "Transportation",
        name: str | None = None,
    ) -> Bond:
        price_dec = Decimal(price)
        bond = Bond(
            name=name or f"Highway Bond {new_id()[:8]}",
            issuer="NHAI",
            return_rate=Decimal(return_rate),
            risk_level=risk_level,
            price=price_dec,
            maturity_years=5,
            sector=sector,
            total_value=price_dec * available_units,
            available_units=available_units,
            is_active=is_active,
        )
        with uow_factory() as uow:
            uow.bonds.add(bond)
            uow.commit()
        return bond

    return _make


@pytest.fixture
def client(engine: Engine) -> Iterator[TestClient]:
    """TestClient bound to the per-test database."""
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()

