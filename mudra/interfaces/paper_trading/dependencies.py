"""
Dependency injection for the paper trading bounded context.

Provides FastAPI dependency functions that wire infrastructure
adapters into use cases via constructor injection.
These are the composition root for the paper trading context.
"""

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.engine import Engine

from mudra.application.paper_trading.buy_bond import BuyBondUseCase
from mudra.application.paper_trading.execute_trade import UnitOfWorkFactory
from mudra.application.paper_trading.get_bond import GetBondUseCase
from mudra.application.paper_trading.get_leaderboard import GetLeaderboardUseCase
from mudra.application.paper_trading.get_portfolio import GetPortfolioUseCase
from mudra.application.paper_trading.get_recent_transactions import (
    GetRecentTransactionsUseCase,
)
from mudra.application.paper_trading.get_transaction import GetTransactionUseCase
from mudra.application.paper_trading.list_bonds import ListBondsUseCase
from mudra.application.paper_trading.list_transactions import ListTransactionsUseCase
from mudra.application.paper_trading.sell_bond import SellBondUseCase
from mudra.core.config import settings
from mudra.domain.paper_trading.errors import AuthenticationError
from mudra.infrastructure.paper_trading.database import build_engine
from mudra.infrastructure.paper_trading.unit_of_work import SqlUnitOfWork

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Build the process-wide SQLAlchemy engine from application settings."""
    return build_engine(settings.get_database_url())


def get_uow_factory(engine: Engine = Depends(get_engine)) -> UnitOfWorkFactory:
    """Return a factory producing a fresh unit of work per call."""
    return lambda: SqlUnitOfWork(engine)


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> str:
    """Resolve the bearer session token to the ID of the user who owns it.

    Raises:
        AuthenticationError: If the header is missing or the token is unknown.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()

    with uow_factory() as uow:
        user = uow.users.get_by_session_token(credentials.credentials)

    if user is None:
        logger.warning("Rejected request with an unknown session token")
        raise AuthenticationError()
    return user.id


def get_buy_bond_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> BuyBondUseCase:
    """Build BuyBondUseCase with its infrastructure dependencies."""
    return BuyBondUseCase(uow_factory, max_attempts=settings.ledger_max_attempts)


def get_sell_bond_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> SellBondUseCase:
    """Build SellBondUseCase with its infrastructure dependencies."""
    return SellBondUseCase(uow_factory, max_attempts=settings.ledger_max_attempts)


def get_portfolio_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> GetPortfolioUseCase:
    return GetPortfolioUseCase(uow_factory)


def get_list_transactions_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> ListTransactionsUseCase:
    return ListTransactionsUseCase(uow_factory)


def get_recent_transactions_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> GetRecentTransactionsUseCase:
    return GetRecentTransactionsUseCase(uow_factory)


def get_transaction_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> GetTransactionUseCase:
    return GetTransactionUseCase(uow_factory)


def get_leaderboard_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> GetLeaderboardUseCase:
    return GetLeaderboardUseCase(uow_factory)


def get_list_bonds_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> ListBondsUseCase:
    return ListBondsUseCase(uow_factory)


def get_bond_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> GetBondUseCase:
    return GetBondUseCase(uow_factory)
