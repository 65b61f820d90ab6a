"""
Adapter: SQL unit of work.

Implements the UnitOfWork port. One instance wraps one database
connection and one transaction; the repositories it exposes all write
through that transaction, so a buy or sell is committed as a whole or
not at all.
"""

import logging
from types import TracebackType
from typing import Optional

from sqlalchemy.engine import Connection, Engine, RootTransaction

from mudra.domain.paper_trading.ports import UnitOfWork
from mudra.infrastructure.paper_trading.bond_repository import BondRepositoryAdapter
from mudra.infrastructure.paper_trading.portfolio_repository import (
    PortfolioRepositoryAdapter,
)
from mudra.infrastructure.paper_trading.transaction_repository import (
    TransactionRepositoryAdapter,
)
from mudra.infrastructure.paper_trading.user_repository import UserRepositoryAdapter

logger = logging.getLogger(__name__)


class SqlUnitOfWork(UnitOfWork):
    """Unit of work over a SQLAlchemy engine.

    Usage:
        with SqlUnitOfWork(engine) as uow:
            user = uow.users.get_by_id(user_id)
            ...
            uow.commit()
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._connection: Optional[Connection] = None
        self._transaction: Optional[RootTransaction] = None

    def __enter__(self) -> "SqlUnitOfWork":
        self._connection = self._engine.connect()
        self._transaction = self._connection.begin()
        self.users = UserRepositoryAdapter(self._connection)
        self.bonds = BondRepositoryAdapter(self._connection)
        self.portfolios = PortfolioRepositoryAdapter(self._connection)
        self.transactions = TransactionRepositoryAdapter(self._connection)
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        try:
            self.rollback()
        finally:
            if self._connection is not None:
                self._connection.close()
            self._connection = None
            self._transaction = None

    def commit(self) -> None:
        if self._transaction is None:
            raise RuntimeError("Unit of work is not active")
        self._transaction.commit()

    def rollback(self) -> None:
        if self._transaction is not None and self._transaction.is_active:
            self._transaction.rollback()
            logger.debug("Unit of work rolled back")
