"""
Port interfaces (ABCs) for the paper trading bounded context.

Ports define the contracts that the domain requires from the outside world.
Infrastructure adapters implement these interfaces.
The domain layer never depends on concrete implementations.

Every repository is bound to one ``UnitOfWork``; nothing a repository
writes is visible to other requests until that unit of work commits.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from types import TracebackType
from typing import Optional

from mudra.domain.paper_trading.entities import (
    Bond,
    Portfolio,
    RiskLevel,
    Transaction,
    TransactionType,
    User,
)

TRANSACTION_SORT_FIELDS = ("created_at", "total_amount", "quantity")


class UserRepository(ABC):
    """Port for users and the wallet embedded in each user."""

    @abstractmethod
    def get_by_id(self, user_id: str) -> Optional[User]:
        """Return a user by ID, or None if not found."""
        raise NotImplementedError

    @abstractmethod
    def get_by_session_token(self, token: str) -> Optional[User]:
        """Return the user owning an opaque session token, or None."""
        raise NotImplementedError

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        """Return a user by email address, or None."""
        raise NotImplementedError

    @abstractmethod
    def get_many(self, user_ids: list[str]) -> dict[str, User]:
        """Return the users that exist among ``user_ids``, keyed by ID."""
        raise NotImplementedError

    @abstractmethod
    def add(self, user: User) -> None:
        """Persist a newly registered user."""
        raise NotImplementedError

    @abstractmethod
    def set_wallet_balance(
        self, user_id: str, balance: Decimal, expected_version: int
    ) -> None:
        """Overwrite the wallet balance with ``balance``.

        Raises:
            ConcurrencyConflictError: If the stored version is no longer
                ``expected_version``.
        """
        raise NotImplementedError


class BondRepository(ABC):
    """Port for the bond catalog and its unit inventory."""

    @abstractmethod
    def get_by_id(self, bond_id: str) -> Optional[Bond]:
        """Return a bond by ID, or None if not found."""
        raise NotImplementedError

    @abstractmethod
    def get_by_name(self, name: str) -> Optional[Bond]:
        """Return a bond by its catalog name, or None if not found."""
        raise NotImplementedError

    @abstractmethod
    def get_many(self, bond_ids: list[str]) -> dict[str, Bond]:
        """Return the bonds that exist among ``bond_ids``, keyed by ID."""
        raise NotImplementedError

    @abstractmethod
    def list_active(
        self, risk_level: Optional[RiskLevel] = None, sector: Optional[str] = None
    ) -> list[Bond]:
        """Return active bonds ordered by name, optionally filtered."""
        raise NotImplementedError

    @abstractmethod
    def add(self, bond: Bond) -> None:
        """Persist a new catalog entry."""
        raise NotImplementedError

    @abstractmethod
    def decrement_inventory(
        self, bond_id: str, quantity: int, expected_version: int
    ) -> None:
        """Take ``quantity`` units out of the available pool.

        Raises:
            ConcurrencyConflictError: On a stale ``expected_version``.
        """
        raise NotImplementedError

    @abstractmethod
    def increment_inventory(
        self, bond_id: str, quantity: int, expected_version: int
    ) -> None:
        """Return ``quantity`` units to the available pool.

        Raises:
            ConcurrencyConflictError: On a stale ``expected_version``.
        """
        raise NotImplementedError


class PortfolioRepository(ABC):
    """Port for persisting and retrieving portfolios with their holdings."""

    @abstractmethod
    def get_by_user(self, user_id: str) -> Optional[Portfolio]:
        """Return the user's portfolio, or None if they never bought."""
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> list[Portfolio]:
        """Return every portfolio, oldest first."""
        raise NotImplementedError

    @abstractmethod
    def add(self, portfolio: Portfolio) -> None:
        """Persist a new portfolio.

        Raises:
            ConcurrencyConflictError: If the user already has one.
        """
        raise NotImplementedError

    @abstractmethod
    def update(self, portfolio: Portfolio, expected_version: int) -> None:
        """Replace the stored holdings and totals of a portfolio.

        Raises:
            ConcurrencyConflictError: On a stale ``expected_version``.
        """
        raise NotImplementedError


class TransactionRepository(ABC):
    """Port for the append-only transaction log.

    There is deliberately no update or delete.
    """

    @abstractmethod
    def add(self, transaction: Transaction) -> None:
        """Append a transaction record."""
        raise NotImplementedError

    @abstractmethod
    def get_for_user(self, transaction_id: str, user_id: str) -> Optional[Transaction]:
        """Return one of the user's transactions, or None."""
        raise NotImplementedError

    @abstractmethod
    def list_for_user(
        self,
        user_id: str,
        tx_type: Optional[TransactionType] = None,
        offset: int = 0,
        limit: Optional[int] = None,
        sort_by: str = "created_at",
        descending: bool = True,
    ) -> list[Transaction]:
        """Return the user's transactions, filtered, sorted and sliced.

        Args:
            user_id: Owner of the transactions.
            tx_type: Optional BUY/SELL filter.
            offset: Number of rows to skip.
            limit: Maximum rows to return; None for all.
            sort_by: One of ``TRANSACTION_SORT_FIELDS``.
            descending: Sort direction.
        """
        raise NotImplementedError

    @abstractmethod
    def count_for_user(
        self, user_id: str, tx_type: Optional[TransactionType] = None
    ) -> int:
        """Return how many transactions match the filter."""
        raise NotImplementedError


class UnitOfWork(ABC):
    """One atomic scope spanning all paper trading repositories.

    Used as a context manager. Leaving the block without calling
    ``commit`` discards every write made through the repositories.
    """

    users: UserRepository
    bonds: BondRepository
    portfolios: PortfolioRepository
    transactions: TransactionRepository

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.rollback()

    @abstractmethod
    def commit(self) -> None:
        """Make every write in this scope durable and visible."""
        raise NotImplementedError

    @abstractmethod
    def rollback(self) -> None:
        """Discard every uncommitted write in this scope."""
        raise NotImplementedError
