"""
Data Transfer Objects for the paper trading application layer.

DTOs carry data between the interface and application layers.
They are plain dataclasses with no behavior.
"""

from dataclasses import dataclass
from typing import Any, Optional

from mudra.domain.paper_trading.entities import Bond, Transaction, Wallet
from mudra.domain.paper_trading.pagination import PageInfo
from mudra.domain.paper_trading.valuation import (
    LeaderboardEntry,
    LeaderboardStats,
    TransactionSummary,
)


@dataclass(frozen=True)
class TradeCommand:
    """Input DTO for a buy or a sell.

    Attributes:
        user_id: The trader, resolved from the bearer token.
        bond_id: Catalog bond to trade.
        quantity: Whole units; validated by the ledger, so any value is accepted here.
    """

    user_id: str
    bond_id: str
    quantity: Any


@dataclass(frozen=True)
class TradeResult:
    """Output DTO for a completed buy or sell.

    Attributes:
        transaction: The record appended to the log.
        wallet: The wallet after the trade.
    """

    transaction: Transaction
    wallet: Wallet


@dataclass(frozen=True)
class GetPortfolioQuery:
    user_id: str


@dataclass(frozen=True)
class ListTransactionsQuery:
    """Input DTO for a page of the caller's transactions.

    Attributes:
        user_id: Owner of the transactions.
        page: 1-based page number.
        limit: Page size (1-100).
        tx_type: Optional "BUY"/"SELL" filter, case-insensitive. Any other
            value is ignored and the full history is listed.
        sort_by: One of createdAt, totalAmount, quantity.
        sort_order: "asc" or "desc".
        include_summary: Also compute the lifetime summary over the
            unfiltered history.
    """

    user_id: str
    page: int = 1
    limit: int = 10
    tx_type: Optional[str] = None
    sort_by: str = "createdAt"
    sort_order: str = "desc"
    include_summary: bool = False


@dataclass(frozen=True)
class TransactionView:
    """A transaction together with its bond, if the bond still exists.

    When ``bond`` is None the transaction's snapshot is the only record
    of what was traded.
    """

    transaction: Transaction
    bond: Optional[Bond] = None


@dataclass(frozen=True)
class TransactionPage:
    """Output DTO for paginated transaction listings."""

    transactions: list[TransactionView]
    page: PageInfo
    summary: Optional[TransactionSummary] = None


@dataclass(frozen=True)
class RecentTransactionsQuery:
    user_id: str
    limit: int = 10


@dataclass(frozen=True)
class GetTransactionQuery:
    user_id: str
    transaction_id: str


@dataclass(frozen=True)
class LeaderboardQuery:
    page: int = 1
    limit: int = 50


@dataclass(frozen=True)
class LeaderboardResult:
    """Output DTO for one page of the leaderboard.

    ``stats`` cover every ranked trader, not only the page.
    """

    entries: list[LeaderboardEntry]
    page: PageInfo
    stats: LeaderboardStats


@dataclass(frozen=True)
class ListBondsQuery:
    """Input DTO for the active catalog listing.

    Attributes:
        risk_level: Optional "Low"/"Medium"/"High" filter.
        sector: Optional exact sector name.
    """

    risk_level: Optional[str] = None
    sector: Optional[str] = None


@dataclass(frozen=True)
class GetBondQuery:
    bond_id: str
