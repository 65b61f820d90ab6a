"""
Pydantic schemas for paper trading API request/response validation.

These schemas define the API contract. Every response is wrapped in
the envelope ``{success, message?, data?, error?}``; field names are
camelCase on the wire. Money leaves the API as JSON numbers.
No business logic belongs here.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel

from mudra.application.paper_trading.dtos import (
    LeaderboardResult,
    TradeResult,
    TransactionPage,
    TransactionView,
)
from mudra.domain.paper_trading.entities import Bond, Wallet
from mudra.domain.paper_trading.pagination import PageInfo
from mudra.domain.paper_trading.valuation import (
    HoldingValuation,
    LeaderboardEntry,
    PortfolioValuation,
    TransactionSummary,
)


def _num(value: Decimal) -> float:
    return float(value)


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase in JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Envelope(CamelModel):
    success: bool = True
    message: Optional[str] = None


class ErrorResponse(CamelModel):
    """Error envelope returned by every failing request."""

    success: bool = False
    message: str
    error: Optional[str] = None
    data: Optional[dict[str, Any]] = None


# --- Trading ---


class TradeRequest(CamelModel):
    """Request body for buy and sell.

    Both fields are optional at the schema level so that a missing
    field yields the same message as an empty one.

    Attributes:
        bond_id: Catalog bond to trade.
        quantity: Whole units to trade (at least 1).
    """

    bond_id: Optional[str] = Field(default=None, max_length=64)
    quantity: Optional[StrictInt] = None


class WalletSchema(CamelModel):
    balance: float
    currency: str

    @classmethod
    def of(cls, wallet: Wallet) -> "WalletSchema":
        return cls(balance=_num(wallet.balance), currency=wallet.currency)


class TradeBondSchema(CamelModel):
    id: str
    name: str
    issuer: str


class TradeTransactionSchema(CamelModel):
    id: str
    type: str
    bond: TradeBondSchema
    quantity: int
    price_per_unit: float
    total_amount: float
    date: datetime


class TradeData(CamelModel):
    transaction: TradeTransactionSchema
    wallet: WalletSchema


class TradeResponse(Envelope):
    data: TradeData

    @classmethod
    def of(cls, result: TradeResult, message: str) -> "TradeResponse":
        tx = result.transaction
        return cls(
            message=message,
            data=TradeData(
                transaction=TradeTransactionSchema(
                    id=tx.id,
                    type=tx.type.value,
                    bond=TradeBondSchema(
                        id=tx.bond_id,
                        name=tx.bond_snapshot.name,
                        issuer=tx.bond_snapshot.issuer,
                    ),
                    quantity=tx.quantity,
                    price_per_unit=_num(tx.price_per_unit),
                    total_amount=_num(tx.total_amount),
                    date=tx.created_at,
                ),
                wallet=WalletSchema.of(result.wallet),
            ),
        )


# --- Transactions ---


class PaginationSchema(CamelModel):
    current_page: int
    total_pages: int
    total_count: int
    limit: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def of(cls, page: PageInfo) -> "PaginationSchema":
        return cls(
            current_page=page.current_page,
            total_pages=page.total_pages,
            total_count=page.total_count,
            limit=page.limit,
            has_next_page=page.has_next_page,
            has_prev_page=page.has_prev_page,
        )


class TransactionBondSchema(CamelModel):
    """Bond details on a transaction.

    Live catalog values when the bond still exists; otherwise the
    snapshot taken at execution time, without ``id``, ``currentPrice``
    and ``sector``.
    """

    id: Optional[str] = None
    name: str
    issuer: str
    current_price: Optional[float] = None
    return_rate: float
    risk_level: str
    sector: Optional[str] = None
    maturity_years: Optional[int] = None


class TransactionItem(CamelModel):
    id: str
    type: str
    quantity: int
    price_per_unit: float
    total_amount: float
    status: str
    created_at: datetime
    bond: TransactionBondSchema

    @classmethod
    def of(cls, view: TransactionView) -> "TransactionItem":
        tx, bond = view.transaction, view.bond
        if bond is not None:
            bond_schema = TransactionBondSchema(
                id=bond.id,
                name=bond.name,
                issuer=bond.issuer,
                current_price=_num(bond.price),
                return_rate=_num(bond.return_rate),
                risk_level=bond.risk_level.value,
                sector=bond.sector,
                maturity_years=bond.maturity_years,
            )
        else:
            snapshot = tx.bond_snapshot
            bond_schema = TransactionBondSchema(
                name=snapshot.name,
                issuer=snapshot.issuer,
                return_rate=_num(snapshot.return_rate),
                risk_level=snapshot.risk_level.value,
            )
        return cls(
            id=tx.id,
            type=tx.type.value,
            quantity=tx.quantity,
            price_per_unit=_num(tx.price_per_unit),
            total_amount=_num(tx.total_amount),
            status=tx.status.value,
            created_at=tx.created_at,
            bond=bond_schema,
        )


class TransactionSummarySchema(CamelModel):
    total_transactions: int
    buy_count: int
    sell_count: int
    total_buy_amount: float
    total_sell_amount: float
    net_flow: float

    @classmethod
    def of(cls, summary: TransactionSummary) -> "TransactionSummarySchema":
        return cls(
            total_transactions=summary.total_transactions,
            buy_count=summary.buy_count,
            sell_count=summary.sell_count,
            total_buy_amount=_num(summary.total_buy_amount),
            total_sell_amount=_num(summary.total_sell_amount),
            net_flow=_num(summary.net_flow),
        )


class TransactionListData(CamelModel):
    transactions: list[TransactionItem]
    pagination: PaginationSchema
    summary: Optional[TransactionSummarySchema] = None


class TransactionListResponse(Envelope):
    data: TransactionListData

    @classmethod
    def of(cls, page: TransactionPage) -> "TransactionListResponse":
        return cls(
            data=TransactionListData(
                transactions=[TransactionItem.of(v) for v in page.transactions],
                pagination=PaginationSchema.of(page.page),
                summary=TransactionSummarySchema.of(page.summary) if page.summary else None,
            )
        )


class RecentTransactionsData(CamelModel):
    transactions: list[TransactionItem]


class RecentTransactionsResponse(Envelope):
    data: RecentTransactionsData


class TransactionDetailData(CamelModel):
    transaction: TransactionItem


class TransactionDetailResponse(Envelope):
    data: TransactionDetailData


# --- Portfolio ---


class HoldingBondSchema(CamelModel):
    id: str
    name: str
    issuer: str
    current_price: float
    return_rate: float
    risk_level: str
    sector: str
    maturity_years: int
    is_active: bool


class HoldingItem(CamelModel):
    bond: HoldingBondSchema
    quantity: int
    average_buy_price: float
    total_invested: float
    current_value: float
    profit_loss: float
    percentage_return: float
    expected_annual_return: float
    first_purchase_date: datetime
    last_transaction_date: datetime

    @classmethod
    def of(cls, valued: HoldingValuation) -> "HoldingItem":
        holding, bond = valued.holding, valued.bond
        return cls(
            bond=HoldingBondSchema(
                id=bond.id,
                name=bond.name,
                issuer=bond.issuer,
                current_price=_num(bond.price),
                return_rate=_num(bond.return_rate),
                risk_level=bond.risk_level.value,
                sector=bond.sector,
                maturity_years=bond.maturity_years,
                is_active=bond.is_active,
            ),
            quantity=holding.quantity,
            average_buy_price=_num(holding.average_buy_price),
            total_invested=_num(holding.total_invested),
            current_value=_num(valued.current_value),
            profit_loss=_num(valued.profit_loss),
            percentage_return=_num(valued.percentage_return),
            expected_annual_return=_num(valued.expected_annual_return),
            first_purchase_date=holding.first_purchase_date,
            last_transaction_date=holding.last_transaction_date,
        )


class PortfolioSummarySchema(CamelModel):
    total_invested: float
    current_value: float
    total_bonds_owned: int
    total_returns: float
    percentage_return: float
    expected_annual_returns: float

    @classmethod
    def of(cls, valuation: PortfolioValuation) -> "PortfolioSummarySchema":
        return cls(
            total_invested=_num(valuation.total_invested),
            current_value=_num(valuation.current_value),
            total_bonds_owned=valuation.total_bonds_owned,
            total_returns=_num(valuation.total_returns),
            percentage_return=_num(valuation.percentage_return),
            expected_annual_returns=_num(valuation.expected_annual_returns),
        )


class PortfolioSchema(PortfolioSummarySchema):
    holdings: list[HoldingItem]
    updated_at: Optional[datetime] = None

    @classmethod
    def of(cls, valuation: PortfolioValuation) -> "PortfolioSchema":
        return cls(
            **PortfolioSummarySchema.of(valuation).model_dump(),
            holdings=[HoldingItem.of(v) for v in valuation.holdings],
            updated_at=valuation.updated_at,
        )


class PortfolioData(CamelModel):
    portfolio: PortfolioSchema


class PortfolioResponse(Envelope):
    data: PortfolioData


class PortfolioSummaryResponse(Envelope):
    data: PortfolioSummarySchema


# --- Leaderboard ---


class LeaderboardEntrySchema(CamelModel):
    rank: int
    user_id: str
    user_name: str
    total_invested: float
    current_value: float
    total_returns: float
    percentage_return: float
    bonds_owned: int
    member_since: datetime

    @classmethod
    def of(cls, entry: LeaderboardEntry) -> "LeaderboardEntrySchema":
        return cls(
            rank=entry.rank,
            user_id=entry.user_id,
            user_name=entry.user_name,
            total_invested=_num(entry.total_invested),
            current_value=_num(entry.current_value),
            total_returns=_num(entry.total_returns),
            percentage_return=_num(entry.percentage_return),
            bonds_owned=entry.bonds_owned,
            member_since=entry.member_since,
        )


class LeaderboardStatsSchema(CamelModel):
    total_traders: int
    avg_return: float
    top_return: float


class LeaderboardData(CamelModel):
    leaderboard: list[LeaderboardEntrySchema]
    pagination: PaginationSchema
    stats: LeaderboardStatsSchema


class LeaderboardResponse(Envelope):
    data: LeaderboardData

    @classmethod
    def of(cls, result: LeaderboardResult) -> "LeaderboardResponse":
        return cls(
            data=LeaderboardData(
                leaderboard=[LeaderboardEntrySchema.of(e) for e in result.entries],
                pagination=PaginationSchema.of(result.page),
                stats=LeaderboardStatsSchema(
                    total_traders=result.stats.total_traders,
                    avg_return=_num(result.stats.avg_return),
                    top_return=_num(result.stats.top_return),
                ),
            )
        )


# --- Bonds ---


class BondSchema(CamelModel):
    id: str
    name: str
    issuer: str
    description: str
    return_rate: float
    risk_level: str
    price: float
    maturity_years: int
    sector: str
    total_value: float
    available_units: int
    is_active: bool
    launch_date: Optional[datetime] = None

    @classmethod
    def of(cls, bond: Bond) -> "BondSchema":
        return cls(
            id=bond.id,
            name=bond.name,
            issuer=bond.issuer,
            description=bond.description,
            return_rate=_num(bond.return_rate),
            risk_level=bond.risk_level.value,
            price=_num(bond.price),
            maturity_years=bond.maturity_years,
            sector=bond.sector,
            total_value=_num(bond.total_value),
            available_units=bond.available_units,
            is_active=bond.is_active,
            launch_date=bond.launch_date,
        )


class BondListData(CamelModel):
    bonds: list[BondSchema]
    count: int


class BondListResponse(Envelope):
    data: BondListData


class BondDetailData(CamelModel):
    bond: BondSchema


class BondDetailResponse(Envelope):
    data: BondDetailData


# --- Health ---


class HealthResponse(CamelModel):
    """Response schema for health check endpoint."""

    status: str
    version: str
    timestamp: datetime
    uptime_seconds: float
