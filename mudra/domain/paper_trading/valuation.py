"""
Read-side projections over holdings, the bond catalog and the
transaction log.

Nothing here mutates state. A holding whose bond has disappeared from
the catalog is left out of every valuation rather than treated as an
error.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Optional

from mudra.domain.paper_trading.entities import (
    ZERO,
    Bond,
    Holding,
    Portfolio,
    Transaction,
    TransactionType,
    User,
    money,
)

PERCENT = Decimal("0.01")
HUNDRED = Decimal("100")


def percentage_return(profit_loss: Decimal, total_invested: Decimal) -> Decimal:
    """Return P&L as a percentage of invested capital, 0 when nothing is invested."""
    if total_invested <= 0:
        return ZERO
    return (profit_loss / total_invested * HUNDRED).quantize(PERCENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class HoldingValuation:
    """One holding marked to the bond's current catalog price."""

    holding: Holding
    bond: Bond
    current_value: Decimal
    profit_loss: Decimal
    percentage_return: Decimal
    expected_annual_return: Decimal


@dataclass(frozen=True)
class PortfolioValuation:
    """Totals across every valued holding of one portfolio."""

    holdings: list[HoldingValuation]
    total_invested: Decimal
    current_value: Decimal
    total_returns: Decimal
    percentage_return: Decimal
    expected_annual_returns: Decimal
    updated_at: Optional[datetime] = None

    @property
    def total_bonds_owned(self) -> int:
        return len(self.holdings)


def value_holding(holding: Holding, bond: Bond) -> HoldingValuation:
    current_value = money(bond.price * holding.quantity)
    profit_loss = current_value - holding.total_invested
    return HoldingValuation(
        holding=holding,
        bond=bond,
        current_value=current_value,
        profit_loss=profit_loss,
        percentage_return=percentage_return(profit_loss, holding.total_invested),
        expected_annual_return=money(current_value * bond.return_rate / HUNDRED),
    )


def value_portfolio(
    portfolio: Optional[Portfolio], bonds: Mapping[str, Bond]
) -> PortfolioValuation:
    """Value every active holding whose bond still exists.

    Args:
        portfolio: The portfolio, or None for a user who never traded.
        bonds: Catalog entries keyed by bond ID.
    """
    if portfolio is None:
        return PortfolioValuation(
            holdings=[],
            total_invested=ZERO,
            current_value=ZERO,
            total_returns=ZERO,
            percentage_return=ZERO,
            expected_annual_returns=ZERO,
        )

    valued = [
        value_holding(holding, bonds[holding.bond_id])
        for holding in portfolio.holdings.values()
        if holding.quantity > 0 and holding.bond_id in bonds
    ]
    total_invested = money(sum((v.holding.total_invested for v in valued), ZERO))
    current_value = money(sum((v.current_value for v in valued), ZERO))
    total_returns = current_value - total_invested
    return PortfolioValuation(
        holdings=valued,
        total_invested=total_invested,
        current_value=current_value,
        total_returns=total_returns,
        percentage_return=percentage_return(total_returns, total_invested),
        expected_annual_returns=money(sum((v.expected_annual_return for v in valued), ZERO)),
        updated_at=portfolio.updated_at,
    )


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    user_id: str
    user_name: str
    total_invested: Decimal
    current_value: Decimal
    total_returns: Decimal
    percentage_return: Decimal
    bonds_owned: int
    member_since: datetime


@dataclass(frozen=True)
class LeaderboardStats:
    total_traders: int
    avg_return: Decimal
    top_return: Decimal


def rank_leaderboard(
    portfolios: Iterable[Portfolio],
    users: Mapping[str, User],
    bonds: Mapping[str, Bond],
) -> list[LeaderboardEntry]:
    """Rank traders by percentage return, best first.

    Traders with nothing invested are left out. Ranks are positional:
    equal returns get consecutive ranks in portfolio iteration order.
    """
    scored = []
    for portfolio in portfolios:
        user = users.get(portfolio.user_id)
        if user is None:
            continue
        valuation = value_portfolio(portfolio, bonds)
        if valuation.total_invested <= 0:
            continue
        scored.append((user, valuation))

    scored.sort(key=lambda pair: pair[1].percentage_return, reverse=True)

    return [
        LeaderboardEntry(
            rank=position,
            user_id=user.id,
            user_name=user.name,
            total_invested=valuation.total_invested,
            current_value=valuation.current_value,
            total_returns=valuation.total_returns,
            percentage_return=valuation.percentage_return,
            bonds_owned=valuation.total_bonds_owned,
            member_since=user.created_at,
        )
        for position, (user, valuation) in enumerate(scored, start=1)
    ]


def leaderboard_stats(entries: list[LeaderboardEntry]) -> LeaderboardStats:
    if not entries:
        return LeaderboardStats(total_traders=0, avg_return=ZERO, top_return=ZERO)
    average = sum((e.percentage_return for e in entries), ZERO) / len(entries)
    return LeaderboardStats(
        total_traders=len(entries),
        avg_return=average.quantize(PERCENT, rounding=ROUND_HALF_UP),
        top_return=entries[0].percentage_return,
    )


@dataclass(frozen=True)
class TransactionSummary:
    """Lifetime counts and cash flows over a user's whole history."""

    total_transactions: int
    buy_count: int
    sell_count: int
    total_buy_amount: Decimal
    total_sell_amount: Decimal

    @property
    def net_flow(self) -> Decimal:
        return self.total_buy_amount - self.total_sell_amount


def summarize_transactions(transactions: Iterable[Transaction]) -> TransactionSummary:
    buys = ZERO
    sells = ZERO
    buy_count = 0
    sell_count = 0
    for tx in transactions:
        if tx.type is TransactionType.BUY:
            buy_count += 1
            buys += tx.total_amount
        else:
            sell_count += 1
            sells += tx.total_amount
    return TransactionSummary(
        total_transactions=buy_count + sell_count,
        buy_count=buy_count,
        sell_count=sell_count,
        total_buy_amount=money(buys),
        total_sell_amount=money(sells),
    )
