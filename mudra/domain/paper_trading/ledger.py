"""
Holdings ledger: the buy/sell state transitions.

Each transition is a pure function of the current user, bond and
portfolio. Every precondition is checked before anything is computed,
so a rejected request raises without producing any effect. A
successful call returns a ``LedgerTransition`` describing the complete
effect set, which the application layer writes inside one unit of work.

Cost basis is the weighted average: each buy recomputes
``average_buy_price = total_invested / quantity`` from cumulative
invested capital; a sell removes ``average_buy_price * quantity`` of
cost and leaves the average untouched. Sells are priced at the bond's
current catalog price, so realized P&L is implicit.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from mudra.domain.paper_trading.entities import (
    ZERO,
    Bond,
    BondSnapshot,
    Holding,
    Portfolio,
    Transaction,
    TransactionType,
    User,
    Wallet,
    money,
    unit_price,
    utc_now,
)
from mudra.domain.paper_trading.errors import (
    InactiveBondError,
    InsufficientFundsError,
    InsufficientHoldingsError,
    InsufficientInventoryError,
    InvalidInputError,
    NoPortfolioError,
)


@dataclass(frozen=True)
class LedgerTransition:
    """Everything one buy or sell changes, applied all together or not at all.

    Attributes:
        user: The user as read before the transition (carries the version).
        bond: The bond as read before the transition (carries the version).
        wallet: The wallet after the transition.
        wallet_delta: Signed change to the wallet balance.
        units_delta: Signed change to the bond's available units.
        portfolio: The portfolio after the transition.
        portfolio_version: Stored version of the portfolio that was read,
            or None when this transition creates the portfolio.
        transaction: The record to append to the transaction log.
    """

    user: User
    bond: Bond
    wallet: Wallet
    wallet_delta: Decimal
    units_delta: int
    portfolio: Portfolio
    portfolio_version: Optional[int]
    transaction: Transaction

    @property
    def creates_portfolio(self) -> bool:
        return self.portfolio_version is None


def validate_quantity(quantity: Any) -> int:
    """Return ``quantity`` if it is a whole number of units, at least one.

    Raises:
        InvalidInputError: For zero, negatives, fractions and non-numbers.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidInputError("Quantity must be at least 1", field="quantity")
    return quantity


def _copy_portfolio(portfolio: Portfolio, now: datetime) -> Portfolio:
    return replace(portfolio, holdings=dict(portfolio.holdings), updated_at=now)


def _record(
    user: User, bond: Bond, tx_type: TransactionType, quantity: int,
    total: Decimal, now: datetime,
) -> Transaction:
    return Transaction(
        user_id=user.id,
        bond_id=bond.id,
        type=tx_type,
        quantity=quantity,
        price_per_unit=bond.price,
        total_amount=total,
        bond_snapshot=BondSnapshot.of(bond),
        created_at=now,
    )


def buy(
    user: User,
    bond: Bond,
    portfolio: Optional[Portfolio],
    quantity: Any,
    now: Optional[datetime] = None,
) -> LedgerTransition:
    """Compute the effects of buying ``quantity`` units of ``bond``.

    Raises:
        InvalidInputError: Quantity is not a positive integer.
        InactiveBondError: The bond is withdrawn from sale.
        InsufficientInventoryError: Fewer units available than requested.
        InsufficientFundsError: Wallet balance below the total cost.
    """
    qty = validate_quantity(quantity)
    if not bond.is_active:
        raise InactiveBondError(bond.id)
    if bond.available_units < qty:
        raise InsufficientInventoryError(bond.available_units, qty)

    total_cost = money(bond.price * qty)
    if user.wallet.balance < total_cost:
        raise InsufficientFundsError(total_cost, user.wallet.balance)

    now = now or utc_now()
    if portfolio is None:
        updated = Portfolio(user_id=user.id, created_at=now, updated_at=now)
        portfolio_version = None
    else:
        updated = _copy_portfolio(portfolio, now)
        portfolio_version = portfolio.version

    existing = updated.holding_for(bond.id)
    if existing is None:
        holding = Holding(
            bond_id=bond.id,
            quantity=qty,
            average_buy_price=unit_price(bond.price),
            total_invested=total_cost,
            first_purchase_date=now,
            last_transaction_date=now,
        )
    else:
        new_total = money(existing.total_invested + total_cost)
        new_quantity = existing.quantity + qty
        holding = replace(
            existing,
            quantity=new_quantity,
            total_invested=new_total,
            average_buy_price=unit_price(new_total / new_quantity),
            last_transaction_date=now,
        )
    updated.holdings[bond.id] = holding
    updated.recalculate_totals()

    return LedgerTransition(
        user=user,
        bond=bond,
        wallet=user.wallet.debit(total_cost),
        wallet_delta=-total_cost,
        units_delta=-qty,
        portfolio=updated,
        portfolio_version=portfolio_version,
        transaction=_record(user, bond, TransactionType.BUY, qty, total_cost, now),
    )


def sell(
    user: User,
    bond: Bond,
    portfolio: Optional[Portfolio],
    quantity: Any,
    now: Optional[datetime] = None,
) -> LedgerTransition:
    """Compute the effects of selling ``quantity`` units of ``bond``.

    Raises:
        InvalidInputError: Quantity is not a positive integer.
        NoPortfolioError: The user has never bought anything.
        InsufficientHoldingsError: The user holds fewer units than requested.
    """
    qty = validate_quantity(quantity)
    if portfolio is None:
        raise NoPortfolioError(user.id)

    existing = portfolio.holding_for(bond.id)
    held = existing.quantity if existing is not None else 0
    if existing is None or held < qty:
        raise InsufficientHoldingsError(held, qty)

    now = now or utc_now()
    total_amount = money(bond.price * qty)
    updated = _copy_portfolio(portfolio, now)

    remaining = held - qty
    if remaining == 0:
        del updated.holdings[bond.id]
    else:
        cost_removed = money(existing.average_buy_price * qty)
        updated.holdings[bond.id] = replace(
            existing,
            quantity=remaining,
            total_invested=max(money(existing.total_invested - cost_removed), ZERO),
            last_transaction_date=now,
        )
    updated.recalculate_totals()

    return LedgerTransition(
        user=user,
        bond=bond,
        wallet=user.wallet.credit(total_amount),
        wallet_delta=total_amount,
        units_delta=qty,
        portfolio=updated,
        portfolio_version=portfolio.version,
        transaction=_record(user, bond, TransactionType.SELL, qty, total_amount, now),
    )
