"""
Use case: Buy units of a catalog bond with the virtual wallet.

Input: TradeCommand (user_id, bond_id, quantity)
Output: TradeResult
Side effects: Debits the wallet, takes units out of the bond's pool,
    upserts the holding, appends a BUY transaction. All or nothing.
Failure cases: InvalidInputError, UserNotFoundError, BondNotFoundError,
    InactiveBondError, InsufficientInventoryError, InsufficientFundsError.
"""

from typing import Optional

from mudra.application.paper_trading.execute_trade import ExecuteTradeUseCase
from mudra.domain.paper_trading import ledger
from mudra.domain.paper_trading.entities import Bond, Portfolio, User
from mudra.domain.paper_trading.ledger import LedgerTransition


class BuyBondUseCase(ExecuteTradeUseCase):
    """Orchestrates a purchase through the ledger."""

    action = "BUY"

    def transition(
        self, user: User, bond: Bond, portfolio: Optional[Portfolio], quantity: int
    ) -> LedgerTransition:
        return ledger.buy(user, bond, portfolio, quantity)
