"""
Use case: Sell held units of a bond back at its current catalog price.

Input: TradeCommand (user_id, bond_id, quantity)
Output: TradeResult
Side effects: Credits the wallet, returns units to the bond's pool,
    shrinks or removes the holding, appends a SELL transaction.
Failure cases: InvalidInputError, UserNotFoundError, BondNotFoundError,
    NoPortfolioError, InsufficientHoldingsError.
"""

from typing import Optional

from mudra.application.paper_trading.execute_trade import ExecuteTradeUseCase
from mudra.domain.paper_trading import ledger
from mudra.domain.paper_trading.entities import Bond, Portfolio, User
from mudra.domain.paper_trading.ledger import LedgerTransition


class SellBondUseCase(ExecuteTradeUseCase):
    """Orchestrates a sale through the ledger.

    Inactive bonds can still be sold; only buying is closed.
    """

    action = "SELL"

    def transition(
        self, user: User, bond: Bond, portfolio: Optional[Portfolio], quantity: int
    ) -> LedgerTransition:
        return ledger.sell(user, bond, portfolio, quantity)
