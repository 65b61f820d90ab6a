"""
Shared machinery for the buy and sell use cases.

A trade reads the user, the bond and the portfolio, asks the ledger
for the resulting transition, and writes every effect through one unit
of work. Contended rows are written compare-and-swap; when another
request got there first the whole attempt is discarded and replayed
from fresh reads.

Failure cases: InvalidInputError, UserNotFoundError, BondNotFoundError,
any BusinessRuleError raised by the ledger, and ConcurrencyConflictError
once every attempt has lost a race.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from mudra.application.paper_trading.dtos import TradeCommand, TradeResult
from mudra.domain.paper_trading.entities import Bond, Portfolio, User
from mudra.domain.paper_trading.errors import (
    BondNotFoundError,
    ConcurrencyConflictError,
    UserNotFoundError,
)
from mudra.domain.paper_trading.ledger import LedgerTransition, validate_quantity
from mudra.domain.paper_trading.ports import UnitOfWork

logger = logging.getLogger(__name__)

UnitOfWorkFactory = Callable[[], UnitOfWork]

DEFAULT_MAX_ATTEMPTS = 3


def apply_transition(uow: UnitOfWork, transition: LedgerTransition) -> None:
    """Write every effect of a ledger transition through ``uow``.

    Nothing is committed here; the caller commits once all writes succeed.

    Raises:
        ConcurrencyConflictError: If any versioned row changed since it was read.
    """
    user, bond = transition.user, transition.bond

    uow.users.set_wallet_balance(user.id, transition.wallet.balance, user.version)

    if transition.units_delta < 0:
        uow.bonds.decrement_inventory(bond.id, -transition.units_delta, bond.version)
    else:
        uow.bonds.increment_inventory(bond.id, transition.units_delta, bond.version)

    if transition.creates_portfolio:
        uow.portfolios.add(transition.portfolio)
    else:
        uow.portfolios.update(transition.portfolio, transition.portfolio_version)

    uow.transactions.add(transition.transaction)


class ExecuteTradeUseCase(ABC):
    """Base for BuyBondUseCase and SellBondUseCase.

    Subclasses set ``action`` (for logs) and implement ``transition``.
    """

    action = "trade"

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        """
        Args:
            uow_factory: Returns a fresh, not yet entered, unit of work.
            max_attempts: Attempts made before a version conflict is
                given up on. At least one attempt is always made.
        """
        self._uow_factory = uow_factory
        self._max_attempts = max(1, max_attempts)

    @abstractmethod
    def transition(
        self, user: User, bond: Bond, portfolio: Optional[Portfolio], quantity: int
    ) -> LedgerTransition:
        raise NotImplementedError

    def execute(self, command: TradeCommand) -> TradeResult:
        """Run the trade, retrying on version conflicts.

        Args:
            command: Who trades which bond, and how many units.

        Returns:
            The appended transaction and the wallet after the trade.
        """
        quantity = validate_quantity(command.quantity)
        logger.info(
            "%s requested: user=%s, bond=%s, quantity=%d",
            self.action,
            command.user_id,
            command.bond_id,
            quantity,
        )

        attempt = 1
        while True:
            try:
                return self._attempt(command, quantity)
            except ConcurrencyConflictError as exc:
                if attempt >= self._max_attempts:
                    logger.error(
                        "%s abandoned after %d attempts: %s",
                        self.action,
                        attempt,
                        exc.message,
                    )
                    raise
                logger.warning(
                    "%s lost a race (%s), retrying: attempt %d/%d",
                    self.action,
                    exc.message,
                    attempt + 1,
                    self._max_attempts,
                )
                attempt += 1

    def _attempt(self, command: TradeCommand, quantity: int) -> TradeResult:
        with self._uow_factory() as uow:
            user = uow.users.get_by_id(command.user_id)
            if user is None:
                raise UserNotFoundError(command.user_id)

            bond = uow.bonds.get_by_id(command.bond_id)
            if bond is None:
                raise BondNotFoundError(command.bond_id)

            portfolio = uow.portfolios.get_by_user(user.id)
            transition = self.transition(user, bond, portfolio, quantity)

            apply_transition(uow, transition)
            uow.commit()

        tx = transition.transaction
        logger.info(
            "%s completed: tx=%s, user=%s, bond=%s, quantity=%d, total=%s",
            self.action,
            tx.id,
            tx.user_id,
            tx.bond_id,
            tx.quantity,
            tx.total_amount,
        )
        return TradeResult(transaction=tx, wallet=transition.wallet)
