"""
Use case: One of the caller's transactions.

Input: GetTransactionQuery (user_id, transaction_id)
Output: TransactionView
Side effects: None.
Failure cases: TransactionNotFoundError if the transaction does not
    exist or belongs to someone else.
"""

from mudra.application.paper_trading.dtos import GetTransactionQuery, TransactionView
from mudra.application.paper_trading.execute_trade import UnitOfWorkFactory
from mudra.domain.paper_trading.errors import TransactionNotFoundError


class GetTransactionUseCase:
    """Looks up a transaction scoped to its owner."""

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, query: GetTransactionQuery) -> TransactionView:
        with self._uow_factory() as uow:
            tx = uow.transactions.get_for_user(query.transaction_id, query.user_id)
            if tx is None:
                raise TransactionNotFoundError(query.transaction_id)
            bond = uow.bonds.get_by_id(tx.bond_id)
        return TransactionView(transaction=tx, bond=bond)
