"""
Use case: The caller's most recent transactions, newest first.

Input: RecentTransactionsQuery (user_id, limit)
Output: list[TransactionView]
Side effects: None.
Failure cases: InvalidInputError if limit is outside 1-100.
"""

from mudra.application.paper_trading.dtos import RecentTransactionsQuery, TransactionView
from mudra.application.paper_trading.execute_trade import UnitOfWorkFactory
from mudra.application.paper_trading.list_transactions import attach_bonds
from mudra.domain.paper_trading.pagination import PageRequest


class GetRecentTransactionsUseCase:
    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, query: RecentTransactionsQuery) -> list[TransactionView]:
        page_request = PageRequest(page=1, limit=query.limit)
        with self._uow_factory() as uow:
            transactions = uow.transactions.list_for_user(
                query.user_id, limit=page_request.limit
            )
            return attach_bonds(uow, transactions)
