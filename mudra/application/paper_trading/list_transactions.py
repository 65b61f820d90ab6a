"""
Use case: Page through the caller's transaction history.

Input: ListTransactionsQuery (user_id, page, limit, tx_type, sort_by,
    sort_order, include_summary)
Output: TransactionPage
Side effects: None.
Failure cases: InvalidInputError for an out-of-range page/limit or an
    unknown sort field/order.

The lifetime summary, when requested, is computed over the whole
unfiltered history and is unaffected by the type filter and the page.
"""

import logging
from typing import Optional

from mudra.application.paper_trading.dtos import (
    ListTransactionsQuery,
    TransactionPage,
    TransactionView,
)
from mudra.application.paper_trading.execute_trade import UnitOfWorkFactory
from mudra.domain.paper_trading.entities import Transaction, TransactionType
from mudra.domain.paper_trading.errors import InvalidInputError
from mudra.domain.paper_trading.pagination import PageInfo, PageRequest
from mudra.domain.paper_trading.ports import UnitOfWork
from mudra.domain.paper_trading.valuation import summarize_transactions

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "createdAt": "created_at",
    "totalAmount": "total_amount",
    "quantity": "quantity",
}
SORT_ORDERS = ("asc", "desc")


def parse_transaction_type(value: Optional[str]) -> Optional[TransactionType]:
    """Map a BUY/SELL filter to its enum; anything else means no filter."""
    if not value:
        return None
    try:
        return TransactionType(value.strip().upper())
    except ValueError:
        return None


def attach_bonds(uow: UnitOfWork, transactions: list[Transaction]) -> list[TransactionView]:
    """Pair each transaction with its live bond, where the bond still exists."""
    bonds = uow.bonds.get_many([tx.bond_id for tx in transactions])
    return [TransactionView(transaction=tx, bond=bonds.get(tx.bond_id)) for tx in transactions]


class ListTransactionsUseCase:
    """Filters, sorts and paginates a user's transaction log."""

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, query: ListTransactionsQuery) -> TransactionPage:
        """Return one page of transactions.

        Args:
            query: Paging, filter and sort parameters.

        Returns:
            The page, its position in the full result set and,
            optionally, the lifetime summary.

        Raises:
            InvalidInputError: On bad paging or sort parameters.
        """
        page_request = PageRequest(page=query.page, limit=query.limit)

        sort_column = SORT_FIELDS.get(query.sort_by)
        if sort_column is None:
            raise InvalidInputError(
                f"sortBy must be one of {', '.join(SORT_FIELDS)}", field="sortBy"
            )
        sort_order = (query.sort_order or "").lower()
        if sort_order not in SORT_ORDERS:
            raise InvalidInputError("sortOrder must be asc or desc", field="sortOrder")

        tx_type = parse_transaction_type(query.tx_type)

        with self._uow_factory() as uow:
            total_count = uow.transactions.count_for_user(query.user_id, tx_type)
            transactions = uow.transactions.list_for_user(
                query.user_id,
                tx_type=tx_type,
                offset=page_request.offset,
                limit=page_request.limit,
                sort_by=sort_column,
                descending=sort_order == "desc",
            )
            views = attach_bonds(uow, transactions)

            summary = None
            if query.include_summary:
                summary = summarize_transactions(
                    uow.transactions.list_for_user(query.user_id)
                )

        logger.debug(
            "Listed %d/%d transactions for user=%s (page %d)",
            len(views),
            total_count,
            query.user_id,
            page_request.page,
        )
        return TransactionPage(
            transactions=views,
            page=PageInfo.of(page_request, total_count),
            summary=summary,
        )
