"""
FastAPI routers for the paper trading bounded context.

All routes delegate to use cases. No business logic here.
Input validation is handled by Pydantic schemas and the use cases.
Error mapping is handled by centralized error handlers.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from mudra.application.paper_trading.buy_bond import BuyBondUseCase
from mudra.application.paper_trading.dtos import (
    GetBondQuery,
    GetPortfolioQuery,
    GetTransactionQuery,
    LeaderboardQuery,
    ListBondsQuery,
    ListTransactionsQuery,
    RecentTransactionsQuery,
    TradeCommand,
)
from mudra.application.paper_trading.get_bond import GetBondUseCase
from mudra.application.paper_trading.get_leaderboard import GetLeaderboardUseCase
from mudra.application.paper_trading.get_portfolio import GetPortfolioUseCase
from mudra.application.paper_trading.get_recent_transactions import (
    GetRecentTransactionsUseCase,
)
from mudra.application.paper_trading.get_transaction import GetTransactionUseCase
from mudra.application.paper_trading.list_bonds import ListBondsUseCase
from mudra.application.paper_trading.list_transactions import ListTransactionsUseCase
from mudra.application.paper_trading.sell_bond import SellBondUseCase
from mudra.domain.paper_trading.errors import InvalidInputError
from mudra.interfaces.paper_trading.dependencies import (
    get_bond_use_case,
    get_buy_bond_use_case,
    get_current_user_id,
    get_leaderboard_use_case,
    get_list_bonds_use_case,
    get_list_transactions_use_case,
    get_portfolio_use_case,
    get_recent_transactions_use_case,
    get_sell_bond_use_case,
    get_transaction_use_case,
)
from mudra.interfaces.paper_trading.schemas import (
    BondDetailData,
    BondDetailResponse,
    BondListData,
    BondListResponse,
    BondSchema,
    ErrorResponse,
    LeaderboardResponse,
    PortfolioData,
    PortfolioResponse,
    PortfolioSchema,
    PortfolioSummaryResponse,
    PortfolioSummarySchema,
    RecentTransactionsData,
    RecentTransactionsResponse,
    TradeRequest,
    TradeResponse,
    TransactionDetailData,
    TransactionDetailResponse,
    TransactionItem,
    TransactionListResponse,
)
from mudra.shared.security.rate_limiting import HEAVY_RATE_LIMIT, limiter

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}

paper_trading_router = APIRouter(prefix="/paper-trading", tags=["paper-trading"])
portfolio_router = APIRouter(prefix="/portfolio", tags=["portfolio"])
transactions_router = APIRouter(prefix="/transactions", tags=["transactions"])
leaderboard_router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])
bonds_router = APIRouter(prefix="/bonds", tags=["bonds"])


def _trade_command(user_id: str, body: TradeRequest) -> TradeCommand:
    if not body.bond_id or body.quantity is None:
        raise InvalidInputError("Please provide bondId and quantity")
    return TradeCommand(user_id=user_id, bond_id=body.bond_id, quantity=body.quantity)


def _units(quantity: int) -> str:
    return "unit" if quantity == 1 else "units"


# --- Trading ---


@paper_trading_router.post(
    "/buy",
    status_code=201,
    response_model=TradeResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    summary="Buy bond units",
    description="Debit the virtual wallet and add units of a bond to the portfolio.",
)
@limiter.limit(HEAVY_RATE_LIMIT)
def buy_bond(
    request: Request,
    body: TradeRequest,
    user_id: str = Depends(get_current_user_id),
    use_case: BuyBondUseCase = Depends(get_buy_bond_use_case),
) -> TradeResponse:
    """Buy units of a bond for the authenticated user."""
    result = use_case.execute(_trade_command(user_id, body))
    tx = result.transaction
    return TradeResponse.of(
        result,
        f"Successfully purchased {tx.quantity} {_units(tx.quantity)} of {tx.bond_snapshot.name}",
    )


@paper_trading_router.post(
    "/sell",
    response_model=TradeResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    summary="Sell bond units",
    description="Sell held units back at the bond's current price and credit the wallet.",
)
@limiter.limit(HEAVY_RATE_LIMIT)
def sell_bond(
    request: Request,
    body: TradeRequest,
    user_id: str = Depends(get_current_user_id),
    use_case: SellBondUseCase = Depends(get_sell_bond_use_case),
) -> TradeResponse:
    """Sell units of a bond for the authenticated user."""
    result = use_case.execute(_trade_command(user_id, body))
    tx = result.transaction
    return TradeResponse.of(
        result,
        f"Successfully sold {tx.quantity} {_units(tx.quantity)} of {tx.bond_snapshot.name}",
    )


@paper_trading_router.get(
    "/transactions",
    response_model=TransactionListResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    summary="List trades",
    description="The caller's trades, newest first, optionally filtered by type.",
)
def list_trades(
    page: int = Query(1),
    limit: int = Query(10),
    tx_type: Optional[str] = Query(None, alias="type"),
    user_id: str = Depends(get_current_user_id),
    use_case: ListTransactionsUseCase = Depends(get_list_transactions_use_case),
) -> TransactionListResponse:
    result = use_case.execute(
        ListTransactionsQuery(user_id=user_id, page=page, limit=limit, tx_type=tx_type)
    )
    return TransactionListResponse.of(result)


# --- Portfolio ---


@portfolio_router.get(
    "",
    response_model=PortfolioResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    summary="Portfolio valuation",
    description="Every holding valued at current catalog prices, with totals.",
)
def get_portfolio(
    user_id: str = Depends(get_current_user_id),
    use_case: GetPortfolioUseCase = Depends(get_portfolio_use_case),
) -> PortfolioResponse:
    valuation = use_case.execute(GetPortfolioQuery(user_id=user_id))
    return PortfolioResponse(data=PortfolioData(portfolio=PortfolioSchema.of(valuation)))


@portfolio_router.get(
    "/summary",
    response_model=PortfolioSummaryResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    summary="Portfolio summary",
)
def get_portfolio_summary(
    user_id: str = Depends(get_current_user_id),
    use_case: GetPortfolioUseCase = Depends(get_portfolio_use_case),
) -> PortfolioSummaryResponse:
    valuation = use_case.execute(GetPortfolioQuery(user_id=user_id))
    return PortfolioSummaryResponse(data=PortfolioSummarySchema.of(valuation))


@portfolio_router.get(
    "/transactions",
    response_model=RecentTransactionsResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    summary="Recent transactions",
)
def get_recent_transactions(
    limit: int = Query(10),
    user_id: str = Depends(get_current_user_id),
    use_case: GetRecentTransactionsUseCase = Depends(get_recent_transactions_use_case),
) -> RecentTransactionsResponse:
    views = use_case.execute(RecentTransactionsQuery(user_id=user_id, limit=limit))
    return RecentTransactionsResponse(
        data=RecentTransactionsData(transactions=[TransactionItem.of(v) for v in views])
    )


# --- Transaction history ---


@transactions_router.get(
    "",
    response_model=TransactionListResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    summary="Transaction history",
    description=(
        "Paginated, filterable, sortable history plus a lifetime summary "
        "over the unfiltered history."
    ),
)
def list_transactions(
    page: int = Query(1),
    limit: int = Query(10),
    tx_type: Optional[str] = Query(None, alias="type"),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    user_id: str = Depends(get_current_user_id),
    use_case: ListTransactionsUseCase = Depends(get_list_transactions_use_case),
) -> TransactionListResponse:
    result = use_case.execute(
        ListTransactionsQuery(
            user_id=user_id,
            page=page,
            limit=limit,
            tx_type=tx_type,
            sort_by=sort_by,
            sort_order=sort_order,
            include_summary=True,
        )
    )
    return TransactionListResponse.of(result)


@transactions_router.get(
    "/{transaction_id}",
    response_model=TransactionDetailResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    summary="Transaction detail",
)
def get_transaction(
    transaction_id: str,
    user_id: str = Depends(get_current_user_id),
    use_case: GetTransactionUseCase = Depends(get_transaction_use_case),
) -> TransactionDetailResponse:
    view = use_case.execute(
        GetTransactionQuery(user_id=user_id, transaction_id=transaction_id)
    )
    return TransactionDetailResponse(
        data=TransactionDetailData(transaction=TransactionItem.of(view))
    )


# --- Leaderboard ---


@leaderboard_router.get(
    "",
    response_model=LeaderboardResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    summary="Leaderboard",
    description="Traders ranked by percentage return. Public.",
)
def get_leaderboard(
    page: int = Query(1),
    limit: int = Query(50),
    use_case: GetLeaderboardUseCase = Depends(get_leaderboard_use_case),
) -> LeaderboardResponse:
    result = use_case.execute(LeaderboardQuery(page=page, limit=limit))
    return LeaderboardResponse.of(result)


# --- Bonds ---


@bonds_router.get(
    "",
    response_model=BondListResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    summary="Bond catalog",
    description="Active bonds, optionally filtered by risk level and sector. Public.",
)
def list_bonds(
    risk_level: Optional[str] = Query(None, alias="riskLevel"),
    sector: Optional[str] = Query(None),
    use_case: ListBondsUseCase = Depends(get_list_bonds_use_case),
) -> BondListResponse:
    bonds = use_case.execute(ListBondsQuery(risk_level=risk_level, sector=sector))
    return BondListResponse(
        data=BondListData(bonds=[BondSchema.of(b) for b in bonds], count=len(bonds))
    )


@bonds_router.get(
    "/{bond_id}",
    response_model=BondDetailResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    summary="Bond detail",
)
def get_bond(
    bond_id: str,
    use_case: GetBondUseCase = Depends(get_bond_use_case),
) -> BondDetailResponse:
    bond = use_case.execute(GetBondQuery(bond_id=bond_id))
    return BondDetailResponse(data=BondDetailData(bond=BondSchema.of(bond)))
