"""
Tests for the paper trading application layer (use cases).

Trade use cases run through the real SQL unit of work on an in-memory
database so that atomicity and the retry loop are exercised end to end,
plus one race between real threads on a file-backed database.
Read-side orchestration is checked with mocked ports.
"""

import threading
from dataclasses import replace
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy import text

from mudra.application.paper_trading.buy_bond import BuyBondUseCase
from mudra.application.paper_trading.dtos import (
    GetPortfolioQuery,
    GetTransactionQuery,
    LeaderboardQuery,
    ListBondsQuery,
    ListTransactionsQuery,
    RecentTransactionsQuery,
    TradeCommand,
)
from mudra.application.paper_trading.execute_trade import ExecuteTradeUseCase
from mudra.application.paper_trading.get_leaderboard import GetLeaderboardUseCase
from mudra.application.paper_trading.get_portfolio import GetPortfolioUseCase
from mudra.application.paper_trading.get_recent_transactions import (
    GetRecentTransactionsUseCase,
)
from mudra.application.paper_trading.get_transaction import GetTransactionUseCase
from mudra.application.paper_trading.list_bonds import ListBondsUseCase
from mudra.application.paper_trading.list_transactions import ListTransactionsUseCase
from mudra.application.paper_trading.sell_bond import SellBondUseCase
from mudra.domain.paper_trading.entities import Bond, RiskLevel, User, Wallet, new_id
from mudra.domain.paper_trading.errors import (
    BondNotFoundError,
    ConcurrencyConflictError,
    InsufficientFundsError,
    InsufficientInventoryError,
    InvalidInputError,
    TransactionNotFoundError,
    UserNotFoundError,
)
from mudra.infrastructure.paper_trading.database import build_engine, ensure_tables
from mudra.infrastructure.paper_trading.unit_of_work import SqlUnitOfWork


class _StaleRepository:
    """Wraps a repository so that ``get_by_id`` hands back an outdated version."""

    def __init__(self, inner) -> None:
        self._inner = inner

    def __getattr__(self, name):
        return getattr(self._inner, name)

    def get_by_id(self, entity_id):
        entity = self._inner.get_by_id(entity_id)
        return replace(entity, version=entity.version + 100)


class StaleReadUnitOfWork(SqlUnitOfWork):
    """SqlUnitOfWork whose first ``stale_reads`` scopes see a stale row.

    Simulates another request committing between our read and our write.
    """

    def __init__(self, engine, counter: dict, repository: str = "users") -> None:
        super().__init__(engine)
        self._counter = counter
        self._repository = repository

    def __enter__(self) -> "StaleReadUnitOfWork":
        super().__enter__()
        if self._counter["stale_reads"] > 0:
            self._counter["stale_reads"] -= 1
            setattr(self, self._repository, _StaleRepository(getattr(self, self._repository)))
        return self


def _state(uow_factory, user_id: str, bond_id: str):
    with uow_factory() as uow:
        user = uow.users.get_by_id(user_id)
        bond = uow.bonds.get_by_id(bond_id)
        portfolio = uow.portfolios.get_by_user(user_id)
        count = uow.transactions.count_for_user(user_id)
    return user, bond, portfolio, count


# ══════════════════════════════════════════════════════════════════════
# Buy / sell
# ══════════════════════════════════════════════════════════════════════


class TestBuyBondUseCase:
    """Tests for BuyBondUseCase."""

    def test_buy_persists_every_effect(self, uow_factory, make_user, make_bond) -> None:
        user = make_user(balance="100000")
        bond = make_bond(price="10000", available_units=1000)

        result = BuyBondUseCase(uow_factory).execute(TradeCommand(user.id, bond.id, 2))

        assert result.wallet.balance == Decimal("80000.00")
        assert result.transaction.total_amount == Decimal("20000.00")

        stored_user, stored_bond, portfolio, count = _state(uow_factory, user.id, bond.id)
        assert stored_user.wallet.balance == Decimal("80000.00")
        assert stored_bond.available_units == 998
        assert portfolio.holdings[bond.id].quantity == 2
        assert portfolio.total_invested == Decimal("20000.00")
        assert count == 1

    def test_unknown_user_and_bond(self, uow_factory, make_user, make_bond) -> None:
        user, bond = make_user(), make_bond()
        use_case = BuyBondUseCase(uow_factory)
        with pytest.raises(UserNotFoundError):
            use_case.execute(TradeCommand("ghost", bond.id, 1))
        with pytest.raises(BondNotFoundError):
            use_case.execute(TradeCommand(user.id, "ghost", 1))

    def test_invalid_quantity_touches_nothing(self, uow_factory, make_user, make_bond) -> None:
        user, bond = make_user(), make_bond()
        with pytest.raises(InvalidInputError):
            BuyBondUseCase(uow_factory).execute(TradeCommand(user.id, bond.id, 0))
        assert _state(uow_factory, user.id, bond.id)[3] == 0

    def test_rejected_buy_leaves_state_unchanged(self, uow_factory, make_user, make_bond) -> None:
        user = make_user(balance="15000")
        bond = make_bond(price="10000", available_units=5)
        use_case = BuyBondUseCase(uow_factory)

        with pytest.raises(InsufficientFundsError):
            use_case.execute(TradeCommand(user.id, bond.id, 2))
        with pytest.raises(InsufficientInventoryError):
            use_case.execute(TradeCommand(user.id, bond.id, 6))

        stored_user, stored_bond, portfolio, count = _state(uow_factory, user.id, bond.id)
        assert stored_user.wallet.balance == Decimal("15000.00")
        assert stored_bond.available_units == 5
        assert portfolio is None
        assert count == 0

    def test_spending_exact_remaining_balance(
        self, engine, uow_factory, make_user, make_bond
    ) -> None:
        """Cents left over from an earlier buy can be spent down to zero."""
        user = make_user(balance="0.30")
        cheap, dearer = make_bond(price="0.10"), make_bond(price="0.20")
        use_case = BuyBondUseCase(uow_factory)

        use_case.execute(TradeCommand(user.id, cheap.id, 1))
        result = use_case.execute(TradeCommand(user.id, dearer.id, 1))

        assert result.wallet.balance == Decimal("0.00")
        with engine.connect() as conn:
            raw = conn.execute(
                text("SELECT wallet_balance FROM users WHERE id = :id"), {"id": user.id}
            ).scalar_one()
        assert Decimal(str(raw)) == 0
        stored_user, _, portfolio, count = _state(uow_factory, user.id, dearer.id)
        assert stored_user.wallet.balance == Decimal("0.00")
        assert stored_user.version == 2
        assert portfolio.total_invested == Decimal("0.30")
        assert count == 2

    def test_trade_base_needs_a_transition(self, uow_factory) -> None:
        with pytest.raises(TypeError):
            ExecuteTradeUseCase(uow_factory)


class TestSellBondUseCase:
    """Tests for SellBondUseCase."""

    def test_round_trip_conserves_money_and_units(self, uow_factory, make_user, make_bond) -> None:
        user = make_user(balance="100000")
        bond = make_bond(price="10000", available_units=1000)
        buy, sell = BuyBondUseCase(uow_factory), SellBondUseCase(uow_factory)

        buy.execute(TradeCommand(user.id, bond.id, 2))
        buy.execute(TradeCommand(user.id, bond.id, 1))
        result = sell.execute(TradeCommand(user.id, bond.id, 2))

        assert result.wallet.balance == Decimal("90000.00")
        stored_user, stored_bond, portfolio, count = _state(uow_factory, user.id, bond.id)
        assert stored_user.wallet.balance == Decimal("90000.00")
        assert stored_bond.available_units + portfolio.holdings[bond.id].quantity == 1000
        assert portfolio.holdings[bond.id].total_invested == Decimal("10000.00")
        assert count == 3

    def test_selling_everything_clears_holding(self, uow_factory, make_user, make_bond) -> None:
        user, bond = make_user(), make_bond()
        BuyBondUseCase(uow_factory).execute(TradeCommand(user.id, bond.id, 3))
        SellBondUseCase(uow_factory).execute(TradeCommand(user.id, bond.id, 3))

        stored_user, stored_bond, portfolio, _ = _state(uow_factory, user.id, bond.id)
        assert portfolio.holdings == {}
        assert portfolio.total_bonds_owned == 0
        assert stored_bond.available_units == 1000
        assert stored_user.wallet.balance == Decimal("100000.00")


# ══════════════════════════════════════════════════════════════════════
# Concurrency
# ══════════════════════════════════════════════════════════════════════


class TestVersionConflicts:
    """Lost races are retried from fresh reads, and never half-applied."""

    def test_retry_succeeds_after_one_conflict(self, engine, uow_factory, make_user, make_bond) -> None:
        user, bond = make_user(), make_bond()
        counter = {"stale_reads": 1}

        result = BuyBondUseCase(
            lambda: StaleReadUnitOfWork(engine, counter), max_attempts=3
        ).execute(TradeCommand(user.id, bond.id, 1))

        assert result.wallet.balance == Decimal("90000.00")
        stored_user, _, _, count = _state(uow_factory, user.id, bond.id)
        assert stored_user.wallet.balance == Decimal("90000.00")
        assert count == 1

    def test_exhausted_retries_raise_and_change_nothing(
        self, engine, uow_factory, make_user, make_bond
    ) -> None:
        user, bond = make_user(), make_bond()
        counter = {"stale_reads": 5}

        with pytest.raises(ConcurrencyConflictError):
            BuyBondUseCase(
                lambda: StaleReadUnitOfWork(engine, counter), max_attempts=3
            ).execute(TradeCommand(user.id, bond.id, 1))

        assert counter["stale_reads"] == 2
        stored_user, stored_bond, portfolio, count = _state(uow_factory, user.id, bond.id)
        assert stored_user.wallet.balance == Decimal("100000.00")
        assert stored_bond.available_units == 1000
        assert portfolio is None
        assert count == 0

    def test_conflict_after_wallet_write_is_rolled_back(
        self, engine, uow_factory, make_user, make_bond
    ) -> None:
        """The wallet CAS succeeds, the bond CAS fails: the debit must not survive."""
        user, bond = make_user(), make_bond()
        counter = {"stale_reads": 1}

        with pytest.raises(ConcurrencyConflictError):
            BuyBondUseCase(
                lambda: StaleReadUnitOfWork(engine, counter, repository="bonds"),
                max_attempts=1,
            ).execute(TradeCommand(user.id, bond.id, 4))

        stored_user, stored_bond, _, count = _state(uow_factory, user.id, bond.id)
        assert stored_user.wallet.balance == Decimal("100000.00")
        assert stored_user.version == 0
        assert stored_bond.available_units == 1000
        assert count == 0


class TestConcurrentBuyers:
    """Real threads racing on a file-backed database."""

    @pytest.fixture
    def file_engine(self, tmp_path):
        eng = build_engine(f"sqlite:///{tmp_path / 'race.db'}")
        ensure_tables(eng)
        yield eng
        eng.dispose()

    def test_scarce_inventory_is_never_oversold(self, file_engine) -> None:
        factory = lambda: SqlUnitOfWork(file_engine)  # noqa: E731
        bond = Bond(
            name="Metro Rail Bond",
            issuer="DMRC",
            return_rate=Decimal("7.5"),
            risk_level=RiskLevel.LOW,
            price=Decimal("10000"),
            maturity_years=5,
            sector="Transportation",
            total_value=Decimal("50000"),
            available_units=5,
        )
        users = [
            User(
                name=f"Buyer {i}",
                email=f"buyer{i}@example.com",
                wallet=Wallet(balance=Decimal("100000.00")),
                session_token=new_id(),
            )
            for i in range(8)
        ]
        with factory() as uow:
            uow.bonds.add(bond)
            for user in users:
                uow.users.add(user)
            uow.commit()

        use_case = BuyBondUseCase(factory, max_attempts=20)
        barrier = threading.Barrier(len(users))
        outcomes: dict[str, str] = {}
        lock = threading.Lock()

        def buy(user_id: str) -> None:
            barrier.wait()
            try:
                use_case.execute(TradeCommand(user_id, bond.id, 1))
                outcome = "filled"
            except InsufficientInventoryError:
                outcome = "sold out"
            except ConcurrencyConflictError:
                outcome = "conflict"
            with lock:
                outcomes[user_id] = outcome

        threads = [threading.Thread(target=buy, args=(u.id,)) for u in users]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert len(outcomes) == len(users)
        assert list(outcomes.values()).count("filled") == 5
        assert list(outcomes.values()).count("sold out") == 3

        held = 0
        with factory() as uow:
            stored_bond = uow.bonds.get_by_id(bond.id)
            for user in users:
                stored_user = uow.users.get_by_id(user.id)
                portfolio = uow.portfolios.get_by_user(user.id)
                quantity = portfolio.holdings[bond.id].quantity if portfolio else 0
                held += quantity
                assert stored_user.wallet.balance == Decimal("100000.00") - 10000 * quantity
                assert uow.transactions.count_for_user(user.id) == quantity
        assert stored_bond.available_units == 0
        assert held == 5


# ══════════════════════════════════════════════════════════════════════
# Reporting
# ══════════════════════════════════════════════════════════════════════


def _mock_uow() -> MagicMock:
    uow = MagicMock()
    uow.__enter__.return_value = uow
    uow.__exit__.return_value = None
    return uow


class TestGetPortfolioUseCase:
    def test_no_portfolio_is_zero_valuation(self) -> None:
        uow = _mock_uow()
        uow.portfolios.get_by_user.return_value = None
        uow.bonds.get_many.return_value = {}

        valuation = GetPortfolioUseCase(lambda: uow).execute(GetPortfolioQuery("u1"))

        assert valuation.holdings == []
        assert valuation.current_value == 0
        uow.bonds.get_many.assert_called_once_with([])

    def test_values_at_current_price(self, engine, uow_factory, make_user, make_bond) -> None:
        user = make_user(balance="1000000")
        bond = make_bond(price="10000", return_rate="8")
        BuyBondUseCase(uow_factory).execute(TradeCommand(user.id, bond.id, 2))

        with engine.begin() as conn:
            conn.execute(
                text("UPDATE bonds SET price = :price WHERE id = :id"),
                {"price": "12000", "id": bond.id},
            )

        valuation = GetPortfolioUseCase(uow_factory).execute(GetPortfolioQuery(user.id))
        assert valuation.current_value == Decimal("24000.00")
        assert valuation.total_returns == Decimal("4000.00")
        assert valuation.percentage_return == Decimal("20.00")
        assert valuation.expected_annual_returns == Decimal("1920.00")


class TestTransactionQueries:
    @pytest.fixture
    def traded(self, uow_factory, make_user, make_bond):
        user = make_user(balance="1000000")
        bond = make_bond(price="1000")
        buy, sell = BuyBondUseCase(uow_factory), SellBondUseCase(uow_factory)
        buy.execute(TradeCommand(user.id, bond.id, 5))
        buy.execute(TradeCommand(user.id, bond.id, 2))
        sell.execute(TradeCommand(user.id, bond.id, 3))
        return user, bond

    def test_list_with_filter_and_summary(self, uow_factory, traded) -> None:
        user, bond = traded
        page = ListTransactionsUseCase(uow_factory).execute(
            ListTransactionsQuery(user.id, tx_type="buy", include_summary=True)
        )

        assert page.page.total_count == 2
        assert all(v.bond.id == bond.id for v in page.transactions)
        # summary ignores the type filter
        assert page.summary.total_transactions == 3
        assert page.summary.total_buy_amount == Decimal("7000.00")
        assert page.summary.total_sell_amount == Decimal("3000.00")
        assert page.summary.net_flow == Decimal("4000.00")

    def test_unknown_type_filter_is_ignored(self, uow_factory, traded) -> None:
        user, _ = traded
        page = ListTransactionsUseCase(uow_factory).execute(
            ListTransactionsQuery(user.id, tx_type="HOLD")
        )
        assert page.page.total_count == 3
        assert page.summary is None

    def test_sort_by_quantity_ascending(self, uow_factory, traded) -> None:
        user, _ = traded
        page = ListTransactionsUseCase(uow_factory).execute(
            ListTransactionsQuery(user.id, sort_by="quantity", sort_order="asc")
        )
        assert [v.transaction.quantity for v in page.transactions] == [2, 3, 5]

    @pytest.mark.parametrize(
        "kwargs", [{"sort_by": "price"}, {"sort_order": "up"}, {"limit": 0}, {"page": 0}]
    )
    def test_bad_parameters_rejected(self, uow_factory, kwargs) -> None:
        with pytest.raises(InvalidInputError):
            ListTransactionsUseCase(uow_factory).execute(ListTransactionsQuery("u", **kwargs))

    def test_recent_is_newest_first(self, uow_factory, traded) -> None:
        user, _ = traded
        views = GetRecentTransactionsUseCase(uow_factory).execute(
            RecentTransactionsQuery(user.id, limit=2)
        )
        assert [v.transaction.quantity for v in views] == [3, 2]

    def test_get_transaction_scoped_to_owner(self, uow_factory, make_user, traded) -> None:
        user, _ = traded
        tx_id = GetRecentTransactionsUseCase(uow_factory).execute(
            RecentTransactionsQuery(user.id, limit=1)
        )[0].transaction.id

        use_case = GetTransactionUseCase(uow_factory)
        assert use_case.execute(GetTransactionQuery(user.id, tx_id)).transaction.id == tx_id
        with pytest.raises(TransactionNotFoundError):
            use_case.execute(GetTransactionQuery(make_user().id, tx_id))


class TestGetLeaderboardUseCase:
    def test_ranks_page_and_stats(self, uow_factory, make_user, make_bond) -> None:
        bond = make_bond(price="1000")
        traders = [make_user(name=n) for n in ("a", "b", "c")]
        for trader in traders:
            BuyBondUseCase(uow_factory).execute(TradeCommand(trader.id, bond.id, 1))
        make_user(name="idle")

        result = GetLeaderboardUseCase(uow_factory).execute(LeaderboardQuery(page=2, limit=2))

        assert result.page.total_count == 3
        assert [e.rank for e in result.entries] == [3]
        assert result.stats.total_traders == 3


class TestBondQueries:
    def test_list_filters_by_risk_level(self, uow_factory, make_bond) -> None:
        make_bond(risk_level=RiskLevel.HIGH, name="High one")
        make_bond(risk_level=RiskLevel.LOW, name="Low one")

        bonds = ListBondsUseCase(uow_factory).execute(ListBondsQuery(risk_level="high"))
        assert [b.name for b in bonds] == ["High one"]

    def test_unknown_risk_level_rejected(self, uow_factory) -> None:
        with pytest.raises(InvalidInputError):
            ListBondsUseCase(uow_factory).execute(ListBondsQuery(risk_level="extreme"))
