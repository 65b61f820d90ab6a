"""
Tests for the reporting API endpoints.

Covers portfolio valuation, transaction history, the leaderboard and
the bond catalog. Trades are placed through the buy/sell endpoints so
that every figure comes from the real ledger.
"""

import pytest
from sqlalchemy import text

from mudra.domain.paper_trading.entities import RiskLevel

BUY = "/api/paper-trading/buy"
SELL = "/api/paper-trading/sell"


def _auth(user) -> dict[str, str]:
    return {"Authorization": f"Bearer {user.session_token}"}


def _set_price(engine, bond_id: str, price: str) -> None:
    with engine.begin() as conn:
        conn.execute(
            text("UPDATE bonds SET price = :price WHERE id = :id"),
            {"price": price, "id": bond_id},
        )


# ══════════════════════════════════════════════════════════════════════
# Portfolio
# ══════════════════════════════════════════════════════════════════════


class TestPortfolioEndpoints:
    """Tests for GET /api/portfolio and /api/portfolio/summary."""

    def test_empty_portfolio(self, client, make_user) -> None:
        response = client.get("/api/portfolio", headers=_auth(make_user()))

        assert response.status_code == 200
        portfolio = response.json()["data"]["portfolio"]
        assert portfolio["holdings"] == []
        assert portfolio["totalInvested"] == 0
        assert portfolio["currentValue"] == 0
        assert portfolio["percentageReturn"] == 0
        assert portfolio["totalBondsOwned"] == 0

    def test_marked_to_current_price(self, client, engine, make_user, make_bond) -> None:
        user = make_user(balance="100000")
        bond = make_bond(price="10000", return_rate="8")
        headers = _auth(user)
        client.post(BUY, json={"bondId": bond.id, "quantity": 2}, headers=headers)
        _set_price(engine, bond.id, "12000")

        portfolio = client.get("/api/portfolio", headers=headers).json()["data"]["portfolio"]

        assert portfolio["totalInvested"] == 20000
        assert portfolio["currentValue"] == 24000
        assert portfolio["totalReturns"] == 4000
        assert portfolio["percentageReturn"] == 20
        assert portfolio["expectedAnnualReturns"] == 1920
        assert portfolio["totalBondsOwned"] == 1

        holding = portfolio["holdings"][0]
        assert holding["quantity"] == 2
        assert holding["averageBuyPrice"] == 10000
        assert holding["profitLoss"] == 4000
        assert holding["bond"]["id"] == bond.id
        assert holding["bond"]["currentPrice"] == 12000

    def test_summary_matches_portfolio_totals(self, client, make_user, make_bond) -> None:
        user, bond = make_user(), make_bond(price="1500")
        headers = _auth(user)
        client.post(BUY, json={"bondId": bond.id, "quantity": 3}, headers=headers)

        summary = client.get("/api/portfolio/summary", headers=headers).json()["data"]
        full = client.get("/api/portfolio", headers=headers).json()["data"]["portfolio"]

        assert "holdings" not in summary
        for key in ("totalInvested", "currentValue", "totalReturns", "percentageReturn"):
            assert summary[key] == full[key]

    def test_recent_transactions(self, client, make_user, make_bond) -> None:
        user, bond = make_user(), make_bond(price="100")
        headers = _auth(user)
        for qty in (1, 2, 3):
            client.post(BUY, json={"bondId": bond.id, "quantity": qty}, headers=headers)

        response = client.get("/api/portfolio/transactions", params={"limit": 2}, headers=headers)

        assert response.status_code == 200
        assert [t["quantity"] for t in response.json()["data"]["transactions"]] == [3, 2]


# ══════════════════════════════════════════════════════════════════════
# Transaction history
# ══════════════════════════════════════════════════════════════════════


class TestTransactionHistory:
    """Tests for GET /api/transactions and /api/transactions/{id}."""

    @pytest.fixture
    def trader(self, client, make_user, make_bond):
        user = make_user(balance="100000")
        bond = make_bond(price="1000", name="Water Infrastructure Bond")
        headers = _auth(user)
        client.post(BUY, json={"bondId": bond.id, "quantity": 5}, headers=headers)
        client.post(BUY, json={"bondId": bond.id, "quantity": 2}, headers=headers)
        client.post(SELL, json={"bondId": bond.id, "quantity": 3}, headers=headers)
        return user, bond, headers

    def test_history_with_summary(self, client, trader) -> None:
        _, bond, headers = trader
        body = client.get("/api/transactions", headers=headers).json()

        data = body["data"]
        assert body["success"] is True
        assert [t["type"] for t in data["transactions"]] == ["SELL", "BUY", "BUY"]
        assert data["transactions"][0]["bond"]["currentPrice"] == 1000
        assert data["transactions"][0]["status"] == "COMPLETED"
        assert data["pagination"] == {
            "currentPage": 1,
            "totalPages": 1,
            "totalCount": 3,
            "limit": 10,
            "hasNextPage": False,
            "hasPrevPage": False,
        }
        assert data["summary"] == {
            "totalTransactions": 3,
            "buyCount": 2,
            "sellCount": 1,
            "totalBuyAmount": 7000,
            "totalSellAmount": 3000,
            "netFlow": 4000,
        }

    def test_pagination_and_sort(self, client, trader) -> None:
        _, _, headers = trader
        body = client.get(
            "/api/transactions",
            params={"page": 2, "limit": 2, "sortBy": "quantity", "sortOrder": "asc"},
            headers=headers,
        ).json()

        assert [t["quantity"] for t in body["data"]["transactions"]] == [5]
        pagination = body["data"]["pagination"]
        assert pagination["totalPages"] == 2
        assert pagination["hasPrevPage"] is True
        assert pagination["hasNextPage"] is False

    def test_type_filter_keeps_lifetime_summary(self, client, trader) -> None:
        _, _, headers = trader
        data = client.get("/api/transactions", params={"type": "buy"}, headers=headers).json()["data"]
        assert data["pagination"]["totalCount"] == 2
        assert data["summary"]["totalTransactions"] == 3

    @pytest.mark.parametrize(
        "params", [{"sortBy": "price"}, {"sortOrder": "sideways"}, {"limit": 0}, {"limit": 101}]
    )
    def test_bad_query_parameters(self, client, trader, params) -> None:
        _, _, headers = trader
        response = client.get("/api/transactions", params=params, headers=headers)
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_non_numeric_page(self, client, trader) -> None:
        _, _, headers = trader
        response = client.get("/api/transactions", params={"page": "two"}, headers=headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid request parameters"

    def test_detail(self, client, trader) -> None:
        _, _, headers = trader
        tx_id = client.get("/api/transactions", headers=headers).json()["data"]["transactions"][0]["id"]

        response = client.get(f"/api/transactions/{tx_id}", headers=headers)

        assert response.status_code == 200
        assert response.json()["data"]["transaction"]["id"] == tx_id

    def test_detail_of_another_users_transaction(self, client, make_user, trader) -> None:
        _, _, headers = trader
        tx_id = client.get("/api/transactions", headers=headers).json()["data"]["transactions"][0]["id"]

        response = client.get(f"/api/transactions/{tx_id}", headers=_auth(make_user()))

        assert response.status_code == 404
        assert response.json()["message"] == "Transaction not found"

    def test_removed_bond_falls_back_to_snapshot(self, client, engine, trader) -> None:
        _, bond, headers = trader
        with engine.begin() as conn:
            conn.execute(text("DELETE FROM bonds WHERE id = :id"), {"id": bond.id})

        item = client.get("/api/transactions", headers=headers).json()["data"]["transactions"][0]

        assert item["bond"]["name"] == "Water Infrastructure Bond"
        assert item["bond"]["issuer"] == "NHAI"
        assert "id" not in item["bond"]
        assert "currentPrice" not in item["bond"]


# ══════════════════════════════════════════════════════════════════════
# Leaderboard
# ══════════════════════════════════════════════════════════════════════


class TestLeaderboard:
    """Tests for GET /api/leaderboard."""

    def test_public_and_ranked(self, client, engine, make_user, make_bond) -> None:
        winner, loser = make_user(name="Winner"), make_user(name="Loser")
        up, down = make_bond(price="100"), make_bond(price="100")
        client.post(BUY, json={"bondId": up.id, "quantity": 10}, headers=_auth(winner))
        client.post(BUY, json={"bondId": down.id, "quantity": 10}, headers=_auth(loser))
        _set_price(engine, up.id, "150")
        _set_price(engine, down.id, "90")
        make_user(name="Idle")

        response = client.get("/api/leaderboard")

        assert response.status_code == 200
        data = response.json()["data"]
        assert [(e["rank"], e["userName"]) for e in data["leaderboard"]] == [
            (1, "Winner"),
            (2, "Loser"),
        ]
        assert data["leaderboard"][0]["percentageReturn"] == 50
        assert data["leaderboard"][1]["percentageReturn"] == -10
        assert data["stats"] == {"totalTraders": 2, "avgReturn": 20, "topReturn": 50}
        assert data["pagination"]["limit"] == 50

    def test_empty(self, client) -> None:
        data = client.get("/api/leaderboard").json()["data"]
        assert data["leaderboard"] == []
        assert data["stats"] == {"totalTraders": 0, "avgReturn": 0, "topReturn": 0}


# ══════════════════════════════════════════════════════════════════════
# Bond catalog
# ══════════════════════════════════════════════════════════════════════


class TestBondCatalog:
    """Tests for GET /api/bonds and /api/bonds/{id}."""

    def test_lists_active_bonds_with_filters(self, client, make_bond) -> None:
        make_bond(name="Port & Logistics Bond", risk_level=RiskLevel.HIGH, sector="Maritime")
        make_bond(name="Rural Connectivity Bond", risk_level=RiskLevel.LOW, sector="Rural Infrastructure")
        make_bond(name="Retired Bond", is_active=False)

        everything = client.get("/api/bonds").json()["data"]
        high = client.get("/api/bonds", params={"riskLevel": "High"}).json()["data"]
        maritime = client.get("/api/bonds", params={"sector": "Maritime"}).json()["data"]

        assert everything["count"] == 2
        assert [b["name"] for b in high["bonds"]] == ["Port & Logistics Bond"]
        assert maritime["count"] == 1

    def test_unknown_risk_level(self, client) -> None:
        response = client.get("/api/bonds", params={"riskLevel": "Extreme"})
        assert response.status_code == 400

    def test_bond_detail(self, client, make_bond) -> None:
        bond = make_bond(price="25000", available_units=3000)
        data = client.get(f"/api/bonds/{bond.id}").json()["data"]["bond"]
        assert data["price"] == 25000
        assert data["availableUnits"] == 3000
        assert data["riskLevel"] == "Low"

    def test_unknown_bond(self, client) -> None:
        response = client.get("/api/bonds/nope")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Bond not found"}
