"""
Database engine construction and schema bootstrap.

PostgreSQL (psycopg2) in production; SQLite for local runs and tests.
The schema is created idempotently with plain DDL so that the same
statements work on both backends.
"""

import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

DDL_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id              VARCHAR(32)   PRIMARY KEY,
        name            VARCHAR(120)  NOT NULL,
        email           VARCHAR(255)  NOT NULL UNIQUE,
        password_hash   VARCHAR(255),
        session_token   VARCHAR(128)  UNIQUE,
        wallet_balance  NUMERIC(20,2) NOT NULL CHECK (wallet_balance >= 0),
        wallet_currency VARCHAR(3)    NOT NULL,
        role            VARCHAR(16)   NOT NULL DEFAULT 'user',
        is_verified     BOOLEAN       NOT NULL DEFAULT FALSE,
        created_at      TIMESTAMPTZ   NOT NULL,
        version         INTEGER       NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS bonds (
        id              VARCHAR(32)   PRIMARY KEY,
        name            VARCHAR(200)  NOT NULL UNIQUE,
        issuer          VARCHAR(200)  NOT NULL,
        description     TEXT          NOT NULL DEFAULT '',
        return_rate     NUMERIC(6,2)  NOT NULL,
        risk_level      VARCHAR(8)    NOT NULL,
        price           NUMERIC(20,2) NOT NULL CHECK (price >= 0),
        maturity_years  INTEGER       NOT NULL,
        sector          VARCHAR(64)   NOT NULL,
        total_value     NUMERIC(24,2) NOT NULL,
        available_units BIGINT        NOT NULL CHECK (available_units >= 0),
        is_active       BOOLEAN       NOT NULL DEFAULT TRUE,
        launch_date     TIMESTAMPTZ,
        version         INTEGER       NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS portfolios (
        id                VARCHAR(32)   PRIMARY KEY,
        user_id           VARCHAR(32)   NOT NULL UNIQUE REFERENCES users (id) ON DELETE CASCADE,
        total_invested    NUMERIC(20,2) NOT NULL DEFAULT 0,
        total_bonds_owned INTEGER       NOT NULL DEFAULT 0,
        created_at        TIMESTAMPTZ   NOT NULL,
        updated_at        TIMESTAMPTZ   NOT NULL,
        version           INTEGER       NOT NULL DEFAULT 0
    )
    """,
    # bond_id is a weak reference: the catalog entry may be removed later.
    """
    CREATE TABLE IF NOT EXISTS holdings (
        portfolio_id          VARCHAR(32)   NOT NULL REFERENCES portfolios (id) ON DELETE CASCADE,
        bond_id               VARCHAR(32)   NOT NULL,
        quantity              BIGINT        NOT NULL CHECK (quantity > 0),
        average_buy_price     NUMERIC(20,6) NOT NULL CHECK (average_buy_price >= 0),
        total_invested        NUMERIC(20,2) NOT NULL CHECK (total_invested >= 0),
        first_purchase_date   TIMESTAMPTZ   NOT NULL,
        last_transaction_date TIMESTAMPTZ   NOT NULL,
        PRIMARY KEY (portfolio_id, bond_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS transactions (
        id                   VARCHAR(32)   PRIMARY KEY,
        user_id              VARCHAR(32)   NOT NULL REFERENCES users (id) ON DELETE CASCADE,
        bond_id              VARCHAR(32)   NOT NULL,
        type                 VARCHAR(4)    NOT NULL CHECK (type IN ('BUY', 'SELL')),
        quantity             BIGINT        NOT NULL CHECK (quantity >= 1),
        price_per_unit       NUMERIC(20,2) NOT NULL CHECK (price_per_unit >= 0),
        total_amount         NUMERIC(20,2) NOT NULL CHECK (total_amount >= 0),
        status               VARCHAR(16)   NOT NULL DEFAULT 'COMPLETED',
        snapshot_name        VARCHAR(200)  NOT NULL,
        snapshot_issuer      VARCHAR(200)  NOT NULL,
        snapshot_return_rate NUMERIC(6,2)  NOT NULL,
        snapshot_risk_level  VARCHAR(8)    NOT NULL,
        created_at           TIMESTAMPTZ   NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_tx_user_created ON transactions (user_id, created_at)",
    "CREATE INDEX IF NOT EXISTS idx_tx_bond_created ON transactions (bond_id, created_at)",
    "CREATE INDEX IF NOT EXISTS idx_users_session_token ON users (session_token)",
]


def build_engine(url: str) -> Engine:
    """Build a SQLAlchemy engine for the given URL.

    In-memory SQLite gets a single shared connection so that every
    session sees the same database.
    """
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


def ensure_tables(engine: Engine) -> None:
    """Create missing tables and indexes (idempotent)."""
    with engine.begin() as conn:
        for ddl in DDL_STATEMENTS:
            conn.execute(text(ddl))
    logger.info("Database tables verified/created.")
