"""
Application entry point.

Creates the FastAPI application and wires together:
- Routers (paper trading, portfolio, transactions, leaderboard, bonds, health)
- Error handlers (centralized domain-to-HTTP mapping)
- Security middleware (headers, CORS, rate limiting)
- Logging configuration
- Schema bootstrap and optional catalog seed at startup

No business logic belongs here.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from mudra.core.config import settings
from mudra.infrastructure.paper_trading.catalog_seed import seed_catalog
from mudra.infrastructure.paper_trading.database import ensure_tables
from mudra.infrastructure.paper_trading.unit_of_work import SqlUnitOfWork
from mudra.interfaces.health import router as health_router
from mudra.interfaces.paper_trading.dependencies import get_engine
from mudra.interfaces.paper_trading.router import (
    bonds_router,
    leaderboard_router,
    paper_trading_router,
    portfolio_router,
    transactions_router,
)
from mudra.shared.errors.handlers import register_error_handlers
from mudra.shared.logging import configure_logging
from mudra.shared.security.headers import SecurityHeadersMiddleware
from mudra.shared.security.rate_limiting import limiter, rate_limit_exceeded_handler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: make sure the schema exists, optionally seed the catalog."""
    engine = app.dependency_overrides.get(get_engine, get_engine)()
    ensure_tables(engine)

    if settings.seed_catalog_on_startup:
        with SqlUnitOfWork(engine) as uow:
            seed_catalog(uow)

    logger.info("%s %s started", settings.project_name, settings.version)
    yield
    logger.info("%s shutting down", settings.project_name)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Registers routers, error handlers, and security middleware.
    This is the composition root of the application.

    Returns:
        A fully configured FastAPI application instance.
    """
    configure_logging(level=settings.log_level)

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # --- Rate Limiting ---
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # --- Security Middleware ---
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type"],
    )

    # --- Error Handlers ---
    register_error_handlers(app)

    # --- Routers ---
    app.include_router(health_router, prefix="/api")
    app.include_router(paper_trading_router, prefix="/api")
    app.include_router(portfolio_router, prefix="/api")
    app.include_router(transactions_router, prefix="/api")
    app.include_router(leaderboard_router, prefix="/api")
    app.include_router(bonds_router, prefix="/api")

    return app


app = create_app()
