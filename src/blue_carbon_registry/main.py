"""FastAPI application entry point for the Blue Carbon Registry.

Lifecycle:
    1. Startup: Initialize logging, build the Database, chain client and
       evidence store, connect Redis, create tables (dev mode) or apply
       Alembic revisions (DB_AUTO_MIGRATE).
    2. Running: Serve the REST API at /api/v1/*.
    3. Shutdown: Dispose the database engine and close Redis.

Collaborators are stored on ``app.state`` (db, chain_client, evidence_store)
and reached by the dependency providers in api/deps.py.

Run with:
    uvicorn blue_carbon_registry.main:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from blue_carbon_registry.config import get_settings
from blue_carbon_registry.logging_config import configure_logging, get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle."""
    settings = get_settings()

    configure_logging(settings)
    logger = get_logger(__name__)
    logger.info(
        "app.starting",
        env=settings.app_env,
        debug=settings.app_debug,
        chain_mode=settings.chain_mode,
    )

    # Persistence
    from blue_carbon_registry.infrastructure.database.engine import Database

    db = Database.from_settings(settings)
    if settings.is_development or settings.is_sqlite:
        await db.create_all()
    elif settings.db_auto_migrate:
        from blue_carbon_registry.infrastructure.database.migrate import upgrade_schema

        await asyncio.to_thread(upgrade_schema, settings.database_url)
    else:
        logger.info("database.schema_external", hint="run blue-carbon-migrate")
    app.state.db = db

    # Ledger and evidence collaborators
    from blue_carbon_registry.infrastructure.chain import create_chain_client
    from blue_carbon_registry.infrastructure.evidence_store import LocalEvidenceStore

    app.state.chain_client = create_chain_client(settings)
    app.state.evidence_store = LocalEvidenceStore(
        settings.evidence_store_dir, settings.evidence_gateway_url
    )

    # Redis backs mint idempotency and is optional
    from blue_carbon_registry.infrastructure.redis_client import close_redis, init_redis

    try:
        await init_redis()
    except Exception as exc:
        logger.warning("app.redis_unavailable", error=str(exc))

    logger.info("app.started", host=settings.app_host, port=settings.app_port)

    yield

    # Teardown
    logger.info("app.shutting_down")
    await db.dispose()
    await close_redis()
    logger.info("app.stopped")


def create_app() -> FastAPI:
    """Build the registry app with its middleware and routers."""
    settings = get_settings()

    app = FastAPI(
        title="Blue Carbon Registry",
        description=(
            "Registry for blue carbon restoration projects: verification "
            "workflow and carbon credit issuance, transfer and retirement."
        ),
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.app_debug,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # --- Middleware ---
    from blue_carbon_registry.api.middleware import setup_middleware

    setup_middleware(app)

    # --- REST API Routes ---
    from blue_carbon_registry.api.routes.credits import chain_router
    from blue_carbon_registry.api.routes.credits import router as credits_router
    from blue_carbon_registry.api.routes.evidence import router as evidence_router
    from blue_carbon_registry.api.routes.health import router as health_router
    from blue_carbon_registry.api.routes.projects import router as projects_router
    from blue_carbon_registry.api.routes.registry import router as registry_router
    from blue_carbon_registry.api.routes.users import router as users_router
    from blue_carbon_registry.api.routes.verification import router as verification_router

    app.include_router(health_router)
    app.include_router(users_router)
    app.include_router(projects_router)
    app.include_router(evidence_router)
    app.include_router(verification_router)
    app.include_router(credits_router)
    app.include_router(chain_router)
    app.include_router(registry_router)

    return app


# The app instance used by Uvicorn
app = create_app()
