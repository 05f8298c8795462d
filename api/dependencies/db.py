"""
api/dependencies/db.py

FastAPI lifespan: opens the asyncpg pool and builds the identity resolver
on startup, closes the pool on shutdown.
Routers receive them via Depends(get_pool) / Depends(get_identity).

Usage in a router:
    from api.dependencies.db import get_pool

    @router.get("/")
    async def list_records(pool=Depends(get_pool)):
        rows = await pool.fetch("SELECT ...")
"""
import logging
import os
from contextlib import asynccontextmanager

import asyncpg
from dotenv import load_dotenv
from fastapi import FastAPI, Request

from api.services.identity import resolver_from_env

load_dotenv()

log = logging.getLogger("study_share.api")


def _dsn() -> str:
    password = os.environ.get("DB_PASSWORD")
    return (
        f"postgresql://{os.environ['DB_USER']}{(':' + password) if password else ''}"
        f"@{os.environ.get('DB_HOST', 'localhost')}:{os.environ.get('DB_PORT', '5432')}"
        f"/{os.environ['DB_NAME']}"
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open pool on startup, close on shutdown. Pool stored on app.state."""
    app.state.pool = await asyncpg.create_pool(_dsn(), min_size=2, max_size=10)
    app.state.identity = resolver_from_env()
    log.info("Database pool ready.")
    yield
    await app.state.pool.close()


async def get_pool(request: Request) -> asyncpg.Pool:
    """FastAPI dependency — injects the shared connection pool into any route."""
    return request.app.state.pool
