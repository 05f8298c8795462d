"""
api/main.py — FastAPI application entry point.

Run locally:
    uvicorn api.main:app --reload

Architecture:
  - lifespan: opens asyncpg pool + identity resolver on startup, closes on shutdown
  - All routes receive them via Depends(get_pool) / Depends(get_identity)
  - Business logic stays in api/services/ (not here)
"""
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from api.dependencies.db import lifespan
from api.routers import downloads, records, signed_url, stats
from api.routers.signed_url import CORS_HEADERS
from studyshare.utils import setup_logging

setup_logging()

app = FastAPI(
    title="Study Share API",
    description=(
        "Access broker and record store for shared papers and notes. "
        "PDF bytes are served by S3 through short-lived signed URLs."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

# Trust headers like X-Forwarded-Proto and X-Forwarded-For injected by Nginx
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

# Browser clients call the broker cross-origin with a bearer header
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=[h.strip() for h in CORS_HEADERS["Access-Control-Allow-Headers"].split(",")],
)

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(signed_url.router, prefix="/get-signed-url", tags=["Access"])
app.include_router(records.router,    prefix="/records",        tags=["Records"])
app.include_router(downloads.router,  prefix="/downloads",      tags=["Downloads"])
app.include_router(stats.router,      prefix="/stats",          tags=["Stats"])


# ── Health check ─────────────────────────────────────────────────────────────
@app.get("/health", tags=["Meta"])
async def health() -> dict:
    """Liveness probe — returns 200 if the API process is alive."""
    return {"status": "ok"}
