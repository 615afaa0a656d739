"""
Newsletter Publisher API
FastAPI application for creating newsletters and broadcasting them by email.
"""

import logging
import os
from typing import List

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from app.dependencies import get_asset_store, get_newsletter_repository
from app.routers import newsletters, recipients
from app.services.newsletter_repository import SupabaseNewsletterRepository
from app.services.storage import SupabaseAssetStore

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Newsletter Publisher API",
    description="Create newsletters and broadcast them to every registered recipient",
    version="0.1.0",
)


def get_cors_origins() -> List[str]:
    """
    Build the list of allowed CORS origins.

    Always includes the local dev frontends (http://localhost:3000 and
    http://localhost:5173). Additional origins are read from the
    CORS_ORIGINS environment variable as a comma-separated list.

    Duplicates are removed while preserving order.
    """
    always_included = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    extra_origins: List[str] = []
    cors_env = os.getenv("CORS_ORIGINS", "").strip()
    if cors_env:
        extra_origins = [o.strip() for o in cors_env.split(",") if o.strip()]

    seen: set = set()
    origins: List[str] = []
    for origin in always_included + extra_origins:
        if origin not in seen:
            seen.add(origin)
            origins.append(origin)

    return origins


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(newsletters.router, prefix="/api/newsletters", tags=["newsletters"])
app.include_router(recipients.router, prefix="/api/users", tags=["users"])


@app.on_event("startup")
async def log_startup() -> None:
    host_port = os.getenv("HOST_PORT", "8000")
    logger.info("Newsletter Publisher API running at http://localhost:%s", host_port)


@app.get("/")
async def root():
    return {"message": "Newsletter Publisher API", "version": "0.1.0"}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/health/db")
async def health_db(
    repository: SupabaseNewsletterRepository = Depends(get_newsletter_repository),
):
    """
    Test the Supabase database connection.

    Reads one row id from the newsletters table. Returns 503 on failure.
    """
    if repository.client is None:
        raise HTTPException(
            status_code=503,
            detail="Database client unavailable: SUPABASE_SERVICE_KEY is not configured",
        )

    try:
        repository.ping()
        return {"status": "ok", "database": "reachable"}
    except Exception as exc:
        logger.error(f"Database health check failed: {exc}")
        raise HTTPException(
            status_code=503,
            detail=f"Database connection failed: {str(exc)}",
        )


@app.get("/health/storage")
async def health_storage(
    store: SupabaseAssetStore = Depends(get_asset_store),
):
    """
    Test Supabase Storage access.

    Verifies the newsletter image bucket exists. Returns 503 if storage is
    unreachable or the bucket is missing.
    """
    if store.client is None:
        raise HTTPException(
            status_code=503,
            detail="Storage client unavailable: SUPABASE_SERVICE_KEY is not configured",
        )

    try:
        if not store.bucket_exists():
            raise HTTPException(
                status_code=503,
                detail=f"Storage bucket '{store.bucket}' not found",
            )
        return {"status": "ok", "storage": "reachable", "bucket": store.bucket}
    except HTTPException:
        raise
    except Exception as exc:
        logger.error(f"Storage health check failed: {exc}")
        raise HTTPException(
            status_code=503,
            detail=f"Storage check failed: {str(exc)}",
        )
