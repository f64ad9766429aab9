"""
TaxDesk NG - Application Entry Point

Serves tax summaries, compliance scores, rate tables, remittances and income
entries over HTTP.
Run with `python main.py` or `uvicorn main:app`.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taxdesk.config import settings
from taxdesk.database import init_db, close_db
from taxdesk.routers import income, tax
from taxdesk.services.tax_tables import build_default_registry
from taxdesk.utils.error_handling import setup_exception_handlers

logging.basicConfig(
    level=logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the rate tables once per process and share them through app.state.

    Tables are created directly only in development; other environments run
    alembic migrations first.
    """
    logger.info(f"{settings.app_name} starting in {settings.app_env}")

    app.state.tax_tables = build_default_registry(settings.minimum_tax_year, settings.maximum_tax_year)
    logger.info(f"Rate tables ready for {settings.minimum_tax_year}-{settings.maximum_tax_year}")

    if settings.is_development:
        await init_db()
        logger.info("Development schema created")

    yield

    await close_db()
    logger.info(f"{settings.app_name} stopped")


app = FastAPI(
    title=settings.app_name,
    description="Nigerian tax liability summaries under the Nigeria Tax Act 2025",
    version=API_VERSION,
    docs_url="/api/docs" if settings.is_development else None,
    redoc_url="/api/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
)

setup_exception_handlers(app)


# ===========================================
# SERVICE ENDPOINTS
# ===========================================

@app.get("/api")
async def api_info():
    """Name, version and the tax year window this deployment answers for."""
    return {
        "name": settings.app_name,
        "version": API_VERSION,
        "environment": settings.app_env,
        "tax_years": {"from": settings.minimum_tax_year, "to": settings.maximum_tax_year},
        "docs": "/api/docs" if settings.is_development else None,
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


# ===========================================
# ROUTERS
# ===========================================

app.include_router(tax.router, prefix="/api/v1/tax", tags=["Tax"])
app.include_router(income.router, prefix="/api/v1/income", tags=["Income"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=5120, reload=settings.is_development)
