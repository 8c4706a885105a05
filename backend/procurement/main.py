"""Procurement Service - Main Application

Suppliers, purchase orders and goods receipts over a relational store,
with best-effort calls to the inventory, finance and audit services.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from procurement.config import settings
from procurement.database import init_db, engine
from procurement.integrations import Integrations
from procurement.rate_limit import RateLimiter, RateLimitMiddleware
from procurement.api import suppliers, purchase_orders, receipts
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info("Starting Procurement Service...")
    await init_db()
    logger.info("Database initialized")

    app.state.integrations = Integrations.from_settings(settings)
    app.state.rate_limiter = (
        RateLimiter(
            window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
            read_max=settings.RATE_LIMIT_READ_MAX,
            mutation_max=settings.RATE_LIMIT_MUTATION_MAX,
            trust_forwarded_for=settings.RATE_LIMIT_TRUST_FORWARDED_FOR,
        )
        if settings.RATE_LIMIT_ENABLED
        else None
    )

    yield

    # Shutdown
    logger.info("Shutting down Procurement Service...")
    await app.state.integrations.aclose()
    await engine.dispose()
    logger.info("Database connection closed")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Procurement: suppliers, purchase orders and goods receipts",
    lifespan=lifespan,
)

app.add_middleware(RateLimitMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(suppliers.router)
app.include_router(purchase_orders.router)
app.include_router(receipts.router)


@app.get("/")
async def root():
    """Root endpoint with service information"""
    return {
        "service": settings.APP_NAME,
        "version": settings.VERSION,
        "status": "running",
        "endpoints": {
            "suppliers": "/v1/suppliers",
            "purchase_orders": "/v1/purchase-orders",
            "receipts": "/v1/receipts",
        },
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "procurement.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
