"""
Blue Carbon Marketplace API - Main Application.

FastAPI application serving the marketplace catalog, credit purchases,
buyer portfolios, seller listings and company onboarding.

Run locally without a backend (sample catalog, process-local state):
    STORE_BACKEND=memory DEMO_TOKENS=demo:demo-user uvicorn api.main:app --reload

Against Supabase, seed once per deployment with `python scripts/seed_marketplace.py`.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__
from api.config import get_settings
from api.errors import register_error_handlers

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create FastAPI application
app = FastAPI(
    title="Blue Carbon Marketplace API",
    description="REST API for trading blue carbon credits and onboarding project developers",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.allowed_origins),
    allow_credentials="*" not in settings.allowed_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

register_error_handlers(app)


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "blue-carbon-marketplace-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Blue Carbon Marketplace API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import contact, listings, projects, purchases, registration

app.include_router(projects.router, prefix="/api/v1", tags=["Projects"])
app.include_router(purchases.router, prefix="/api/v1", tags=["Purchases"])
app.include_router(registration.router, prefix="/api/v1", tags=["Company Registration"])
app.include_router(listings.router, prefix="/api/v1", tags=["Seller Listings"])
app.include_router(contact.router, prefix="/api/v1", tags=["Contact"])
