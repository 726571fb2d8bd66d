from __future__ import annotations

import logging
import os
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .api import settings, simulate, storylets

logger = logging.getLogger(__name__)


DEFAULT_ORIGINS = "http://localhost:8001,http://127.0.0.1:8001,http://localhost:3000,http://127.0.0.1:3000"
HSTS_VALUE = "max-age=31536000; includeSubDomains"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Stamp nosniff and frame-deny headers on every response, plus HSTS in production."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if os.environ.get("ENVIRONMENT") == "production":
            response.headers["Strict-Transport-Security"] = HSTS_VALUE
        return response


def parse_origins(raw: str) -> List[str]:
    """Split a comma-separated ALLOWED_ORIGINS value."""
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


app = FastAPI(
    title="Mythforge",
    description="HTTP interface to the Mythforge storylet engine",
    version="0.1.0"
)

# Comma-separated ALLOWED_ORIGINS; the API uses no cookies
allowed_origins = parse_origins(os.environ.get("ALLOWED_ORIGINS", DEFAULT_ORIGINS))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["Content-Type"],
    max_age=600,
)

app.add_middleware(SecurityHeadersMiddleware)

app.include_router(storylets.router)
app.include_router(simulate.router)
app.include_router(settings.router)


@app.get("/")
async def index():
    return {"message": "Mythforge API", "docs": "/docs"}


@app.on_event("startup")
async def configure_logging():
    from .settings import get_settings

    user_settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, user_settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger.info(f"Default target: {user_settings.default_target}, depth: {user_settings.default_depth}")
    logger.info(f"Allowed CORS origins: {', '.join(allowed_origins)}")


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "service": "Mythforge"}
