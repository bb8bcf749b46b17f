"""
api/server.py
-------------
FastAPI application entry point.

Run dev server:
    uvicorn tripweave.api.server:app --reload --port 8000

Endpoints:
    GET  /v1/health
    POST /v1/optimize/route
"""
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import tripweave.config as config
from tripweave.api.routes import health, optimize

logging.basicConfig(level=config.LOG_LEVEL)

app = FastAPI(
    title="tripweave Group Trip Optimizer API",
    version="1.0.0",
    description=(
        "Fair multi-traveler route optimization: preference normalization, "
        "geographic clustering, route search and day-by-day scheduling."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router,   prefix="/v1",          tags=["Health"])
app.include_router(optimize.router, prefix="/v1/optimize", tags=["Optimize"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("tripweave.api.server:app", host=config.API_HOST, port=config.API_PORT, reload=True)
