"""
api/server.py
-------------
FastAPI application entry point.

Run dev server:
    cd backend
    uvicorn api.server:app --reload --port 8000

Endpoints:
    GET    /v1/health
    GET    /v1/plans/{plan_id}/days
    GET    /v1/plans/{plan_id}/days/{date}/timeline
    POST   /v1/plans/{plan_id}/days/{date}/visits
    PATCH  /v1/visits/{entry_id}
    DELETE /v1/visits/{entry_id}
    POST   /v1/plans/{plan_id}/days/{date}/reorder
    POST   /v1/plans/{plan_id}/days/{date}/move
    POST   /v1/plans/{plan_id}/days/{date}/renumber
"""
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from api.routes import health, schedule

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Tripline Schedule API",
    version="1.0.0",
    description=(
        "Day-by-day trip schedules: ordered visit timelines with estimated "
        "travel between stops, drag-and-drop reordering and visit CRUD."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router,   prefix="/v1", tags=["Health"])
app.include_router(schedule.router, prefix="/v1", tags=["Schedule"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.server:app", host="0.0.0.0", port=8000, reload=True)
