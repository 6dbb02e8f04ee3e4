"""FastAPI application — Timesheet API."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router
from timesheet_tool import __version__
from timesheet_tool.config import configure_logging, get_settings

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(
    title=settings.app_name,
    description="Timesheet totals, payroll and billing estimates, spreadsheet exports.",
    version=__version__,
)

_allow_all = "*" in settings.allowed_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if _allow_all else settings.allowed_origins,
    allow_credentials=not _allow_all,  # credentials not allowed with wildcard
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)

app.include_router(router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs",
        "health": f"{settings.api_prefix}/health",
    }
