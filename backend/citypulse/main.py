from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from citypulse.api.routes import admin, auth, geocode, health, issues, pages, profile, staff
from citypulse.core.config import settings
from citypulse.core.errors import register_exception_handlers
from citypulse.core.logging import configure_logging
from citypulse.core.telemetry import configure_tracing
from citypulse.db.init_db import seed_database
from citypulse.middleware.request_id import RequestIDMiddleware

configure_logging(settings.log_level, sql_echo=settings.debug)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle manager"""
    await seed_database()
    yield


app = FastAPI(
    title=f"{settings.project_name} API",
    description="Citizen issue reporting with role-gated municipal dashboards",
    version="1.0.0",
    docs_url=f"{settings.api_v1_prefix}/docs",
    openapi_url=f"{settings.api_v1_prefix}/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.backend_cors_origins or ["*"],
    allow_credentials=bool(settings.backend_cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)

register_exception_handlers(app)

app.include_router(auth.router)
app.include_router(issues.router)
app.include_router(staff.router)
app.include_router(profile.router)
app.include_router(admin.router)
app.include_router(geocode.router)
app.include_router(health.router)
app.include_router(pages.router)

storage_path = Path(settings.storage_dir)
storage_path.mkdir(parents=True, exist_ok=True)
app.mount("/storage", StaticFiles(directory=storage_path), name="storage")

configure_tracing(app)


@app.get("/")
async def root():
    return {
        "message": f"{settings.project_name} API",
        "docs": f"{settings.api_v1_prefix}/docs",
        "health": f"{settings.api_v1_prefix}/health",
    }
