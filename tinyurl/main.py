"""FastAPI application entry point for the tinyurl service.

Application Lifecycle Diagram
===========================
::
    ┌─────────────┐
    │  uvicorn    │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ create_app()│
    │ CORS, /metrics, routes
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ startup:    │
    │ ServiceManager
    │ ensure_schema()
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Serve HTTP  │
    │ requests    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ shutdown:   │
    │ dispose pool│
    └─────────────┘

How to Use
===========
**Step 1 — Run**::
    python -m tinyurl
    # or: uvicorn tinyurl.main:app --host 127.0.0.1 --port 9876

**Step 2 — Shorten**::
    curl -X POST http://127.0.0.1:9876/ \
         -H "Content-Type: application/json" \
         -d '{"url": "https://example.com/a"}'

**Step 3 — Follow**::
    curl -i http://127.0.0.1:9876/abc123   # 308, Location: https://example.com/a

Key Behaviours
===============
- The schema is created on startup; startup fails if the database is unreachable.
- A ServiceManager already placed on ``app.state`` is reused, otherwise one is
  built from settings.
- The connection pool is disposed on shutdown.
"""

__all__ = ["app", "create_app"]

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from tinyurl.config import get_settings
from tinyurl.dependencies import ServiceManager
from tinyurl.routes import router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    manager = getattr(app.state, "service_manager", None) or ServiceManager()
    app.state.service_manager = manager
    await manager.initialize()
    yield
    # Shutdown
    await manager.cleanup()


def create_app(service_manager: ServiceManager | None = None) -> FastAPI:
    settings = service_manager.settings if service_manager else get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version="1.0.0",
        description="Short id allocation and redirect service",
        lifespan=lifespan,
    )
    if service_manager is not None:
        app.state.service_manager = service_manager

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # /metrics must be registered before the catch-all /{short_id} route
    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=False,
        should_respect_env_var=False,
    ).instrument(app).expose(app, include_in_schema=False)

    app.include_router(router)
    return app


app = create_app()
