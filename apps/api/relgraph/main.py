from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from relgraph.api.v1.routes import admin, contacts, discovery, health, network, relationships
from relgraph.core.config import get_settings
from relgraph.core.errors import GraphEngineError
from relgraph.core.logging import configure_logging
from relgraph.db.pg.base import Base
from relgraph.db.pg import models as _models  # noqa: F401
from relgraph.db.pg.session import engine

configure_logging()
settings = get_settings()
logger = logging.getLogger(__name__)
app = FastAPI(title=settings.app_name)
allowed_origins = [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()]
if allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.on_event("startup")
def on_startup() -> None:
    Base.metadata.create_all(bind=engine)


@app.exception_handler(GraphEngineError)
def graph_engine_error_handler(request: Request, exc: GraphEngineError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("graph_engine_error", extra={"path": request.url.path, "error": exc.message})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.include_router(health.router, prefix=settings.api_prefix)
app.include_router(contacts.router, prefix=settings.api_prefix)
app.include_router(relationships.router, prefix=settings.api_prefix)
app.include_router(network.router, prefix=settings.api_prefix)
app.include_router(discovery.router, prefix=settings.api_prefix)
app.include_router(admin.router, prefix=settings.api_prefix)
