"""ASGI entry point: ``uvicorn smileforward.main:app``."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from smileforward import __version__
from smileforward.api.middleware import RequestIdMiddleware
from smileforward.api.routes import api_router, functions
from smileforward.infrastructure.redis import redis_client
from smileforward.logging_config import setup_logging
from smileforward.settings import settings
from smileforward.workers import cleanup_worker


@asynccontextmanager
async def lifespan(app: FastAPI):
    await redis_client.connect()
    try:
        yield
    finally:
        await redis_client.disconnect()


def create_app() -> FastAPI:
    setup_logging()

    app = FastAPI(
        title="Smile Forward API",
        description="AI smile design, lead capture and clinic console",
        version=__version__,
        lifespan=lifespan,
    )

    # Added last runs first: request ids are set before CORS handling
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router, prefix=settings.api_v1_prefix)
    # Called directly by the widget
    app.include_router(functions.router, prefix=settings.functions_prefix, tags=["functions"])
    # Cloud Scheduler targets
    app.include_router(cleanup_worker.router, prefix="/workers", tags=["workers"])

    @app.get("/health")
    async def health_check():
        """Cloud Run liveness probe."""
        return {"status": "healthy"}

    @app.get("/")
    async def root():
        return {"message": "Smile Forward API", "version": __version__, "docs": "/docs"}

    return app


app = create_app()
