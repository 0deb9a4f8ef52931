"""FastAPI server for the Zuper dispatch agent.

Run with:
    uvicorn zuper_dispatch.server:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from zuper_dispatch import __version__
from zuper_dispatch.agent import create_dispatcher_agent
from zuper_dispatch.api.routes import router
from zuper_dispatch.config import Settings, get_settings
from zuper_dispatch.services.zuper_client import close_zuper_client, configure_zuper_client

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API application around *settings* (environment by default)."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        await close_zuper_client()
        configure_zuper_client(settings)
        # Without a model key the agent routes answer 503; everything else works.
        try:
            application.state.agent = create_dispatcher_agent(settings)
            logger.info("Dispatcher agent ready (model %s)", settings.model_name)
        except OSError as e:
            application.state.agent = None
            logger.warning("Dispatcher agent disabled: %s", e)
        yield
        await close_zuper_client()

    application = FastAPI(
        title="Zuper Dispatch Agent",
        description="AI dispatcher that assigns Zuper FSM jobs to the most suitable technicians.",
        version=__version__,
        lifespan=lifespan,
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.middleware("http")
    async def add_request_id(request: Request, call_next) -> Response:
        """Tag each request with ``X-Request-ID`` (client-supplied or generated)."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        logger.info("[%s] %s %s", request_id, request.method, request.url.path)
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    application.include_router(router, prefix="/api")

    @application.get("/")
    async def root():
        return {
            "service": "Zuper Dispatch Agent",
            "version": __version__,
            "docs": "/docs",
            "health": "/api/health",
        }

    return application


app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    logger.info("Starting Zuper dispatch API on %s:%d", settings.server_host, settings.server_port)
    uvicorn.run(
        "zuper_dispatch.server:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=True,
    )
