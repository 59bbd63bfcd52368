import logging
import sys
import traceback
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional
from urllib.parse import urlencode

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .accesslink import AccessLinkClient
from .aggregator import HealthAggregator
from .auth import router as auth_router
from .config import Settings, settings
from .errors import NoCredential, PolarIntegrationError
from .oauth import PolarOAuthClient
from .routes import router as api_router
from .stores import SessionStore, TokenStore

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )


def create_app(app_settings: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """
    Build the API. `transport` replaces the network layer of the shared
    HTTP client, which is how tests stand in for Polar.
    """
    app_settings = app_settings or settings
    configure_logging(app_settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not app_settings.is_configured:
            logger.warning("POLAR_CLIENT_ID / POLAR_CLIENT_SECRET not set, authorization will fail")

        async with httpx.AsyncClient(timeout=app_settings.HTTP_TIMEOUT_SECONDS, transport=transport) as client:
            sessions = SessionStore(ttl=timedelta(seconds=app_settings.SESSION_TTL_SECONDS))
            tokens = TokenStore()
            accesslink = AccessLinkClient(app_settings, client, tokens)

            app.state.sessions = sessions
            app.state.tokens = tokens
            app.state.oauth_client = PolarOAuthClient(app_settings, client, sessions, tokens)
            app.state.accesslink_client = accesslink
            app.state.aggregator = HealthAggregator(accesslink)
            yield

    app = FastAPI(title="Polar Health Integration", lifespan=lifespan)
    app.state.settings = app_settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.allowed_origins,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(auth_router, prefix="/auth", tags=["auth"])
    app.include_router(api_router, tags=["api"])

    @app.exception_handler(NoCredential)
    async def no_credential_handler(request: Request, exc: NoCredential):
        return JSONResponse(
            status_code=exc.http_status,
            content={
                "error": "User not authenticated",
                "authUrl": f"/auth/polar?{urlencode({'user': exc.user_id})}",
            },
        )

    @app.exception_handler(PolarIntegrationError)
    async def polar_error_handler(request: Request, exc: PolarIntegrationError):
        if exc.http_status >= 500:
            logger.error(f"{request.url.path} failed: {exc}")
        else:
            logger.warning(f"{request.url.path} rejected: {exc}")
        return JSONResponse(status_code=exc.http_status, content={"error": str(exc)})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.url.path}: {exc}\n{traceback.format_exc()}")
        return JSONResponse(status_code=500, content={"error": str(exc) or exc.__class__.__name__})

    return app


app = create_app()
