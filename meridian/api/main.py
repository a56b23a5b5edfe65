from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from meridian.api.handlers.exception_handlers import (
    credential_exception_handler,
    github_auth_exception_handler,
    github_exception_handler,
    unprocessable_entity_exception_handler,
)
from meridian.api.routes import app as app_endpoints
from meridian.api.routes import auth as auth_endpoints
from meridian.api.routes import cron as cron_endpoints
from meridian.api.routes import insights as insight_endpoints
from meridian.api.routes import metrics as metric_endpoints
from meridian.api.routes import sync as sync_endpoints
from meridian.api.routes import webhooks as webhook_endpoints
from meridian.config.db import Database
from meridian.integrations.github.github import GitHubAuthError, GitHubError
from meridian.llms.llm_factory import summarizer
from meridian.utils.encryption import CredentialCipher, CredentialError
from meridian.utils.logger import logger, setup_logger

setup_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Builds the process-wide handles (database engine, credential cipher,
    summarizer) once on startup and releases them on shutdown. Tests may
    install their own handles on ``app.state`` before startup.
    """
    logger.info("Starting up...")
    owns_database = getattr(app.state, "database", None) is None
    if owns_database:
        app.state.database = Database.from_settings()
    if not hasattr(app.state, "cipher"):
        app.state.cipher = CredentialCipher.from_settings()
        if app.state.cipher is None:
            logger.warning("ENCRYPTION_KEY is not set; account setup and sync are disabled.")
    if not hasattr(app.state, "summarizer"):
        app.state.summarizer = summarizer()

    yield

    logger.info("Shutting down...")
    if owns_database:
        app.state.database.dispose()
        app.state.database = None


app = FastAPI(
    title="Meridian",
    description="GitHub engineering analytics",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_exception_handler(RequestValidationError, unprocessable_entity_exception_handler)
app.add_exception_handler(GitHubAuthError, github_auth_exception_handler)
app.add_exception_handler(GitHubError, github_exception_handler)
app.add_exception_handler(CredentialError, credential_exception_handler)

app.include_router(app_endpoints.router, tags=["general"])
app.include_router(auth_endpoints.router, prefix="/api/auth", tags=["auth"])
app.include_router(sync_endpoints.router, prefix="/api/sync", tags=["sync"])
app.include_router(cron_endpoints.router, prefix="/api/cron", tags=["cron"])
app.include_router(webhook_endpoints.router, prefix="/api/webhooks", tags=["webhooks"])
app.include_router(insight_endpoints.router, prefix="/api/insights", tags=["insights"])
app.include_router(metric_endpoints.router, prefix="/api/metrics", tags=["metrics"])
