from contextvars import ContextVar
from datetime import timedelta
from typing import Optional

import redis
from redislite import Redis as RedisLite

from fastapi import BackgroundTasks
from rq import Queue

from meridian.config.db import Database
from meridian.config.settings import (
    QUEUE_MODE,
    REDIS_HOST,
    REDIS_PORT,
    REDISLITE_DB_PATH,
)
from meridian.events.event import Event
from meridian.events.sync_event import SyncEvent
from meridian.llms.llm_factory import summarizer
from meridian.models.owner import Owner
from meridian.services.insight_service import refresh_insights
from meridian.services.metrics_service import snapshot_owner_day
from meridian.services.owner_service import github_client_for
from meridian.services.sync_service import SyncOrchestrator
from meridian.utils.encryption import CredentialCipher
from meridian.utils.logger import logger
from meridian.utils.timeutils import utcnow

# Context variable to hold the BackgroundTasks object for the current request
bg_tasks_cv: ContextVar[Optional[BackgroundTasks]] = ContextVar(
    "bg_tasks", default=None
)


def redis_connection():
    """Connection for the configured queue backend; None in request mode."""
    if QUEUE_MODE == "redis":
        return redis.Redis(host=REDIS_HOST, port=REDIS_PORT, db=0)
    if QUEUE_MODE == "redislite":
        # File-backed Redis shared with the worker process.
        return RedisLite(REDISLITE_DB_PATH)
    return None


q = None
if QUEUE_MODE in ["redis", "redislite"]:
    logger.info(f"Using {QUEUE_MODE} for the sync queue.")
    q = Queue(connection=redis_connection())
elif QUEUE_MODE == "request":
    logger.info("Using request-scoped background tasks for sync processing.")


class EventDispatcher:
    """Dispatches events to the queue."""

    def dispatch(self, event: Event):
        """Dispatches an event to the configured queue or background task runner."""
        logger.info(f"Dispatching event: {event} (mode: {QUEUE_MODE})")
        if QUEUE_MODE in ["redis", "redislite"]:
            if not q:
                raise RuntimeError(f"{QUEUE_MODE} queue not initialized.")
            q.enqueue(self._process_event, event)

        elif QUEUE_MODE == "request":
            background_tasks = bg_tasks_cv.get()
            if not background_tasks:
                raise RuntimeError(
                    "FastAPI BackgroundTasks not found in context. Is the endpoint setting it?"
                )
            background_tasks.add_task(self._process_event, event)
        else:
            raise ValueError(
                f"Unknown QUEUE_MODE: '{QUEUE_MODE}'. Must be 'redis', 'redislite', or 'request'."
            )

    def _process_event(self, event: Event):
        if isinstance(event, SyncEvent):
            logger.info(f"Processing sync event: {event}")
            self._run_owner_sync(event)
        else:
            logger.error(f"Unhandled event type: {event}")

    def _run_owner_sync(self, event: SyncEvent):
        """
        Sync one owner, then record yesterday's metrics and refresh insights.

        Runs outside any request, so it owns its own database handle.
        """
        database = Database.from_settings()
        try:
            with database.session() as session:
                owner = session.get(Owner, event.owner_id)
                if owner is None:
                    logger.error(f"Owner {event.owner_id} no longer exists; skipping sync.")
                    return
                cipher = CredentialCipher.from_settings()
                if cipher is None:
                    logger.error("ENCRYPTION_KEY is not configured; cannot sync.")
                    return

                github = github_client_for(owner, cipher)
                try:
                    SyncOrchestrator(session, github).run(owner, event.job_type)
                finally:
                    github.close()

                yesterday = (utcnow() - timedelta(days=1)).date()
                snapshot_owner_day(session, owner.id, yesterday)
                refresh_insights(session, owner.id, summarizer())
        except Exception as e:
            logger.exception(f"An error occurred while processing event: {e}")
        finally:
            database.dispose()
