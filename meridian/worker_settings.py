"""Settings module for ``rq worker -c meridian.worker_settings``."""

from meridian.config.settings import QUEUE_MODE, REDIS_HOST, REDIS_PORT, REDISLITE_DB_PATH
from meridian.utils.logger import logger, setup_logger

# Set up logging for the worker
setup_logger()

QUEUES = ["default"]

if QUEUE_MODE == "redis":
    logger.info("Worker using Redis for the sync queue.")
    REDIS_URL = f"redis://{REDIS_HOST}:{REDIS_PORT}/0"
elif QUEUE_MODE == "redislite":
    from redislite import Redis as RedisLite

    logger.info("Worker using RedisLite for the sync queue.")
    # Attach to the same file-backed server the API process enqueues into.
    REDIS_URL = f"unix://{RedisLite(REDISLITE_DB_PATH).socket_file}"
else:
    raise ValueError(f"Invalid QUEUE_MODE for worker: {QUEUE_MODE}")
