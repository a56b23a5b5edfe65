import importlib
import sys
from unittest.mock import patch

import pytest


def load_worker_settings():
    sys.modules.pop("meridian.worker_settings", None)
    return importlib.import_module("meridian.worker_settings")


@patch("meridian.config.settings.QUEUE_MODE", "redis")
@patch("meridian.config.settings.REDIS_HOST", "queue.internal")
@patch("meridian.config.settings.REDIS_PORT", 6380)
def test_redis_worker_url():
    worker_settings = load_worker_settings()
    assert worker_settings.REDIS_URL == "redis://queue.internal:6380/0"
    assert worker_settings.QUEUES == ["default"]


@patch("meridian.config.settings.QUEUE_MODE", "request")
def test_request_mode_has_no_worker():
    with pytest.raises(ValueError, match="Invalid QUEUE_MODE for worker: request"):
        load_worker_settings()
