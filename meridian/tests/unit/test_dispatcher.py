from unittest.mock import MagicMock, patch

import pytest
from fastapi import BackgroundTasks

from meridian.events.dispatcher import EventDispatcher, bg_tasks_cv
from meridian.events.event import Event
from meridian.events.sync_event import SyncEvent
from meridian.models.sync_job import SyncJobType
from meridian.tests.helpers import make_owner


class TestDispatcher:
    @pytest.fixture
    def dispatcher(self):
        with patch("meridian.events.dispatcher.q", new=None):
            yield EventDispatcher()

    def test_dispatch_request_mode(self, monkeypatch, dispatcher):
        """
        Tests that the dispatcher uses the BackgroundTasks from the context variable
        when QUEUE_MODE is 'request'.
        """
        monkeypatch.setattr("meridian.events.dispatcher.QUEUE_MODE", "request")

        mock_background_tasks = BackgroundTasks()
        mock_background_tasks.add_task = MagicMock()
        token = bg_tasks_cv.set(mock_background_tasks)
        try:
            event = SyncEvent(1)
            dispatcher.dispatch(event)
        finally:
            bg_tasks_cv.reset(token)

        mock_background_tasks.add_task.assert_called_once_with(
            dispatcher._process_event, event
        )

    def test_dispatch_request_mode_without_background_tasks(self, monkeypatch, dispatcher):
        monkeypatch.setattr("meridian.events.dispatcher.QUEUE_MODE", "request")

        with pytest.raises(RuntimeError, match="BackgroundTasks not found"):
            dispatcher.dispatch(SyncEvent(1))

    @pytest.mark.parametrize("mode", ["redis", "redislite"])
    def test_dispatch_enqueues_in_queue_modes(self, monkeypatch, mode):
        monkeypatch.setattr("meridian.events.dispatcher.QUEUE_MODE", mode)

        with patch("meridian.events.dispatcher.q") as mock_q:
            dispatcher = EventDispatcher()
            event = SyncEvent(7, SyncJobType.MANUAL)

            dispatcher.dispatch(event)

            mock_q.enqueue.assert_called_once_with(dispatcher._process_event, event)

    def test_dispatch_without_queue_raises(self, monkeypatch, dispatcher):
        monkeypatch.setattr("meridian.events.dispatcher.QUEUE_MODE", "redis")

        with pytest.raises(RuntimeError, match="queue not initialized"):
            dispatcher.dispatch(SyncEvent(1))


class TestProcessEvent:
    def test_sync_event_runs_owner_sync(self):
        dispatcher = EventDispatcher()
        event = SyncEvent(3)
        with patch.object(dispatcher, "_run_owner_sync") as run_owner_sync:
            dispatcher._process_event(event)
        run_owner_sync.assert_called_once_with(event)

    def test_unknown_event_is_ignored(self):
        dispatcher = EventDispatcher()
        with patch.object(dispatcher, "_run_owner_sync") as run_owner_sync:
            dispatcher._process_event(Event({"kind": "other"}))
        run_owner_sync.assert_not_called()

    def test_sync_event_payload(self):
        event = SyncEvent(5, SyncJobType.MANUAL)
        assert event.data == {"owner_id": 5, "job_type": "manual"}
        assert event.owner_id == 5
        assert event.job_type == SyncJobType.MANUAL
        assert SyncEvent(5).job_type == SyncJobType.CRON


class TestRunOwnerSync:
    @pytest.fixture
    def patched(self, database, cipher):
        with patch("meridian.events.dispatcher.Database") as db_cls, patch(
            "meridian.events.dispatcher.CredentialCipher"
        ) as cipher_cls, patch(
            "meridian.events.dispatcher.github_client_for"
        ) as client_for, patch(
            "meridian.events.dispatcher.SyncOrchestrator"
        ) as orchestrator, patch(
            "meridian.events.dispatcher.snapshot_owner_day"
        ) as snapshot, patch(
            "meridian.events.dispatcher.refresh_insights"
        ) as refresh, patch(
            "meridian.events.dispatcher.summarizer", return_value=None
        ):
            handle = MagicMock()
            handle.session.side_effect = database.session
            db_cls.from_settings.return_value = handle
            cipher_cls.from_settings.return_value = cipher
            yield {
                "database": handle,
                "client_for": client_for,
                "orchestrator": orchestrator,
                "snapshot": snapshot,
                "refresh": refresh,
            }

    def test_runs_sync_then_metrics_and_insights(self, session, patched):
        owner = make_owner(session)
        owner_id = owner.id

        EventDispatcher()._run_owner_sync(SyncEvent(owner_id, SyncJobType.CRON))

        run = patched["orchestrator"].return_value.run
        assert run.call_args.args[0].id == owner_id
        assert run.call_args.args[1] == SyncJobType.CRON
        patched["client_for"].return_value.close.assert_called_once()
        assert patched["snapshot"].call_args.args[1] == owner_id
        assert patched["refresh"].call_args.args[1] == owner_id
        patched["database"].dispose.assert_called_once()

    def test_missing_owner_is_skipped(self, patched):
        EventDispatcher()._run_owner_sync(SyncEvent(404))

        patched["orchestrator"].assert_not_called()
        patched["refresh"].assert_not_called()

    def test_sync_failure_is_logged_not_raised(self, session, patched):
        owner = make_owner(session)
        patched["orchestrator"].return_value.run.side_effect = RuntimeError("boom")

        EventDispatcher()._run_owner_sync(SyncEvent(owner.id))

        patched["client_for"].return_value.close.assert_called_once()
        patched["refresh"].assert_not_called()
