from __future__ import annotations

import queue
import threading
from concurrent.futures import Future

import pytest

pytest.importorskip("tkinter")

from dnc_checker.models import BatchSummary, LookupResult, LookupStatus  # noqa: E402
from dnc_checker.orchestrator import BatchOrchestrator  # noqa: E402
from dnc_checker.ui import app as app_module  # noqa: E402
from dnc_checker.ui.app import (  # noqa: E402
    DncCheckerApp,
    QueueObserver,
    discard_pending_events,
    format_stats,
    run_check_job,
)


class EchoClient:
    """Marks numbers ending in an odd digit as DNC."""

    def __init__(self) -> None:
        self.calls = []

    def check(self, number: str) -> LookupResult:
        self.calls.append(number)
        status = LookupStatus.DNC if int(number[-1]) % 2 else LookupStatus.CLEAN
        return LookupResult(number=number, status=status, source="echo")


def _drain(event_queue: "queue.Queue[tuple]") -> list:
    events = []
    while not event_queue.empty():
        events.append(event_queue.get_nowait())
    return events


def test_run_check_job_emits_events_through_queue() -> None:
    event_queue: "queue.Queue[tuple]" = queue.Queue()
    client = EchoClient()
    orchestrator = BatchOrchestrator(client, observer=QueueObserver(event_queue), sleep=lambda _: None)

    summary = run_check_job(orchestrator, "2125550100\n(212)555-0101, 2125550100")

    assert client.calls == ["+12125550100", "+12125550101"]
    events = _drain(event_queue)
    assert [event[0] for event in events] == ["start", "result", "progress", "result", "progress", "done"]
    assert events[0] == ("start", 2)
    assert events[2] == ("progress", 1, 2)
    assert events[3][1].status is LookupStatus.DNC
    assert events[-1] == ("done", summary)
    assert (summary.clean, summary.dnc) == (1, 1)


def test_run_check_job_respects_cancellation() -> None:
    event_queue: "queue.Queue[tuple]" = queue.Queue()
    cancel_event = threading.Event()

    class CancellingObserver(QueueObserver):
        def on_result(self, result: LookupResult) -> None:
            super().on_result(result)
            cancel_event.set()

    orchestrator = BatchOrchestrator(EchoClient(), observer=CancellingObserver(event_queue), sleep=lambda _: None)

    summary = run_check_job(orchestrator, "2125550100 2125550101 2125550102", cancel_event=cancel_event)

    assert summary.cancelled
    assert summary.processed == 1
    assert _drain(event_queue)[-1][1].format_message().startswith("Processing stopped")


def test_run_check_job_with_blank_text_returns_none() -> None:
    event_queue: "queue.Queue[tuple]" = queue.Queue()
    orchestrator = BatchOrchestrator(EchoClient(), observer=QueueObserver(event_queue))

    assert run_check_job(orchestrator, "   ") is None
    assert event_queue.empty()


def test_format_stats() -> None:
    summary = BatchSummary(
        total=4, processed=4, clean=3, dnc=1, invalid=0, clean_rate=75, elapsed_seconds=12
    )

    assert format_stats(summary) == "Total: 4 | Clean: 75% | Time: 12s"


def test_discard_pending_events_empties_the_queue() -> None:
    event_queue: "queue.Queue[tuple]" = queue.Queue()
    event_queue.put(("progress", 1, 3))
    event_queue.put(("result", None))

    assert discard_pending_events(event_queue) == 2
    assert event_queue.empty()
    assert discard_pending_events(event_queue) == 0


class FakeVar:
    def __init__(self) -> None:
        self.value = None

    def set(self, value) -> None:
        self.value = value


class FakeText:
    def __init__(self) -> None:
        self.deleted = False

    def delete(self, start, end) -> None:
        self.deleted = True


class FakeOrchestrator:
    def __init__(self) -> None:
        self.resets = 0

    def reset(self) -> None:
        self.resets += 1


def _bare_app(running: bool) -> DncCheckerApp:
    app = DncCheckerApp.__new__(DncCheckerApp)
    app.orchestrator = FakeOrchestrator()
    app.event_queue = queue.Queue()
    app.event_queue.put(("result", LookupResult(number="+12125550100", status=LookupStatus.CLEAN)))
    app.event_queue.put(("progress", 1, 3))
    app.input_text = FakeText()
    app.listboxes = {}
    app.count_vars = {}
    app.progress_var = FakeVar()
    app.stats_var = FakeVar()
    app.status_var = FakeVar()
    task: Future = Future()
    if not running:
        task.set_result(None)
    app.current_task = task
    return app


def test_reset_while_running_is_abandoned_when_declined(monkeypatch) -> None:
    prompts = []
    monkeypatch.setattr(app_module.messagebox, "askyesno", lambda title, message: prompts.append(title) or False)
    app = _bare_app(running=True)

    app.reset()

    assert prompts == ["Reset"]
    assert app.orchestrator.resets == 0
    assert not app.input_text.deleted
    assert app.event_queue.qsize() == 2


def test_confirmed_reset_discards_queued_events(monkeypatch) -> None:
    monkeypatch.setattr(app_module.messagebox, "askyesno", lambda title, message: True)
    app = _bare_app(running=True)

    app.reset()

    assert app.orchestrator.resets == 1
    assert app.event_queue.empty()
    assert app.input_text.deleted
    assert app.status_var.value == "Idle"


def test_idle_reset_does_not_prompt(monkeypatch) -> None:
    def fail(title, message):
        raise AssertionError("unexpected prompt")

    monkeypatch.setattr(app_module.messagebox, "askyesno", fail)
    app = _bare_app(running=False)

    app.reset()

    assert app.orchestrator.resets == 1
    assert app.event_queue.empty()
