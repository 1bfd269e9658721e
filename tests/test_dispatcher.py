from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from datetime import UTC, datetime

import pytest

from motbot._constants import ADMIN_ONLY_TEXT, GENERIC_APOLOGY_TEXT, HELP_TEXT, LOOKUP_APOLOGY_TEXT, WELCOME_TEXT
from motbot.bot.dispatcher import DispatcherState, UpdateDispatcher
from motbot.bot.orchestrator import AggregationOrchestrator
from motbot.bot.policy import AccessPolicy
from motbot.bot.stats import format_stats
from motbot.exceptions import RequestTimeoutError, SendError, UsageLogError
from motbot.models.events import ChatInfo, InboundEvent
from motbot.models.mot import MotVehicle
from motbot.models.usage import UsageEvent, UsageStats
from motbot.models.ves import VesVehicle

_MOT = MotVehicle(registration="AB12CDE", make="FORD", model="FOCUS")
_VES = VesVehicle(registration_number="AB12CDE", tax_status="Taxed")


class _Transport:
    """In-memory chat transport fed from a queue."""

    def __init__(self, *, fail_sends: int = 0) -> None:
        self.queue: asyncio.Queue[InboundEvent | None] = asyncio.Queue()
        self.sent: list[tuple[int, str]] = []
        self._fail_sends = fail_sends

    async def receive(self) -> AsyncIterator[InboundEvent]:
        while True:
            event = await self.queue.get()
            if event is None:
                return
            yield event

    async def send(self, chat_id: int, text: str) -> None:
        if self._fail_sends:
            self._fail_sends -= 1
            raise SendError("chat not found", chat_id=chat_id)
        self.sent.append((chat_id, text))

    async def resolve_identity(self, chat_id: int) -> ChatInfo:
        return ChatInfo(id=chat_id, username="alice")


class _Source:
    def __init__(self, record: object = None, *, error: Exception | None = None) -> None:
        self._record = record
        self._error = error

    async def fetch(self, registration: str) -> object:
        await asyncio.sleep(0)
        if self._error is not None:
            raise self._error
        return self._record


class _Recorder:
    def __init__(self, stats: UsageStats | None = None, *, stats_error: Exception | None = None) -> None:
        self._stats = stats or UsageStats()
        self._stats_error = stats_error
        self.stats_calls = 0
        self.rows: list[tuple[int, str, str]] = []

    async def append(self, user_id: int, username: str, registration: str, response: str) -> UsageEvent:
        self.rows.append((user_id, username, registration))
        return UsageEvent(
            timestamp=datetime.now(UTC),
            user_id=user_id,
            username=username,
            registration=registration,
            response=response,
        )

    async def stats(self) -> UsageStats:
        self.stats_calls += 1
        if self._stats_error is not None:
            raise self._stats_error
        return self._stats


def _dispatcher(
    transport: _Transport,
    *,
    recorder: _Recorder | None = None,
    mot: _Source | None = None,
    ves: _Source | None = None,
    admins: tuple[str, ...] = ("12345",),
    formatter: Callable[[MotVehicle, VesVehicle], str] | None = None,
    max_message_length: int = 4096,
) -> tuple[UpdateDispatcher, _Recorder]:
    recorder = recorder or _Recorder()
    orchestrator = AggregationOrchestrator(
        mot or _Source(_MOT),
        ves or _Source(_VES),
        recorder,
        transport,
        formatter=formatter or (lambda m, v: f"report for {m.registration}"),
    )
    dispatcher = UpdateDispatcher(
        transport,
        orchestrator,
        AccessPolicy.from_entries(admins),
        recorder,
        max_message_length=max_message_length,
    )
    return dispatcher, recorder


def _command(name: str, *, user_id: int = 999, username: str = "someone", chat_id: int = 1) -> InboundEvent:
    return InboundEvent(
        chat_id=chat_id,
        text=f"/{name}",
        is_command=True,
        command=name,
        user_id=user_id,
        username=username,
    )


def _text(text: str, *, chat_id: int = 1) -> InboundEvent:
    return InboundEvent(chat_id=chat_id, text=text, user_id=999, username="someone")


@pytest.mark.asyncio
async def test_start_and_help_reply_with_fixed_texts() -> None:
    transport = _Transport()
    dispatcher, _ = _dispatcher(transport)

    await dispatcher.dispatch(_command("start"))
    await dispatcher.dispatch(_command("help"))

    assert transport.sent == [(1, WELCOME_TEXT), (1, HELP_TEXT)]


@pytest.mark.asyncio
async def test_stats_refused_for_non_admin_without_touching_recorder() -> None:
    transport = _Transport()
    dispatcher, recorder = _dispatcher(transport)

    await dispatcher.dispatch(_command("stats", user_id=999, username="someone"))

    assert transport.sent == [(1, ADMIN_ONLY_TEXT)]
    assert recorder.stats_calls == 0


@pytest.mark.asyncio
async def test_stats_refused_when_no_admins_configured() -> None:
    transport = _Transport()
    dispatcher, recorder = _dispatcher(transport, admins=())

    await dispatcher.dispatch(_command("stats", user_id=12345))

    assert transport.sent == [(1, ADMIN_ONLY_TEXT)]
    assert recorder.stats_calls == 0


@pytest.mark.asyncio
async def test_stats_for_admin_lists_counts_in_order() -> None:
    transport = _Transport()
    recorder = _Recorder(UsageStats(last_day=5, last_month=40, all_time=120))
    dispatcher, _ = _dispatcher(transport, recorder=recorder, admins=("@boss",))

    await dispatcher.dispatch(_command("stats", user_id=1, username="boss"))

    assert len(transport.sent) == 1
    reply = transport.sent[0][1]
    assert reply == format_stats(UsageStats(last_day=5, last_month=40, all_time=120))
    assert reply.index("`5`") < reply.index("`40`") < reply.index("`120`")


@pytest.mark.asyncio
async def test_stats_store_failure_gets_generic_apology(caplog: pytest.LogCaptureFixture) -> None:
    transport = _Transport()
    recorder = _Recorder(stats_error=UsageLogError("db locked"))
    dispatcher, _ = _dispatcher(transport, recorder=recorder)

    await dispatcher.dispatch(_command("stats", user_id=12345))

    assert transport.sent == [(1, GENERIC_APOLOGY_TEXT)]
    assert "Error handling /stats command" in caplog.text


@pytest.mark.asyncio
async def test_unknown_command_is_ignored() -> None:
    transport = _Transport()
    dispatcher, recorder = _dispatcher(transport)

    await dispatcher.dispatch(_command("frobnicate"))

    assert transport.sent == []
    assert recorder.rows == []


@pytest.mark.asyncio
async def test_empty_text_is_ignored() -> None:
    transport = _Transport()
    dispatcher, recorder = _dispatcher(transport)

    await dispatcher.dispatch(_text("   "))

    assert transport.sent == []
    assert recorder.rows == []


@pytest.mark.asyncio
async def test_registration_gets_report_and_is_logged() -> None:
    transport = _Transport()
    dispatcher, recorder = _dispatcher(transport)

    await dispatcher.dispatch(_text("AB12CDE"))

    assert transport.sent == [(1, "report for AB12CDE")]
    assert recorder.rows == [(1, "alice", "AB12CDE")]


@pytest.mark.asyncio
async def test_upstream_timeout_gets_apology_and_source_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    transport = _Transport()
    dispatcher, recorder = _dispatcher(transport, mot=_Source(error=RequestTimeoutError("timed out")))

    await dispatcher.dispatch(_text("AB12CDE"))

    assert transport.sent == [(1, LOOKUP_APOLOGY_TEXT)]
    assert recorder.rows == []
    assert "MOT API error" in caplog.text
    assert "timed out" in caplog.text


@pytest.mark.asyncio
async def test_long_report_is_sent_in_parts() -> None:
    transport = _Transport()
    report = "\n".join(f"line {i:03d} " + "x" * 40 for i in range(20))
    dispatcher, _ = _dispatcher(transport, formatter=lambda m, v: report, max_message_length=200)

    await dispatcher.dispatch(_text("AB12CDE"))

    assert len(transport.sent) > 1
    assert all(len(text) <= 200 for _, text in transport.sent)
    assert transport.sent[1][1].startswith(f"(Part 2/{len(transport.sent)})")


@pytest.mark.asyncio
async def test_failed_report_send_falls_back_to_apology(caplog: pytest.LogCaptureFixture) -> None:
    transport = _Transport(fail_sends=1)
    dispatcher, _ = _dispatcher(transport)

    await dispatcher.dispatch(_text("AB12CDE"))

    assert transport.sent == [(1, LOOKUP_APOLOGY_TEXT)]
    assert "failed to send message part 1/1" in caplog.text


@pytest.mark.asyncio
async def test_failed_apology_is_only_logged(caplog: pytest.LogCaptureFixture) -> None:
    transport = _Transport(fail_sends=2)
    dispatcher, _ = _dispatcher(transport)

    await dispatcher.dispatch(_text("AB12CDE"))

    assert transport.sent == []
    assert "Error sending error message" in caplog.text


async def _until(predicate: Callable[[], bool]) -> None:
    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.001)

    await asyncio.wait_for(_poll(), timeout=2)


@pytest.mark.asyncio
async def test_run_handles_events_in_order_until_stopped() -> None:
    transport = _Transport()
    dispatcher, _ = _dispatcher(transport)
    stop = asyncio.Event()

    for event in (_command("start"), _text("AB12CDE"), _command("help")):
        transport.queue.put_nowait(event)

    assert dispatcher.state is DispatcherState.IDLE
    run = asyncio.create_task(dispatcher.run(stop))
    await _until(lambda: len(transport.sent) == 3)
    assert dispatcher.state is DispatcherState.RUNNING

    stop.set()
    assert await asyncio.wait_for(run, timeout=2) is DispatcherState.STOPPED
    assert [text for _, text in transport.sent] == [WELCOME_TEXT, "report for AB12CDE", HELP_TEXT]
    assert dispatcher.state is DispatcherState.STOPPED


@pytest.mark.asyncio
async def test_stop_interrupts_slow_lookup() -> None:
    class _Hanging:
        async def fetch(self, registration: str) -> object:
            await asyncio.Event().wait()

    transport = _Transport()
    dispatcher, _ = _dispatcher(transport, mot=_Hanging())  # type: ignore[arg-type]
    stop = asyncio.Event()
    transport.queue.put_nowait(_text("AB12CDE"))

    run = asyncio.create_task(dispatcher.run(stop))
    await asyncio.sleep(0.01)
    stop.set()

    assert await asyncio.wait_for(run, timeout=2) is DispatcherState.STOPPED
    assert transport.sent == []


@pytest.mark.asyncio
async def test_stream_end_waits_for_stop(caplog: pytest.LogCaptureFixture) -> None:
    transport = _Transport()
    dispatcher, _ = _dispatcher(transport)
    stop = asyncio.Event()
    transport.queue.put_nowait(None)

    run = asyncio.create_task(dispatcher.run(stop))
    await _until(lambda: "Update stream ended" in caplog.text)
    assert not run.done()

    stop.set()
    assert await asyncio.wait_for(run, timeout=2) is DispatcherState.STOPPED


@pytest.mark.asyncio
async def test_run_cannot_be_restarted() -> None:
    transport = _Transport()
    dispatcher, _ = _dispatcher(transport)
    stop = asyncio.Event()
    stop.set()

    assert await dispatcher.run(stop) is DispatcherState.STOPPED
    with pytest.raises(RuntimeError):
        await dispatcher.run(stop)
