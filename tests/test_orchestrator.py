from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from motbot.bot.formatter import format_report
from motbot.bot.orchestrator import AggregationOrchestrator
from motbot.config import UsageAttribution
from motbot.exceptions import RequestTimeoutError, UpstreamFetchError, UsageLogError, VehicleNotFoundError
from motbot.models.events import ChatInfo, RegistrationQuery
from motbot.models.mot import MotVehicle
from motbot.models.usage import UsageEvent, UsageStats
from motbot.models.ves import VesVehicle


class _Source:
    """Data source double: returns *record* or raises *error* after *delay* seconds."""

    def __init__(self, record: object = None, *, error: Exception | None = None, delay: float = 0.0) -> None:
        self._record = record
        self._error = error
        self._delay = delay
        self.calls: list[str] = []
        self.cancelled = False
        self.started = asyncio.Event()

    async def fetch(self, registration: str) -> object:
        self.calls.append(registration)
        self.started.set()
        try:
            await asyncio.sleep(self._delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self._error is not None:
            raise self._error
        return self._record


class _Recorder:
    def __init__(self, *, error: Exception | None = None) -> None:
        self.rows: list[tuple[int, str, str, str]] = []
        self._error = error

    async def append(self, user_id: int, username: str, registration: str, response: str) -> UsageEvent:
        if self._error is not None:
            raise self._error
        self.rows.append((user_id, username, registration, response))
        return UsageEvent(
            timestamp=datetime.now(UTC),
            user_id=user_id,
            username=username,
            registration=registration,
            response=response,
        )

    async def stats(self) -> UsageStats:
        return UsageStats(all_time=len(self.rows))


class _Identity:
    def __init__(self, chat: ChatInfo | None = None, *, error: Exception | None = None) -> None:
        self._chat = chat
        self._error = error
        self.calls: list[int] = []

    async def resolve_identity(self, chat_id: int) -> ChatInfo:
        self.calls.append(chat_id)
        if self._error is not None:
            raise self._error
        assert self._chat is not None
        return self._chat


_MOT = MotVehicle(registration="AB12CDE", make="FORD", model="FOCUS")
_VES = VesVehicle(registration_number="AB12CDE", tax_status="Taxed", wheelplan="2 AXLE RIGID BODY")


def _query(chat_id: int = 42, user_id: int | None = 42, sender_label: str = "alice") -> RegistrationQuery:
    return RegistrationQuery(registration=" AB12CDE ", chat_id=chat_id, user_id=user_id, sender_label=sender_label)


def _formatter(mot: MotVehicle, ves: VesVehicle) -> str:
    return f"{mot.registration}|{ves.tax_status}"


@pytest.mark.asyncio
async def test_lookup_returns_report_and_logs_usage() -> None:
    recorder = _Recorder()
    identity = _Identity(ChatInfo(id=42, type="private", username="alice"))
    orchestrator = AggregationOrchestrator(_Source(_MOT), _Source(_VES), recorder, identity, formatter=_formatter)

    report = await orchestrator.lookup(_query())

    assert report == "AB12CDE|Taxed"
    assert recorder.rows == [(42, "alice", "AB12CDE", "AB12CDE|Taxed")]


@pytest.mark.asyncio
async def test_both_sources_get_the_stripped_registration() -> None:
    mot, ves = _Source(_MOT), _Source(_VES)
    orchestrator = AggregationOrchestrator(mot, ves, _Recorder(), _Identity(ChatInfo(id=42)), formatter=_formatter)

    await orchestrator.lookup(_query())

    assert mot.calls == ["AB12CDE"]
    assert ves.calls == ["AB12CDE"]


@pytest.mark.asyncio
async def test_fetches_run_concurrently() -> None:
    # Each source waits until the other has started; sequential fetching would deadlock.
    mot_started = asyncio.Event()
    ves_started = asyncio.Event()

    class _Waiting:
        def __init__(self, mine: asyncio.Event, other: asyncio.Event, record: object) -> None:
            self._mine, self._other, self._record = mine, other, record

        async def fetch(self, registration: str) -> object:
            self._mine.set()
            await self._other.wait()
            return self._record

    orchestrator = AggregationOrchestrator(
        _Waiting(mot_started, ves_started, _MOT),
        _Waiting(ves_started, mot_started, _VES),
        _Recorder(),
        _Identity(ChatInfo(id=42)),
        formatter=_formatter,
    )

    report = await asyncio.wait_for(orchestrator.lookup(_query()), timeout=1)
    assert report == "AB12CDE|Taxed"


@pytest.mark.asyncio
async def test_mot_failure_first_is_tagged_and_cancels_ves() -> None:
    cause = VehicleNotFoundError("HTTP 404", status_code=404)
    mot = _Source(error=cause)
    ves = _Source(_VES, delay=10)
    recorder = _Recorder()
    orchestrator = AggregationOrchestrator(mot, ves, recorder, _Identity(ChatInfo(id=42)), formatter=_formatter)

    with pytest.raises(UpstreamFetchError) as exc_info:
        await orchestrator.lookup(_query())

    assert exc_info.value.source == "MOT"
    assert exc_info.value.__cause__ is cause
    assert ves.cancelled
    assert recorder.rows == []


@pytest.mark.asyncio
async def test_ves_failure_first_is_tagged_and_cancels_mot() -> None:
    cause = RequestTimeoutError("timed out")
    mot = _Source(_MOT, delay=10)
    ves = _Source(error=cause)
    recorder = _Recorder()
    orchestrator = AggregationOrchestrator(mot, ves, recorder, _Identity(ChatInfo(id=42)), formatter=_formatter)

    with pytest.raises(UpstreamFetchError) as exc_info:
        await orchestrator.lookup(_query())

    assert exc_info.value.source == "VES"
    assert exc_info.value.__cause__ is cause
    assert mot.cancelled
    assert recorder.rows == []


@pytest.mark.asyncio
async def test_ves_failure_after_mot_succeeded_still_fails() -> None:
    orchestrator = AggregationOrchestrator(
        _Source(_MOT),
        _Source(error=RequestTimeoutError("timed out"), delay=0.01),
        _Recorder(),
        _Identity(ChatInfo(id=42)),
        formatter=_formatter,
    )

    with pytest.raises(UpstreamFetchError) as exc_info:
        await orchestrator.lookup(_query())
    assert exc_info.value.source == "VES"


@pytest.mark.asyncio
async def test_mot_failure_after_ves_succeeded_still_fails() -> None:
    cause = VehicleNotFoundError("HTTP 404", status_code=404)
    recorder = _Recorder()
    orchestrator = AggregationOrchestrator(
        _Source(error=cause, delay=0.01),
        _Source(_VES),
        recorder,
        _Identity(ChatInfo(id=42)),
        formatter=_formatter,
    )

    with pytest.raises(UpstreamFetchError) as exc_info:
        await orchestrator.lookup(_query())

    assert exc_info.value.source == "MOT"
    assert exc_info.value.__cause__ is cause
    assert recorder.rows == []


@pytest.mark.asyncio
async def test_lookup_renders_full_report() -> None:
    mot = MotVehicle.model_validate(
        {
            "registration": "AB12CDE",
            "make": "FORD",
            "model": "FOCUS",
            "motTests": [{"completedDate": "2023-01-01T00:00:00Z", "testResult": "PASSED", "defects": []}],
        }
    )
    ves = VesVehicle.model_validate(
        {"registrationNumber": "AB12CDE", "taxStatus": "Taxed", "wheelplan": "2 AXLE RIGID BODY"}
    )
    recorder = _Recorder()
    orchestrator = AggregationOrchestrator(
        _Source(mot), _Source(ves), recorder, _Identity(ChatInfo(id=42, username="alice"))
    )

    report = await orchestrator.lookup(_query())

    assert report == format_report(mot, ves)
    for fragment in ("`FORD`", "`FOCUS`", "`Taxed`", "`2 AXLE RIGID BODY`", "`01.01.2023`", "`PASSED`"):
        assert report.count(fragment) == 1, fragment
    assert "Defects" not in report
    assert recorder.rows == [(42, "alice", "AB12CDE", report)]


@pytest.mark.asyncio
async def test_usage_log_failure_does_not_change_reply(caplog: pytest.LogCaptureFixture) -> None:
    orchestrator = AggregationOrchestrator(
        _Source(_MOT),
        _Source(_VES),
        _Recorder(error=UsageLogError("disk full")),
        _Identity(ChatInfo(id=42, username="alice")),
        formatter=_formatter,
    )

    report = await orchestrator.lookup(_query())

    assert report == "AB12CDE|Taxed"
    assert "Failed to log request" in caplog.text


@pytest.mark.asyncio
async def test_group_chat_is_logged_under_synthetic_label() -> None:
    recorder = _Recorder()
    identity = _Identity(ChatInfo(id=-100123, type="supergroup", title="Garage"))
    orchestrator = AggregationOrchestrator(_Source(_MOT), _Source(_VES), recorder, identity, formatter=_formatter)

    await orchestrator.lookup(_query(chat_id=-100123, user_id=7, sender_label="bob"))

    assert recorder.rows[0][:2] == (-100123, "group_chat_-100123")


@pytest.mark.asyncio
async def test_private_chat_uses_full_name_without_handle() -> None:
    recorder = _Recorder()
    identity = _Identity(ChatInfo(id=42, type="private", first_name="Alice", last_name="Smith"))
    orchestrator = AggregationOrchestrator(_Source(_MOT), _Source(_VES), recorder, identity, formatter=_formatter)

    await orchestrator.lookup(_query(sender_label=""))

    assert recorder.rows[0][:2] == (42, "Alice Smith")


@pytest.mark.asyncio
async def test_identity_failure_logs_unknown() -> None:
    recorder = _Recorder()
    identity = _Identity(error=RuntimeError("getChat failed"))
    orchestrator = AggregationOrchestrator(_Source(_MOT), _Source(_VES), recorder, identity, formatter=_formatter)

    report = await orchestrator.lookup(_query())

    assert report == "AB12CDE|Taxed"
    assert recorder.rows[0][:2] == (42, "unknown")


@pytest.mark.asyncio
async def test_sender_attribution_skips_identity_lookup() -> None:
    recorder = _Recorder()
    identity = _Identity(ChatInfo(id=-100123, type="group"))
    orchestrator = AggregationOrchestrator(
        _Source(_MOT),
        _Source(_VES),
        recorder,
        identity,
        attribution=UsageAttribution.SENDER,
        formatter=_formatter,
    )

    await orchestrator.lookup(_query(chat_id=-100123, user_id=7, sender_label="bob"))

    assert identity.calls == []
    assert recorder.rows[0][:2] == (7, "bob")
