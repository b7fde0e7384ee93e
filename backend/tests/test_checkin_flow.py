"""
Tests for the attendee check-in flow, driven through fake ports.
"""

import asyncio

import httpx
import pytest
from datetime import datetime, timedelta, timezone
from typing import Optional

from attendance.schemas.attendance import CheckInSubmission
from attendance.schemas.event import PublicEventResponse
from attendance.services.checkin_flow import CheckInFlow, FlowState, FlowTransitionError
from attendance.services.geolocation import Coordinates
from attendance.services.interfaces.checkin import (
    CheckInClient,
    GeolocationErrorCode,
    GeolocationFailure,
    GeolocationProvider,
    CookieAttendanceMarkerStore,
    InMemoryAttendanceMarkerStore,
    SubmissionResult,
)
from attendance.services.interfaces.secrets import StaticSecretProvider
from attendance.services.qr_tokens import QrTokenService

EVENT_ID = "evt-1"
CENTER = Coordinates(40.7128, -74.0060)
T0 = datetime(2025, 6, 2, 17, 0, tzinfo=timezone.utc)


def offset_north(meters: float) -> Coordinates:
    return Coordinates(CENTER.lat + meters / 111_195, CENTER.lng)


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def ms(self) -> int:
        return int(self.now.timestamp() * 1000)


class FakeGeolocation(GeolocationProvider):
    def __init__(self, result):
        self.result = result
        self.calls = []

    async def get_current_position(self, *, high_accuracy=True, timeout_ms=10_000, maximum_age_ms=0):
        self.calls.append(
            {"high_accuracy": high_accuracy, "timeout_ms": timeout_ms, "maximum_age_ms": maximum_age_ms}
        )
        return self.result


class FakeCheckInClient(CheckInClient):
    """Serves one event and verifies submitted tokens like the server does."""

    def __init__(self, event: Optional[PublicEventResponse], tokens: QrTokenService):
        self.event = event
        self.tokens = tokens
        self.submissions: list[CheckInSubmission] = []

    async def fetch_event(self, event_id: str) -> Optional[PublicEventResponse]:
        return self.event if self.event and self.event.id == event_id else None

    async def submit(self, submission: CheckInSubmission) -> SubmissionResult:
        self.submissions.append(submission)
        if not self.tokens.verify(submission.event_id, submission.qr_token).valid:
            return SubmissionResult(
                success=False, message="Please scan the QR code again.", code="qr_invalid"
            )
        return SubmissionResult(success=True, message="Successfully checked in!")


def make_event(start: datetime, **overrides) -> PublicEventResponse:
    fields = dict(
        id=EVENT_ID,
        title="Community Cleanup",
        start_time=start,
        end_time=start + timedelta(hours=2),
        location_address="Battery Park",
        location_lat=CENTER.lat,
        location_lng=CENTER.lng,
        location_radius_meters=50,
        registration_window_before_minutes=30,
        registration_window_after_minutes=30,
        is_closed=False,
    )
    fields.update(overrides)
    return PublicEventResponse(**fields)


@pytest.fixture
def clock():
    return Clock(T0)


@pytest.fixture
def tokens(clock):
    return QrTokenService(StaticSecretProvider("flow-secret"), clock=clock.ms)


@pytest.fixture
def markers(clock):
    return InMemoryAttendanceMarkerStore(clock=clock)


def make_flow(event, tokens, markers, clock, *, qr_token=None, position=None):
    return CheckInFlow(
        EVENT_ID,
        client=FakeCheckInClient(event, tokens),
        geolocation=FakeGeolocation(position or offset_north(10)),
        markers=markers,
        qr_token=qr_token,
        clock=clock,
    )


# --- status routing ---

@pytest.mark.asyncio
async def test_unknown_event_is_not_found(tokens, markers, clock):
    flow = make_flow(None, tokens, markers, clock)
    assert await flow.load() == FlowState.NOT_FOUND
    assert flow.is_terminal


@pytest.mark.asyncio
async def test_marker_wins_over_everything(tokens, markers, clock):
    markers.mark(EVENT_ID)
    flow = make_flow(make_event(T0, is_closed=True), tokens, markers, clock)
    assert await flow.load() == FlowState.ALREADY_CHECKED_IN


@pytest.mark.asyncio
async def test_manually_closed_event(tokens, markers, clock):
    flow = make_flow(make_event(T0, is_closed=True), tokens, markers, clock, qr_token="x")
    assert await flow.load() == FlowState.CLOSED


@pytest.mark.asyncio
async def test_window_already_over(tokens, markers, clock):
    flow = make_flow(make_event(T0 - timedelta(hours=3)), tokens, markers, clock)
    assert await flow.load() == FlowState.CLOSED


@pytest.mark.asyncio
async def test_open_without_token_requires_qr(tokens, markers, clock):
    flow = make_flow(make_event(T0), tokens, markers, clock)
    assert await flow.load() == FlowState.QR_REQUIRED
    assert not flow.is_terminal


@pytest.mark.asyncio
async def test_open_with_token_verifies_location(tokens, markers, clock):
    flow = make_flow(make_event(T0), tokens, markers, clock, qr_token=tokens.issue(EVENT_ID))
    assert await flow.load() == FlowState.LOCATION_VERIFICATION


@pytest.mark.asyncio
async def test_expired_marker_no_longer_blocks(tokens, markers, clock):
    markers.mark(EVENT_ID)
    clock.now = T0 + timedelta(hours=24)
    flow = make_flow(make_event(clock.now), tokens, markers, clock)
    assert await flow.load() == FlowState.QR_REQUIRED


def test_cookie_marker_carries_expiry(clock):
    cookies = httpx.Cookies()
    store = CookieAttendanceMarkerStore(cookies, clock=clock)
    store.mark(EVENT_ID)

    (cookie,) = list(cookies.jar)
    assert cookie.name == f"attended_{EVENT_ID}"
    assert cookie.expires == int((T0 + timedelta(hours=24)).timestamp())
    assert store.has_marker(EVENT_ID)

    clock.now = T0 + timedelta(hours=24, seconds=1)
    assert not store.has_marker(EVENT_ID)


# --- countdown ---

@pytest.mark.asyncio
async def test_countdown_reports_time_remaining(tokens, markers, clock):
    flow = make_flow(make_event(T0 + timedelta(minutes=35)), tokens, markers, clock)
    assert await flow.load() == FlowState.COUNTDOWN
    assert flow.countdown_target == T0 + timedelta(minutes=5)
    assert flow.countdown_remaining() == timedelta(minutes=5)
    assert flow.countdown_label() == "5 minutes"


@pytest.mark.asyncio
async def test_wait_for_registration_sleeps_until_window_opens(tokens, markers, clock):
    flow = make_flow(
        make_event(T0 + timedelta(minutes=35)), tokens, markers, clock, qr_token=tokens.issue(EVENT_ID)
    )
    await flow.load()
    slept = []

    async def fake_sleep(seconds):
        slept.append(seconds)
        clock.now += timedelta(seconds=seconds + 1)

    assert await flow.wait_for_registration(sleep=fake_sleep) == FlowState.LOCATION_VERIFICATION
    assert slept == [300.0]


@pytest.mark.asyncio
async def test_countdown_only_from_countdown_state(tokens, markers, clock):
    flow = make_flow(make_event(T0), tokens, markers, clock)
    await flow.load()
    with pytest.raises(FlowTransitionError):
        flow.on_countdown_complete()


# --- location verification ---

@pytest.mark.asyncio
async def test_geolocation_request_options(tokens, markers, clock):
    flow = make_flow(make_event(T0), tokens, markers, clock, qr_token=tokens.issue(EVENT_ID))
    await flow.load()
    await flow.verify_location()

    assert flow._geolocation.calls == [
        {"high_accuracy": True, "timeout_ms": 10_000, "maximum_age_ms": 0}
    ]



@pytest.mark.asyncio
async def test_overlapping_location_requests_reach_provider_once(tokens, markers, clock):
    released = asyncio.Event()

    class SlowGeolocation(FakeGeolocation):
        async def get_current_position(self, **options):
            self.calls.append(options)
            await released.wait()
            return self.result

    geolocation = SlowGeolocation(offset_north(10))
    flow = CheckInFlow(
        EVENT_ID,
        client=FakeCheckInClient(make_event(T0), tokens),
        geolocation=geolocation,
        markers=markers,
        qr_token=tokens.issue(EVENT_ID),
        clock=clock,
    )
    await flow.load()

    first = asyncio.create_task(flow.verify_location())
    await asyncio.sleep(0)
    assert flow.locating
    assert await flow.verify_location() == FlowState.LOCATION_VERIFICATION

    released.set()
    assert await first == FlowState.CHECK_IN_FORM
    assert len(geolocation.calls) == 1
    assert not flow.locating

@pytest.mark.asyncio
async def test_out_of_radius(tokens, markers, clock):
    flow = make_flow(
        make_event(T0), tokens, markers, clock,
        qr_token=tokens.issue(EVENT_ID), position=offset_north(120),
    )
    await flow.load()

    assert await flow.verify_location() == FlowState.ERROR
    assert flow.error_code == "out_of_radius"
    assert "120m away" in flow.error_message
    assert "within 50m" in flow.error_message


@pytest.mark.parametrize(
    "code,fragment",
    [
        (GeolocationErrorCode.PERMISSION_DENIED, "permission denied"),
        (GeolocationErrorCode.UNAVAILABLE, "unavailable"),
        (GeolocationErrorCode.TIMEOUT, "timed out"),
    ],
)
@pytest.mark.asyncio
async def test_geolocation_failures_are_distinguished(tokens, markers, clock, code, fragment):
    flow = make_flow(
        make_event(T0), tokens, markers, clock,
        qr_token=tokens.issue(EVENT_ID), position=GeolocationFailure(code),
    )
    await flow.load()

    assert await flow.verify_location() == FlowState.ERROR
    assert flow.error_code == code.value
    assert fragment in flow.error_message.lower()


@pytest.mark.asyncio
async def test_provider_message_is_kept(tokens, markers, clock):
    failure = GeolocationFailure(GeolocationErrorCode.UNAVAILABLE, "GPS is off")
    flow = make_flow(
        make_event(T0), tokens, markers, clock, qr_token=tokens.issue(EVENT_ID), position=failure
    )
    await flow.load()
    await flow.verify_location()
    assert flow.error_message == "GPS is off"


@pytest.mark.asyncio
async def test_retry_after_error(tokens, markers, clock):
    flow = make_flow(
        make_event(T0), tokens, markers, clock,
        qr_token=tokens.issue(EVENT_ID), position=GeolocationFailure(GeolocationErrorCode.TIMEOUT),
    )
    await flow.load()
    await flow.verify_location()

    assert flow.retry() == FlowState.LOCATION_VERIFICATION
    assert flow.error_message == ""
    assert flow.error_code is None


# --- submission ---

@pytest.mark.asyncio
async def test_expired_token_rejected_on_submit(tokens, markers, clock):
    flow = make_flow(make_event(T0), tokens, markers, clock, qr_token=tokens.issue(EVENT_ID))
    await flow.load()
    await flow.verify_location()

    clock.now += timedelta(minutes=2)
    assert await flow.submit("Ada Lovelace", "ada@example.com") == FlowState.ERROR
    assert flow.error_code == "qr_invalid"
    assert not markers.has_marker(EVENT_ID)


@pytest.mark.asyncio
async def test_submit_requires_form_state(tokens, markers, clock):
    flow = make_flow(make_event(T0), tokens, markers, clock, qr_token=tokens.issue(EVENT_ID))
    await flow.load()
    with pytest.raises(FlowTransitionError):
        await flow.submit("Ada Lovelace", "ada@example.com")


@pytest.mark.asyncio
async def test_submission_carries_verified_coordinates(tokens, markers, clock):
    token = tokens.issue(EVENT_ID)
    flow = make_flow(make_event(T0), tokens, markers, clock, qr_token=token, position=offset_north(20))
    await flow.load()
    await flow.verify_location()
    await flow.submit("Ada Lovelace", "ada@example.com")

    submission = flow._client.submissions[0]
    assert submission.qr_token == token
    assert submission.lat == pytest.approx(offset_north(20).lat)
    assert submission.lng == CENTER.lng


# --- end to end ---

@pytest.mark.asyncio
async def test_full_check_in_journey(tokens, markers, clock):
    event = make_event(T0 + timedelta(minutes=35))

    # Window opens in 5 minutes
    flow = make_flow(event, tokens, markers, clock)
    assert await flow.load() == FlowState.COUNTDOWN

    # One second after the window opens, still no token in the URL
    clock.now = T0 + timedelta(minutes=5, seconds=1)
    assert flow.on_countdown_complete() == FlowState.QR_REQUIRED

    # Attendee scans the displayed code
    flow = make_flow(event, tokens, markers, clock, qr_token=tokens.issue(EVENT_ID), position=offset_north(40))
    assert await flow.load() == FlowState.LOCATION_VERIFICATION
    assert await flow.verify_location() == FlowState.CHECK_IN_FORM

    assert await flow.submit("Grace Hopper", "grace@example.com") == FlowState.SUCCESS
    assert markers.has_marker(EVENT_ID)

    # Reloading the page right after
    reloaded = make_flow(event, tokens, markers, clock, qr_token=tokens.issue(EVENT_ID))
    assert await reloaded.load() == FlowState.ALREADY_CHECKED_IN
