"""
Unauthenticated endpoints used by the attendee check-in page.
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from attendance.api.deps import get_attendee_repository, get_event_repository, get_qr_token_service
from attendance.schemas.attendance import AttendeeResponse, CheckInError, CheckInSubmission, CheckInSuccess
from attendance.schemas.event import PublicEventResponse
from attendance.services.interfaces.checkin import attendance_cookie_name
from attendance.services.interfaces.repositories import AttendeeRepository, EventRepository
from attendance.services.qr_tokens import QrTokenService
from attendance.services.attendance_service import check_in
from attendance.services.event_service import get_public_event
from attendance.core.config import get_settings

router = APIRouter(tags=["Public"])
settings = get_settings()


@router.get("/public/events/{event_id}", response_model=PublicEventResponse)
async def public_event_endpoint(
    event_id: str,
    events: EventRepository = Depends(get_event_repository),
):
    """Event details for the check-in page, with the current registration status."""
    return await get_public_event(events, event_id)


@router.post(
    "/attendance",
    response_model=CheckInSuccess,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": CheckInError}, 403: {"model": CheckInError}, 404: {"model": CheckInError}},
)
async def check_in_endpoint(
    submission: CheckInSubmission,
    request: Request,
    events: EventRepository = Depends(get_event_repository),
    attendees: AttendeeRepository = Depends(get_attendee_repository),
    qr_tokens: QrTokenService = Depends(get_qr_token_service),
):
    """
    Check an attendee in.

    On success the response sets the `attended_<event_id>` cookie, which
    later submissions for the same event from this browser are refused on.
    """
    cookie_name = attendance_cookie_name(submission.event_id)
    attendee = await check_in(
        events,
        attendees,
        qr_tokens,
        submission,
        already_checked_in=request.cookies.get(cookie_name) == "true",
        user_agent=request.headers.get("user-agent"),
    )

    body = CheckInSuccess(
        message="Successfully checked in!",
        attendee=AttendeeResponse.model_validate(attendee),
    )
    response = JSONResponse(status_code=status.HTTP_201_CREATED, content=body.model_dump(mode="json"))
    response.set_cookie(
        cookie_name,
        "true",
        max_age=settings.ATTENDANCE_MARKER_TTL_HOURS * 3600,
        path="/",
        samesite="lax",
        secure=settings.ENVIRONMENT == "production",
    )
    return response
