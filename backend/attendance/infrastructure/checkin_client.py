"""
HTTP adapter for the attendee-side check-in flow.

Talks to the public endpoints of this API with a shared
`httpx.AsyncClient`, whose cookie jar also carries the attendance cookie
the server sets on a successful check-in.
"""

from typing import Optional

import httpx
from pydantic import ValidationError

from attendance.core.logging import get_logger
from attendance.schemas.attendance import CheckInSubmission
from attendance.schemas.event import PublicEventResponse
from attendance.services.interfaces.checkin import CheckInClient, SubmissionResult

logger = get_logger(__name__)

API_PREFIX = "/api/v1"


class HttpCheckInClient(CheckInClient):
    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def fetch_event(self, event_id: str) -> Optional[PublicEventResponse]:
        try:
            response = await self.client.get(f"{API_PREFIX}/public/events/{event_id}")
        except httpx.HTTPError as e:
            logger.warning("public_event_fetch_failed", event_id=event_id, error=str(e))
            return None

        if response.status_code != 200:
            return None
        try:
            return PublicEventResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.warning("public_event_unreadable", event_id=event_id, error=str(e))
            return None

    async def submit(self, submission: CheckInSubmission) -> SubmissionResult:
        # No client-side timeout policy beyond the transport's own
        try:
            response = await self.client.post(
                f"{API_PREFIX}/attendance", json=submission.model_dump()
            )
        except httpx.HTTPError as e:
            logger.warning("check_in_submit_failed", event_id=submission.event_id, error=str(e))
            return SubmissionResult(
                success=False, message="Network error, please try again", code="server_error"
            )

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.is_success and data.get("success"):
            return SubmissionResult(success=True, message=data.get("message", "Checked in"))

        return SubmissionResult(
            success=False,
            message=data.get("error") or "Failed to check in",
            code=data.get("code"),
        )
