"""
Rotating check-in tokens.

Token format: "<event_id>.<issued_at_ms>.<signature>" where the signature
is base64url (unpadded) HMAC-SHA256 over "<event_id>.<issued_at_ms>".

Tokens are never stored. Verification is a pure function of the token,
the current time and the shared secret: a short TTL plus binding to one
event is what stops a screenshot of the displayed QR code from being
passed around. Expiry is the only invalidation mechanism.
"""

import base64
import enum
import hashlib
import hmac
import time
from dataclasses import dataclass
from typing import Callable, Optional

from attendance.services.interfaces.secrets import SecretProvider

DEFAULT_TTL_MS = 60 * 1000
DEFAULT_CLOCK_SKEW_MS = 15 * 1000


class QrSecretNotConfiguredError(RuntimeError):
    """Raised when a token is issued without a configured secret."""


class TokenRejection(str, enum.Enum):
    MISSING = "missing"
    SECRET_MISSING = "secret_missing"
    MALFORMED = "malformed"
    EVENT_MISMATCH = "event_mismatch"
    INVALID_SIGNATURE = "invalid_signature"
    FROM_FUTURE = "from_future"
    EXPIRED = "expired"


@dataclass(frozen=True)
class TokenVerification:
    valid: bool
    reason: Optional[TokenRejection] = None

    @classmethod
    def ok(cls) -> "TokenVerification":
        return cls(valid=True)

    @classmethod
    def reject(cls, reason: TokenRejection) -> "TokenVerification":
        return cls(valid=False, reason=reason)


def current_time_ms() -> int:
    return int(time.time() * 1000)


def _sign(payload: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


class QrTokenService:
    """Issues and verifies HMAC-signed, time-boxed check-in tokens."""

    def __init__(
        self,
        secrets: SecretProvider,
        ttl_ms: int = DEFAULT_TTL_MS,
        clock_skew_ms: int = DEFAULT_CLOCK_SKEW_MS,
        clock: Callable[[], int] = current_time_ms,
    ):
        self._secrets = secrets
        self.ttl_ms = ttl_ms if ttl_ms > 0 else DEFAULT_TTL_MS
        self.clock_skew_ms = clock_skew_ms
        self._clock = clock

    def issue(self, event_id: str, issued_at_ms: Optional[int] = None) -> str:
        secret = self._secrets.get_qr_secret()
        if not secret:
            raise QrSecretNotConfiguredError("QR token secret not configured")

        if issued_at_ms is None:
            issued_at_ms = self._clock()
        payload = f"{event_id}.{issued_at_ms}"
        return f"{payload}.{_sign(payload, secret)}"

    def now_ms(self) -> int:
        return self._clock()

    def expires_at_ms(self, issued_at_ms: int) -> int:
        return issued_at_ms + self.ttl_ms

    def verify(
        self,
        event_id: str,
        token: Optional[str],
        now_ms: Optional[int] = None,
    ) -> TokenVerification:
        if not token:
            return TokenVerification.reject(TokenRejection.MISSING)

        secret = self._secrets.get_qr_secret()
        if not secret:
            return TokenVerification.reject(TokenRejection.SECRET_MISSING)

        parts = token.split(".")
        if len(parts) != 3:
            return TokenVerification.reject(TokenRejection.MALFORMED)

        token_event_id, issued_at_raw, signature = parts
        if token_event_id != event_id:
            return TokenVerification.reject(TokenRejection.EVENT_MISMATCH)

        if not (issued_at_raw.isascii() and issued_at_raw.isdigit()):
            return TokenVerification.reject(TokenRejection.MALFORMED)
        issued_at_ms = int(issued_at_raw)

        expected = _sign(f"{token_event_id}.{issued_at_ms}", secret)
        if len(signature) != len(expected):
            return TokenVerification.reject(TokenRejection.INVALID_SIGNATURE)
        if not hmac.compare_digest(signature.encode("utf-8"), expected.encode("ascii")):
            return TokenVerification.reject(TokenRejection.INVALID_SIGNATURE)

        now_ms = self._clock() if now_ms is None else now_ms
        if issued_at_ms - now_ms > self.clock_skew_ms:
            return TokenVerification.reject(TokenRejection.FROM_FUTURE)
        if now_ms - issued_at_ms > self.ttl_ms:
            return TokenVerification.reject(TokenRejection.EXPIRED)

        return TokenVerification.ok()
