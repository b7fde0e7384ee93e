"""
Secret provider port.

The QR signing key is read once at process start and treated as
read-only afterwards. A provider returning None means the deployment is
misconfigured.
"""

from abc import ABC, abstractmethod
from typing import Optional

from attendance.core.config import Settings


class SecretProvider(ABC):

    @abstractmethod
    def get_qr_secret(self) -> Optional[str]:
        """Return the HMAC key for check-in tokens, or None if unset."""
        pass


class SettingsSecretProvider(SecretProvider):
    """Reads QR_CODE_SECRET from application settings."""

    def __init__(self, settings: Settings):
        self._secret = settings.QR_CODE_SECRET or None

    def get_qr_secret(self) -> Optional[str]:
        return self._secret


class StaticSecretProvider(SecretProvider):
    """Fixed secret, for tests and scripts."""

    def __init__(self, secret: Optional[str]):
        self._secret = secret

    def get_qr_secret(self) -> Optional[str]:
        return self._secret
