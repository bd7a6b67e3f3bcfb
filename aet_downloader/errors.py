"""Exception hierarchy for the AET downloader."""
from typing import Optional


class AetError(Exception):
    """Base class for downloader errors."""


class ConfigError(AetError):
    """Mandatory configuration is missing or malformed. Fatal at startup."""


class AuthError(AetError):
    """The token endpoint did not hand out a token."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        if self.code:
            return f"{self.code}: {self.message}"
        return self.message


class TokenExpiredError(AetError):
    """The access token was rejected mid-run."""

    def __init__(self, month: int, year: int, message: str = "token invalido ou expirado"):
        super().__init__(f"{message} ({month:02d}/{year})")
        self.month = month
        self.year = year


class FetchError(AetError):
    """Transport-level failure: network error, timeout, page crash."""
