"""Tagged results of a monthly data request."""
from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class Success:
    """The API answered with an ``AET`` collection (possibly empty)."""

    payload: Any
    records: list = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.records


@dataclass(frozen=True)
class ApiFailure:
    """Business-level rejection from the data endpoint."""

    code: str
    message: str


@dataclass(frozen=True)
class TransportFailure:
    """Network, timeout or rendering failure after all attempts."""

    message: str


@dataclass(frozen=True)
class TokenInvalid:
    """The access token was rejected. Retrying with it cannot succeed."""

    message: str = "token invalido ou expirado"


ApiOutcome = Union[Success, ApiFailure, TransportFailure, TokenInvalid]
