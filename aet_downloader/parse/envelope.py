"""Classify SIAET response bodies."""
import logging
import unicodedata
from typing import Any, Optional

from pydantic import ValidationError

from aet_downloader.errors import AuthError
from aet_downloader.fetch.outcomes import ApiFailure, Success
from aet_downloader.parse.models import SiaetEnvelope, SiaetStatus

logger = logging.getLogger(__name__)

TOKEN_INVALID_MESSAGES = ("token invalido", "token expirado")

# "no data for this period": never worth another attempt
TERMINAL_ERROR_CODES = frozenset({"400.005"})


def _fold(text: str) -> str:
    """Lowercase and strip accents so "Token Inválido" matches."""
    normalized = unicodedata.normalize("NFKD", text)
    return "".join(c for c in normalized if not unicodedata.combining(c)).lower().strip()


def is_token_invalid_message(message: Optional[str]) -> bool:
    """Detect the messages the API uses for a rejected token."""
    if not message:
        return False
    folded = _fold(message)
    return any(indicator in folded for indicator in TOKEN_INVALID_MESSAGES)


def is_terminal_code(code: Optional[str]) -> bool:
    return code in TERMINAL_ERROR_CODES


def extract_status(payload: Any) -> Optional[SiaetStatus]:
    """Return the ``siaet`` envelope if the body has one."""
    if not isinstance(payload, dict) or not isinstance(payload.get("siaet"), dict):
        return None
    try:
        return SiaetEnvelope.model_validate(payload).siaet
    except ValidationError as e:
        logger.debug(f"Malformed siaet envelope: {e}")
        return None


def parse_token_response(payload: Any) -> str:
    """
    Extract the access token from a token endpoint body.

    Only ``retorno == "token"`` together with ``codigo == "200"`` counts as
    success; everything else raises AuthError with the upstream code/message.
    """
    status = extract_status(payload)
    if status is None:
        raise AuthError("unexpected token endpoint response")

    if status.retorno == "token" and status.codigo == "200":
        if not status.mensagem:
            raise AuthError("token endpoint returned an empty token", code=status.codigo)
        return status.mensagem

    raise AuthError(status.mensagem or "token request rejected", code=status.codigo)


def classify_data_response(payload: Any) -> Optional[Success | ApiFailure]:
    """
    Classify a data endpoint body.

    Returns Success for a well-formed ``AET`` list (even empty), ApiFailure
    for an error envelope, None when the body has neither shape.
    """
    if isinstance(payload, dict):
        records = payload.get("AET")
        if isinstance(records, list):
            return Success(payload=payload, records=records)

    status = extract_status(payload)
    if status is not None and status.retorno == "erro":
        return ApiFailure(code=status.codigo or "", message=status.mensagem or "")

    return None
