"""Data models for SIAET API responses."""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SiaetStatus(BaseModel):
    """The ``siaet`` status envelope shared by the token and data endpoints."""

    model_config = ConfigDict(extra="allow")

    retorno: Optional[str] = Field(default=None, description="token, erro, ...")
    codigo: Optional[str] = Field(default=None, description="Numeric business code, as a string")
    mensagem: Optional[str] = Field(default=None, description="Token value or error message")

    @field_validator("codigo", mode="before")
    @classmethod
    def _code_as_string(cls, value: Any) -> Optional[str]:
        # The API is not consistent about quoting codes
        if value is None:
            return None
        return str(value)

    @field_validator("retorno", "mensagem", mode="before")
    @classmethod
    def _text_as_string(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value)


class SiaetEnvelope(BaseModel):
    """Top-level response wrapper ``{"siaet": {...}}``."""

    model_config = ConfigDict(extra="allow")

    siaet: SiaetStatus
