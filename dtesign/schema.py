"""
DTE signer records and request/response models — Pydantic v2.

CertificateRecord  — uniform view over both certificate XML schemas
VerificationResult — outcome of a JWS signature check
OperationResult    — response envelope returned by every public operation
SignRequest / VerifyRequest / ExtractRequest — validated operation inputs
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

NIT_LENGTH = 14
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 100

_NIT_PATTERN = re.compile(r"^\d{14}$")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class SchemaVariant(str, Enum):
    LEGACY = "legacy"
    MINISTRY = "ministry"  # <CertificadoMH> issued by the tax authority


class PayloadEncoding(str, Enum):
    PRETTY = "pretty"    # indented, unescaped Unicode and slashes
    COMPACT = "compact"  # RFC 8785 canonical JSON


# ---------------------------------------------------------------------------
# Certificate
# ---------------------------------------------------------------------------

class CertificateRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    active: bool
    verified: bool
    key_material: bytes = Field(repr=False)
    password_hash: Optional[str] = Field(default=None, repr=False)
    schema_variant: SchemaVariant
    nit: Optional[str] = None
    key_id: Optional[str] = None  # Ministry privateKey/clave


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------

class VerificationResult(BaseModel):
    valid: bool
    payload: Any = None
    reason: Optional[str] = None


# ---------------------------------------------------------------------------
# Response envelope
# ---------------------------------------------------------------------------

class OperationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str = ""
    data: Any = None
    error_code: Optional[str] = Field(default=None, alias="errorCode")
    errors: list[str] = Field(default_factory=list)

    def to_dict(self) -> dict:
        """Envelope as a plain dict; success responses omit error fields."""
        if self.success:
            return {"success": True, "message": self.message, "data": self.data}
        return {
            "success": False,
            "message": self.message,
            "errorCode": self.error_code,
            "errors": list(self.errors),
        }


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

def _check_nit(value: str) -> str:
    problems = []
    if len(value) != NIT_LENGTH:
        problems.append(f"NIT must be exactly {NIT_LENGTH} characters long")
    if not _NIT_PATTERN.match(value):
        problems.append("NIT must contain only digits")
    if problems:
        raise ValueError("; ".join(problems))
    return value


class SignRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    nit: str
    password: str = Field(
        alias="passwordPri",
        min_length=MIN_PASSWORD_LENGTH,
        max_length=MAX_PASSWORD_LENGTH,
        repr=False,
    )
    document: Any = Field(alias="dteJson")

    @field_validator("nit")
    @classmethod
    def _nit_format(cls, value: str) -> str:
        return _check_nit(value)

    @field_validator("document")
    @classmethod
    def _document_present(cls, value: Any) -> Any:
        if value is None or value == {} or value == []:
            raise ValueError("DTE JSON cannot be empty")
        return value


class VerifyRequest(BaseModel):
    token: str
    nit: str
    # needed only when the certificate key is encrypted
    password: Optional[str] = Field(default=None, max_length=MAX_PASSWORD_LENGTH, repr=False)

    @field_validator("nit")
    @classmethod
    def _nit_format(cls, value: str) -> str:
        return _check_nit(value)


class ExtractRequest(BaseModel):
    token: str
