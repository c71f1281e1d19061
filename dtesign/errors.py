"""
Error taxonomy for the DTE signer.

One exception type, ``DteError``, tagged with an ``ErrorKind``. The error
code reported to callers is derived from the kind, so the same condition
always surfaces with the same code.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    VALIDATION_FAILED = "ValidationFailed"
    CERTIFICATE_NOT_FOUND = "CertificateNotFound"
    INVALID_CERTIFICATE_FORMAT = "InvalidCertificateFormat"
    CERTIFICATE_NOT_ACTIVE = "CertificateNotActive"
    CERTIFICATE_NOT_VERIFIED = "CertificateNotVerified"
    MISSING_PRIVATE_KEY = "MissingPrivateKey"
    PASSWORD_MISMATCH = "PasswordMismatch"
    INVALID_KEY_FORMAT = "InvalidKeyFormat"
    KEY_DECRYPTION_FAILED = "KeyDecryptionFailed"
    PUBLIC_KEY_EXTRACTION_FAILED = "PublicKeyExtractionFailed"
    SIGNING_FAILED = "SigningFailed"
    INVALID_JWT_FORMAT = "InvalidJwtFormat"
    VERIFICATION_FAILED = "VerificationFailed"
    INVALID_SIGNATURE = "InvalidSignature"
    UNEXPECTED = "Unexpected"


# Codes kept compatible with the Ministry signer service responses.
ERROR_CODES: dict[ErrorKind, str] = {
    ErrorKind.VALIDATION_FAILED: "COD_803",
    ErrorKind.CERTIFICATE_NOT_FOUND: "COD_812",
    ErrorKind.INVALID_CERTIFICATE_FORMAT: "COD_813",
    ErrorKind.CERTIFICATE_NOT_ACTIVE: "COD_813",
    ErrorKind.CERTIFICATE_NOT_VERIFIED: "COD_813",
    ErrorKind.MISSING_PRIVATE_KEY: "COD_813",
    ErrorKind.PASSWORD_MISMATCH: "COD_814",
    ErrorKind.SIGNING_FAILED: "COD_815",
    ErrorKind.INVALID_KEY_FORMAT: "COD_816",
    ErrorKind.KEY_DECRYPTION_FAILED: "COD_816",
    ErrorKind.PUBLIC_KEY_EXTRACTION_FAILED: "COD_816",
    ErrorKind.INVALID_JWT_FORMAT: "COD_820",
    ErrorKind.VERIFICATION_FAILED: "COD_820",
    ErrorKind.INVALID_SIGNATURE: "COD_820",
    ErrorKind.UNEXPECTED: "COD_500",
}


class DteError(Exception):
    """Domain error carrying a kind, a human-readable message and details."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        errors: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.errors: list[str] = list(errors or [])

    @property
    def code(self) -> str:
        return ERROR_CODES[self.kind]

    def __repr__(self) -> str:
        return f"DteError({self.kind.value}, {self.message!r})"

    def to_dict(self) -> dict:
        return {
            "success": False,
            "message": self.message,
            "errorCode": self.code,
            "errors": self.errors,
        }


# ---------------------------------------------------------------------------
# Constructors for the common cases
# ---------------------------------------------------------------------------

def certificate_not_found(nit: str) -> DteError:
    return DteError(
        ErrorKind.CERTIFICATE_NOT_FOUND,
        f"Certificate file not found for NIT: {nit}",
        ["Certificate file does not exist"],
    )


def invalid_certificate(kind: ErrorKind, reason: str) -> DteError:
    return DteError(kind, f"Invalid certificate: {reason}", [reason])


def invalid_jwt(reason: str, detail: str = "JWT format error") -> DteError:
    return DteError(ErrorKind.INVALID_JWT_FORMAT, f"Invalid JWT format: {reason}", [detail])
