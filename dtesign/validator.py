"""Certificate state checks applied before a signing key is released."""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Union

from .errors import DteError, ErrorKind, invalid_certificate
from .schema import CertificateRecord, SchemaVariant
from .secret import SecretBytes

logger = logging.getLogger(__name__)


def hash_password(password: Union[str, bytes, SecretBytes]) -> str:
    """SHA-512 hex digest, the format stored in Legacy ``<passwordHash>``."""
    if isinstance(password, SecretBytes):
        password = password.reveal()
    elif isinstance(password, str):
        password = password.encode("utf-8")
    return hashlib.sha512(password).hexdigest()


class CertificateValidator:
    """
    Enforces: active, verified, private key present, password match.

    The password check only applies to Legacy certificates. Ministry
    certificates carry no password hash; a wrong password there surfaces
    later, when the private key fails to decrypt.
    """

    def validate(self, record: CertificateRecord, password: Union[str, bytes, SecretBytes]) -> None:
        self._check_status(record)
        self._check_private_key(record)
        if record.schema_variant is SchemaVariant.LEGACY:
            self._check_password(record, password)

    def _check_status(self, record: CertificateRecord) -> None:
        if not record.active:
            raise invalid_certificate(ErrorKind.CERTIFICATE_NOT_ACTIVE, "Certificate is not active")
        if not record.verified:
            raise invalid_certificate(ErrorKind.CERTIFICATE_NOT_VERIFIED, "Certificate is not verified")

    def _check_private_key(self, record: CertificateRecord) -> None:
        if not record.key_material or not record.key_material.strip():
            raise invalid_certificate(ErrorKind.MISSING_PRIVATE_KEY, "Private key is missing")

    def _check_password(self, record: CertificateRecord, password) -> None:
        if not record.password_hash:
            raise DteError(
                ErrorKind.PASSWORD_MISMATCH,
                "Certificate password does not match",
                ["Password hash is missing from certificate"],
            )
        supplied = hash_password(password).encode("ascii")
        stored = record.password_hash.strip().lower().encode("utf-8")
        if not hmac.compare_digest(supplied, stored):
            logger.warning(f"Password mismatch for certificate nit={record.nit}")
            raise DteError(
                ErrorKind.PASSWORD_MISMATCH,
                "Certificate password does not match",
                ["Password hash mismatch"],
            )
