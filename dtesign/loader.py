"""
Certificate loader — ``{cert_directory}/{nit}.crt`` → validated key material.

Nothing is cached: each call reads the file again and builds a fresh record
and key pair, so concurrent callers share no state.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from .config import DEFAULT_CERT_DIRECTORY, DEFAULT_CERT_EXTENSION
from .errors import ErrorKind, certificate_not_found, invalid_certificate
from .keys import KeyNormalizer, NormalizedKeyPair, Password
from .parser import CertificateParser
from .schema import CertificateRecord
from .validator import CertificateValidator

logger = logging.getLogger(__name__)


class CertificateLoader:
    def __init__(
        self,
        cert_directory: Union[str, Path] = DEFAULT_CERT_DIRECTORY,
        parser: Optional[CertificateParser] = None,
        validator: Optional[CertificateValidator] = None,
        normalizer: Optional[KeyNormalizer] = None,
        extension: str = DEFAULT_CERT_EXTENSION,
    ) -> None:
        self.cert_directory = Path(cert_directory)
        self.extension = extension
        self.parser = parser or CertificateParser()
        self.validator = validator or CertificateValidator()
        self.normalizer = normalizer or KeyNormalizer()

    def certificate_path(self, nit: str) -> Path:
        return self.cert_directory / f"{nit}{self.extension}"

    def read_certificate(self, nit: str) -> CertificateRecord:
        """Parse the certificate for *nit* without validating its state."""
        path = self.certificate_path(nit)
        if not path.is_file():
            raise certificate_not_found(nit)
        try:
            content = path.read_bytes()
        except OSError as e:
            raise invalid_certificate(
                ErrorKind.INVALID_CERTIFICATE_FORMAT, f"Could not read certificate file ({e.strerror})"
            ) from e
        return self.parser.parse(content)

    def load_certificate(self, nit: str, password: Password) -> CertificateRecord:
        """Parse and validate; the key itself is not touched."""
        record = self.read_certificate(nit)
        self.validator.validate(record, password if password is not None else "")
        return record

    def load_signing_key(self, nit: str, password: Password) -> NormalizedKeyPair:
        record = self.load_certificate(nit, password)
        pair = self.normalizer.normalize(record.key_material, password)
        logger.info(f"Loaded signing key for NIT {nit} ({record.schema_variant.value} certificate)")
        return pair

    def load_verification_key(self, nit: str, password: Password = None) -> str:
        """Public key PEM derived from the certificate's private key."""
        record = self.read_certificate(nit)
        if not record.key_material:
            raise invalid_certificate(ErrorKind.MISSING_PRIVATE_KEY, "Private key is missing")
        return self.normalizer.public_key_pem(record.key_material, password)
