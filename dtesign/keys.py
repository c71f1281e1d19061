"""
Key normalization.

Certificate key material arrives either as PEM text or as base64-encoded
PKCS#8 DER, optionally password-encrypted. ``KeyNormalizer`` turns it into
loaded ``cryptography`` key objects plus their PEM forms.

Password handling: when a password is supplied it is tried first and, if
the key cannot be loaded with it, loading is retried without a password.
Only when both attempts fail is the key considered undecryptable.
"""

from __future__ import annotations

import binascii
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.types import (
    PrivateKeyTypes,
    PublicKeyTypes,
)
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
    load_der_private_key,
    load_pem_private_key,
)

from .encoding import b64_decode_strict, has_pem_markers, pem_wrap
from .errors import DteError, ErrorKind
from .secret import SecretBytes

logger = logging.getLogger(__name__)

Password = Union[SecretBytes, str, bytes, None]
KeyMaterial = Union[bytes, str]


@dataclass
class NormalizedKeyPair:
    """Loaded key pair for one sign/verify call. Use as a context manager."""
    private_key: Optional[PrivateKeyTypes]
    public_key: PublicKeyTypes
    public_key_pem: str
    private_key_pem: Optional[SecretBytes] = None

    def __enter__(self) -> "NormalizedKeyPair":
        return self

    def __exit__(self, *exc) -> None:
        self.discard()

    def discard(self) -> None:
        if self.private_key_pem is not None:
            self.private_key_pem.wipe()
        self.private_key = None


def _password_bytes(password: Password) -> Optional[bytes]:
    if password is None:
        return None
    if isinstance(password, SecretBytes):
        return password.reveal() if password else None
    if isinstance(password, str):
        password = password.encode("utf-8")
    return password or None


def _as_text(key_material: KeyMaterial) -> str:
    if isinstance(key_material, str):
        return key_material
    try:
        return key_material.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DteError(
            ErrorKind.INVALID_KEY_FORMAT,
            "Invalid key format: key material is not text",
            ["Key material must be PEM or base64 text"],
        ) from e


def _decode_der(text: str) -> bytes:
    try:
        return b64_decode_strict(text)
    except (binascii.Error, ValueError) as e:
        raise DteError(
            ErrorKind.INVALID_KEY_FORMAT,
            f"Invalid key format: base64 decoding failed ({e})",
            ["Private key is neither PEM nor valid base64"],
        ) from e


class KeyNormalizer:
    """Converts certificate key material into usable signing/verification keys."""

    def to_pem(self, key_material: KeyMaterial) -> str:
        """PEM text for *key_material*; PEM input is returned unmodified."""
        text = _as_text(key_material)
        if has_pem_markers(text):
            return text
        return pem_wrap(_decode_der(text))

    def load_private_key(self, key_material: KeyMaterial, password: Password = None) -> PrivateKeyTypes:
        loader = self._loader(key_material)
        secret = _password_bytes(password)
        attempts = [secret, None] if secret else [None]

        failures: list[str] = []
        for candidate in attempts:
            try:
                key = loader(candidate)
            except (ValueError, TypeError, UnsupportedAlgorithm) as e:
                failures.append(str(e))
                continue
            if secret and candidate is None:
                logger.warning(
                    "Private key rejected the supplied password; loaded it without a password"
                )
            return key

        raise DteError(
            ErrorKind.KEY_DECRYPTION_FAILED,
            "Failed to decrypt private key",
            failures,
        )

    def normalize(self, key_material: KeyMaterial, password: Password = None) -> NormalizedKeyPair:
        private_key = self.load_private_key(key_material, password)
        public_key, public_pem = self._public_from_private(private_key)
        try:
            private_pem = private_key.private_bytes(
                Encoding.PEM, PrivateFormat.PKCS8, NoEncryption()
            )
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise DteError(
                ErrorKind.INVALID_KEY_FORMAT,
                f"Invalid key format: cannot serialize private key ({e})",
            ) from e

        return NormalizedKeyPair(
            private_key=private_key,
            public_key=public_key,
            public_key_pem=public_pem,
            private_key_pem=SecretBytes(private_pem),
        )

    def public_key_pem(self, key_material: KeyMaterial, password: Password = None) -> str:
        with self.normalize(key_material, password) as pair:
            return pair.public_key_pem

    # ── internals ───────────────────────────────────────────────────────────

    def _loader(self, key_material: KeyMaterial) -> Callable[[Optional[bytes]], PrivateKeyTypes]:
        text = _as_text(key_material)
        if has_pem_markers(text):
            pem = text.strip().encode("utf-8")
            return lambda pw: load_pem_private_key(pem, password=pw)
        pem = self.to_pem(text).encode("ascii")
        der = _decode_der(text)

        def load(pw: Optional[bytes]) -> PrivateKeyTypes:
            # encrypted PKCS#8 is not valid under the "PRIVATE KEY" label
            if pw is None:
                return load_pem_private_key(pem, password=None)
            return load_der_private_key(der, password=pw)

        return load

    @staticmethod
    def _public_from_private(private_key) -> tuple[PublicKeyTypes, str]:
        try:
            public_key = private_key.public_key()
            pem = public_key.public_bytes(
                Encoding.PEM, PublicFormat.SubjectPublicKeyInfo
            ).decode("ascii")
        except (AttributeError, ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise DteError(
                ErrorKind.PUBLIC_KEY_EXTRACTION_FAILED,
                f"Failed to extract public key ({e})",
                ["Key does not expose public components"],
            ) from e
        return public_key, pem
