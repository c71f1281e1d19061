"""
RS512 JWS compact serialization for DTE documents.

    base64url(header) . base64url(payload) . base64url(signature)

The header is always ``{"alg":"RS512","typ":"JWT"}``. The payload is the
DTE document itself, serialized according to ``PayloadEncoding``:

  PRETTY   json.dumps(indent=4, ensure_ascii=False)  — Ministry convention
  COMPACT  RFC 8785 canonical JSON

Signing and signature checks go through PyJWT's ``PyJWS``; structure checks
and unverified payload extraction are done here so their failures can be
reported precisely.
"""

from __future__ import annotations

import binascii
import json
import logging
from decimal import Decimal
from typing import Any, Optional, Union

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from cryptography.hazmat.primitives.serialization import load_pem_public_key
from jwt.api_jws import PyJWS

from .canonicalize import canonicalize
from .encoding import b64url_decode, b64url_encode
from .errors import DteError, ErrorKind, invalid_jwt
from .keys import KeyNormalizer, NormalizedKeyPair, Password
from .schema import PayloadEncoding, VerificationResult
from .secret import SecretBytes

logger = logging.getLogger(__name__)

ALGORITHM = "RS512"
TOKEN_TYPE = "JWT"
JWS_HEADER = {"alg": ALGORITHM, "typ": TOKEN_TYPE}
SEGMENT_NAMES = ("header", "payload", "signature")

SigningKey = Union[RSAPrivateKey, NormalizedKeyPair, SecretBytes, str, bytes]
VerificationKey = Union[RSAPublicKey, str, bytes]


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return float(obj)
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def serialize_payload(document: Any, encoding: PayloadEncoding = PayloadEncoding.PRETTY) -> bytes:
    """Serialize *document* to the exact bytes that get signed."""
    if encoding is PayloadEncoding.COMPACT:
        return canonicalize(document)
    return json.dumps(
        document,
        indent=4,
        ensure_ascii=False,
        allow_nan=False,
        default=_json_default,
    ).encode("utf-8")


def split_token(token: str) -> list[str]:
    """Structural check: three non-empty dot-separated segments."""
    if not token or not token.strip():
        raise DteError(ErrorKind.INVALID_JWT_FORMAT, "JWS token cannot be empty", ["JWS token is required"])
    parts = token.strip().split(".")
    if len(parts) != len(SEGMENT_NAMES):
        raise invalid_jwt("expected 3 parts separated by dots")
    for name, part in zip(SEGMENT_NAMES, parts):
        if not part:
            raise invalid_jwt(f"empty {name}")
    return parts


def _decode_json_segment(segment: str, name: str) -> Any:
    try:
        raw = b64url_decode(segment)
    except (binascii.Error, ValueError) as e:
        raise DteError(
            ErrorKind.INVALID_JWT_FORMAT,
            f"Failed to decode JWT {name}",
            ["Base64 decode error"],
        ) from e
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DteError(
            ErrorKind.INVALID_JWT_FORMAT,
            f"Invalid JSON in JWT {name}: {e}",
            ["JSON decode error"],
        ) from e


class JwsSigner:
    """Builds RS512 compact tokens from DTE documents."""

    def __init__(
        self,
        encoding: PayloadEncoding = PayloadEncoding.PRETTY,
        normalizer: Optional[KeyNormalizer] = None,
    ) -> None:
        self.encoding = encoding
        self.normalizer = normalizer or KeyNormalizer()
        self._jws = PyJWS()

    def sign(self, document: Any, private_key: SigningKey, password: Password = None) -> str:
        if document is None or document == {} or document == []:
            raise DteError(ErrorKind.SIGNING_FAILED, "Failed to sign DTE: document cannot be empty")

        key = self._resolve_key(private_key, password)

        try:
            payload = serialize_payload(document, self.encoding)
        except (TypeError, ValueError) as e:
            raise DteError(
                ErrorKind.SIGNING_FAILED,
                f"Failed to encode DTE JSON: {e}",
                ["Payload is not JSON serializable"],
            ) from e

        try:
            token = self._jws.encode(
                payload,
                key,
                algorithm=ALGORITHM,
                headers={"typ": TOKEN_TYPE},
            )
        except (jwt.PyJWTError, ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise DteError(ErrorKind.SIGNING_FAILED, f"Failed to sign DTE: {e}") from e

        logger.debug(f"Signed DTE payload ({len(payload)} bytes, {self.encoding.value})")
        return token

    def _resolve_key(self, private_key: SigningKey, password: Password) -> RSAPrivateKey:
        if isinstance(private_key, NormalizedKeyPair):
            private_key = private_key.private_key
        if isinstance(private_key, SecretBytes):
            private_key = private_key.reveal() if private_key else None
        if private_key is None or (isinstance(private_key, (str, bytes)) and not private_key.strip()):
            raise DteError(ErrorKind.SIGNING_FAILED, "Private key cannot be empty")
        if isinstance(private_key, (str, bytes)):
            private_key = self.normalizer.load_private_key(private_key, password)
        if not isinstance(private_key, RSAPrivateKey):
            raise DteError(
                ErrorKind.SIGNING_FAILED,
                f"Failed to sign DTE: {ALGORITHM} requires an RSA private key",
                [f"Unsupported key type {type(private_key).__name__}"],
            )
        return private_key


class JwsVerifier:
    """Checks RS512 signatures and reads token contents."""

    def __init__(self) -> None:
        self._jws = PyJWS()

    def verify_signature(self, token: str, public_key: VerificationKey) -> VerificationResult:
        header_b64, payload_b64, signature_b64 = split_token(token)
        key = self._load_public_key(public_key)

        if not self._signature_is_canonical(signature_b64):
            return VerificationResult(valid=False, reason="Invalid signature")

        try:
            decoded = self._jws.decode_complete(
                f"{header_b64}.{payload_b64}.{signature_b64}",
                key=key,
                algorithms=[ALGORITHM],
            )
        except jwt.InvalidSignatureError:
            return VerificationResult(valid=False, reason="Invalid signature")
        except jwt.InvalidAlgorithmError:
            return VerificationResult(
                valid=False, reason=f"Algorithm not allowed, expected {ALGORITHM}"
            )
        except jwt.DecodeError as e:
            raise invalid_jwt(str(e)) from e
        except (jwt.PyJWTError, ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise DteError(
                ErrorKind.VERIFICATION_FAILED,
                f"Signature verification failed: {e}",
                ["Verification error"],
            ) from e

        try:
            payload = json.loads(decoded["payload"].decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DteError(
                ErrorKind.INVALID_JWT_FORMAT,
                f"Invalid JSON in JWT payload: {e}",
                ["JSON decode error"],
            ) from e
        return VerificationResult(valid=True, payload=payload)

    def extract_payload(self, token: str) -> Any:
        """Payload without any signature check. The result is untrusted."""
        _, payload_b64, _ = split_token(token)
        return _decode_json_segment(payload_b64, "payload")

    def decode_header(self, token: str) -> dict:
        header_b64, _, _ = split_token(token)
        header = _decode_json_segment(header_b64, "header")
        if not isinstance(header, dict):
            raise invalid_jwt("header is not a JSON object")
        return header

    @staticmethod
    def _signature_is_canonical(segment: str) -> bool:
        # Lenient base64 decoders ignore trailing bits; reject any segment
        # that is not the exact encoding of the bytes it decodes to.
        try:
            return b64url_encode(b64url_decode(segment)) == segment
        except (binascii.Error, ValueError):
            return False

    @staticmethod
    def _load_public_key(public_key: VerificationKey) -> RSAPublicKey:
        if isinstance(public_key, RSAPublicKey):
            return public_key
        if not public_key or (isinstance(public_key, (str, bytes)) and not public_key.strip()):
            raise DteError(
                ErrorKind.VERIFICATION_FAILED,
                "Public key cannot be empty",
                ["Public key is required for verification"],
            )
        data = public_key.encode("utf-8") if isinstance(public_key, str) else public_key
        try:
            key = load_pem_public_key(data.strip())
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise DteError(
                ErrorKind.VERIFICATION_FAILED,
                f"Signature verification failed: invalid public key ({e})",
                ["Verification error"],
            ) from e
        if not isinstance(key, RSAPublicKey):
            raise DteError(
                ErrorKind.VERIFICATION_FAILED,
                f"Signature verification failed: {ALGORITHM} requires an RSA public key",
                ["Verification error"],
            )
        return key
