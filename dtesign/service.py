"""
DTE signing and verification operations.

This is the boundary of the package: every public method returns an
``OperationResult`` envelope and never raises.

  DteSigner.sign(request)             → data: JWS compact token
  DteVerifier.verify(token, nit[, password]) → data: verified payload
  DteVerifier.extract_payload(token)  → data: UNVERIFIED payload

Flow for signing:
    request → SignRequest → CertificateLoader.load_signing_key
            → JwsSigner.sign → envelope
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from .config import SignerConfig
from .errors import DteError, ErrorKind, ERROR_CODES
from .jws import JwsSigner, JwsVerifier, split_token
from .loader import CertificateLoader
from .schema import ExtractRequest, OperationResult, SignRequest, VerifyRequest
from .secret import SecretBytes

logger = logging.getLogger(__name__)

SIGN_SUCCESS_MESSAGE = "DTE signed successfully"
VERIFY_SUCCESS_MESSAGE = "DTE signature verified successfully"
EXTRACT_SUCCESS_MESSAGE = "DTE payload extracted successfully (signature not verified)"


# ---------------------------------------------------------------------------
# Envelope builders
# ---------------------------------------------------------------------------

def success_result(data: Any, message: str) -> OperationResult:
    return OperationResult(success=True, message=message, data=data)


def error_result(error: DteError) -> OperationResult:
    return OperationResult(
        success=False,
        message=error.message,
        error_code=error.code,
        errors=error.errors,
    )


def unexpected_result(context: str, exc: Exception) -> OperationResult:
    return OperationResult(
        success=False,
        message=f"{context}: {exc}",
        error_code=ERROR_CODES[ErrorKind.UNEXPECTED],
        errors=[],
    )


def _validation_error(message: str, exc: ValidationError) -> DteError:
    details = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ())) or "request"
        text = err.get("msg", "invalid value").removeprefix("Value error, ")
        details.append(f"{field}: {text}")
    return DteError(ErrorKind.VALIDATION_FAILED, message, details)


def _run(operation: str, unexpected_context: str, fn: Callable[[], OperationResult]) -> OperationResult:
    try:
        return fn()
    except DteError as e:
        logger.warning(f"{operation} failed [{e.code} {e.kind.value}]: {e.message}")
        return error_result(e)
    except Exception as e:
        logger.exception(f"{operation}: unexpected error")
        return unexpected_result(unexpected_context, e)


def load_request_file(path: Union[str, Path]) -> dict:
    """Read a signing request from a JSON file."""
    path = Path(path)
    if not path.is_file():
        raise DteError(
            ErrorKind.VALIDATION_FAILED,
            f"Request file not found: {path}",
            ["File does not exist"],
        )
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise DteError(
            ErrorKind.VALIDATION_FAILED,
            f"Could not read request file: {path}",
            ["File read error"],
        ) from e
    except json.JSONDecodeError as e:
        raise DteError(
            ErrorKind.VALIDATION_FAILED,
            f"Invalid JSON in request file: {e}",
            ["JSON parsing error"],
        ) from e
    if not isinstance(data, dict):
        raise DteError(
            ErrorKind.VALIDATION_FAILED,
            "Request file must contain a JSON object",
            ["JSON parsing error"],
        )
    return data


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------

class DteSigner:
    """Signs DTE documents with the key from the issuer's certificate."""

    def __init__(
        self,
        config: Optional[SignerConfig] = None,
        loader: Optional[CertificateLoader] = None,
        jws_signer: Optional[JwsSigner] = None,
    ) -> None:
        self.config = config or SignerConfig()
        self.loader = loader or CertificateLoader(
            self.config.cert_directory, extension=self.config.certificate_extension
        )
        self.jws_signer = jws_signer or JwsSigner(encoding=self.config.payload_encoding)

    def sign(self, request: Union[dict, SignRequest, str, Path]) -> OperationResult:
        """Sign ``{nit, passwordPri, dteJson}`` given as dict, model or JSON file path."""
        password: Optional[SecretBytes] = None

        def _sign() -> OperationResult:
            nonlocal password
            req = self._parse_request(request)
            password = SecretBytes(req.password)
            with self.loader.load_signing_key(req.nit, password) as pair:
                token = self.jws_signer.sign(req.document, pair)
            logger.info(f"Signed DTE for NIT {req.nit}")
            return success_result(token, SIGN_SUCCESS_MESSAGE)

        try:
            return _run("Signing", "Unexpected error", _sign)
        finally:
            if password is not None:
                password.wipe()

    @staticmethod
    def _parse_request(request: Union[dict, SignRequest, str, Path]) -> SignRequest:
        if isinstance(request, SignRequest):
            return request
        if isinstance(request, (str, Path)):
            request = load_request_file(request)
        if not isinstance(request, dict):
            raise DteError(
                ErrorKind.VALIDATION_FAILED,
                "Request validation failed",
                ["Request must be a JSON object"],
            )
        try:
            return SignRequest.model_validate(request)
        except ValidationError as e:
            raise _validation_error("Request validation failed", e) from None


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------

class DteVerifier:
    """Verifies signed DTEs against the issuer's certificate."""

    def __init__(
        self,
        config: Optional[SignerConfig] = None,
        loader: Optional[CertificateLoader] = None,
        jws_verifier: Optional[JwsVerifier] = None,
    ) -> None:
        self.config = config or SignerConfig()
        self.loader = loader or CertificateLoader(
            self.config.cert_directory, extension=self.config.certificate_extension
        )
        self.jws_verifier = jws_verifier or JwsVerifier()

    def verify(self, token: str, nit: str, password: Optional[str] = None) -> OperationResult:
        """Verify *token*; *password* is only needed for encrypted certificate keys."""
        secret: Optional[SecretBytes] = None

        def _verify() -> OperationResult:
            nonlocal secret
            try:
                req = VerifyRequest(token=token, nit=nit, password=password)
            except ValidationError as e:
                raise _validation_error("Invalid verification request", e) from None

            split_token(req.token)
            if req.password:
                secret = SecretBytes(req.password)
            public_key = self.loader.load_verification_key(req.nit, secret)
            result = self.jws_verifier.verify_signature(req.token, public_key)
            if not result.valid:
                raise DteError(
                    ErrorKind.INVALID_SIGNATURE,
                    "Invalid JWS signature",
                    [result.reason or "Signature verification failed"],
                )
            logger.info(f"Verified DTE signature for NIT {req.nit}")
            return success_result(result.payload, VERIFY_SUCCESS_MESSAGE)

        try:
            return _run("Verification", "Unexpected verification error", _verify)
        finally:
            if secret is not None:
                secret.wipe()

    def extract_payload(self, token: str) -> OperationResult:
        """Payload WITHOUT signature verification; treat ``data`` as untrusted."""
        def _extract() -> OperationResult:
            try:
                req = ExtractRequest(token=token)
            except ValidationError as e:
                raise _validation_error("Invalid extraction request", e) from None
            payload = self.jws_verifier.extract_payload(req.token)
            return success_result(payload, EXTRACT_SUCCESS_MESSAGE)

        return _run("Extraction", "Unexpected extraction error", _extract)
