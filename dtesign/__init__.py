"""DTE Signer — certificate loading, RS512 JWS signing and verification."""

from .errors import DteError, ErrorKind
from .schema import (
    CertificateRecord,
    OperationResult,
    PayloadEncoding,
    SchemaVariant,
    SignRequest,
    VerificationResult,
)
from .secret import SecretBytes
from .config import SignerConfig
from .parser import CertificateParser
from .keys import KeyNormalizer, NormalizedKeyPair
from .validator import CertificateValidator, hash_password
from .loader import CertificateLoader
from .jws import JwsSigner, JwsVerifier
from .service import DteSigner, DteVerifier

__all__ = [
    "DteError",
    "ErrorKind",
    "CertificateRecord",
    "OperationResult",
    "PayloadEncoding",
    "SchemaVariant",
    "SignRequest",
    "VerificationResult",
    "SecretBytes",
    "SignerConfig",
    "CertificateParser",
    "KeyNormalizer",
    "NormalizedKeyPair",
    "CertificateValidator",
    "hash_password",
    "CertificateLoader",
    "JwsSigner",
    "JwsVerifier",
    "DteSigner",
    "DteVerifier",
]
