"""
Signer configuration.

Defaults suit a local ``certificates/`` directory; every field can be
overridden from the environment with ``SignerConfig.from_env()``:

  DTE_CERT_DIR          certificate directory
  DTE_CERT_EXTENSION    certificate file extension (default ``.crt``)
  DTE_PAYLOAD_ENCODING  ``pretty`` or ``compact``
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .schema import PayloadEncoding

DEFAULT_CERT_DIRECTORY = "certificates"
DEFAULT_CERT_EXTENSION = ".crt"


@dataclass
class SignerConfig:
    cert_directory: str = DEFAULT_CERT_DIRECTORY
    certificate_extension: str = DEFAULT_CERT_EXTENSION
    payload_encoding: PayloadEncoding = PayloadEncoding.PRETTY

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SignerConfig":
        env = os.environ if environ is None else environ
        encoding = env.get("DTE_PAYLOAD_ENCODING", PayloadEncoding.PRETTY.value)
        try:
            payload_encoding = PayloadEncoding(encoding.strip().lower())
        except ValueError:
            raise ValueError(
                f"DTE_PAYLOAD_ENCODING must be one of "
                f"{[e.value for e in PayloadEncoding]}, got {encoding!r}"
            ) from None
        return cls(
            cert_directory=env.get("DTE_CERT_DIR", DEFAULT_CERT_DIRECTORY),
            certificate_extension=env.get("DTE_CERT_EXTENSION", DEFAULT_CERT_EXTENSION),
            payload_encoding=payload_encoding,
        )
