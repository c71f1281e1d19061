"""
Base64url and PEM helpers.

- base64url without padding (RFC 7515 §2)
- padding restoration for decoding
- PEM armouring of DER bytes at 64 columns
"""

from __future__ import annotations

import base64
import binascii
import re

PEM_LINE_WIDTH = 64

_WHITESPACE = re.compile(r"\s+")


def b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def restore_padding(segment: str) -> str:
    """Pad *segment* with ``=`` up to a multiple of 4 characters."""
    remainder = len(segment) % 4
    if remainder:
        segment += "=" * (4 - remainder)
    return segment


def b64url_decode(segment: str) -> bytes:
    """Decode a base64url segment, tolerating missing padding.

    Raises ``binascii.Error`` when the input is not valid base64url.
    """
    standard = restore_padding(segment).translate(str.maketrans("-_", "+/"))
    return base64.b64decode(standard, validate=True)


def strip_whitespace(text: str) -> str:
    return _WHITESPACE.sub("", text)


def b64_decode_strict(text: str) -> bytes:
    """Strict standard base64 decode of *text* with whitespace removed."""
    compact = strip_whitespace(text)
    if not compact:
        raise binascii.Error("empty base64 input")
    return base64.b64decode(compact, validate=True)


def pem_wrap(der: bytes, label: str = "PRIVATE KEY") -> str:
    body = base64.b64encode(der).decode("ascii")
    lines = [body[i:i + PEM_LINE_WIDTH] for i in range(0, len(body), PEM_LINE_WIDTH)]
    return f"-----BEGIN {label}-----\n" + "\n".join(lines) + f"\n-----END {label}-----\n"


def has_pem_markers(text: str) -> bool:
    return "-----BEGIN" in text and "-----END" in text
