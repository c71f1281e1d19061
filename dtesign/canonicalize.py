"""
RFC 8785 — JSON Canonicalization Scheme (JCS) for DTE payloads.

Used by the ``COMPACT`` payload encoding: the signed bytes are independent
of dict insertion order and of serializer whitespace.

Rules (RFC 8785 §3.2):
  1. Object members sorted by the UTF-16 code units of their names.
  2. No insignificant whitespace.
  3. Numbers in ES2015 ``Number.prototype.toString`` form.
  4. Strings with only the mandatory escapes.
"""

from __future__ import annotations

import json
import math
from decimal import Decimal
from typing import Any


def _utf16_key(name: str) -> bytes:
    return name.encode("utf-16-be")


def _serialize_string(s: str) -> str:
    # With ensure_ascii=False json.dumps emits exactly the JCS escape set:
    # \" \\ \b \f \n \r \t and \u00XX for the remaining control characters.
    return json.dumps(s, ensure_ascii=False)


def _serialize_float(n: float) -> str:
    if math.isnan(n) or math.isinf(n):
        raise ValueError("NaN and Infinity have no JSON representation")
    if n == 0:
        return "0"
    if n.is_integer() and abs(n) < 1e21:
        return str(int(n))

    r = repr(n)
    if "e" not in r:
        return r

    mantissa, exp_text = r.split("e")
    exponent = int(exp_text)
    if -7 < exponent < 21:
        # ES2015 keeps positional notation down to 1e-6
        text = format(Decimal(r), "f")
        return text.rstrip("0").rstrip(".") if "." in text else text
    sign = "+" if exponent > 0 else "-"
    return f"{mantissa}e{sign}{abs(exponent)}"


def _serialize(obj: Any) -> str:
    if obj is None:
        return "null"
    if obj is True:
        return "true"
    if obj is False:
        return "false"
    if isinstance(obj, int):
        return str(obj)
    if isinstance(obj, float):
        return _serialize_float(obj)
    if isinstance(obj, Decimal):
        return _serialize_float(float(obj))
    if isinstance(obj, str):
        return _serialize_string(obj)
    if isinstance(obj, (list, tuple)):
        return "[" + ",".join(_serialize(item) for item in obj) + "]"
    if isinstance(obj, dict):
        for key in obj:
            if not isinstance(key, str):
                raise TypeError(f"object keys must be strings, got {type(key).__name__}")
        members = sorted(obj.items(), key=lambda kv: _utf16_key(kv[0]))
        return "{" + ",".join(
            f"{_serialize_string(k)}:{_serialize(v)}" for k, v in members
        ) + "}"
    if hasattr(obj, "model_dump"):
        return _serialize(obj.model_dump(mode="json"))
    raise TypeError(f"Cannot canonicalize type {type(obj).__name__}")


def canonicalize(obj: Any) -> bytes:
    """Return the JCS canonical UTF-8 bytes of *obj*."""
    return _serialize(obj).encode("utf-8")
