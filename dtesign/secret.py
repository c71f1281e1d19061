"""
Scoped holder for secret bytes (passwords, private key PEM).

The buffer is a ``bytearray`` so it can be overwritten in place. Use it as a
context manager; the bytes are zeroed when the block exits, whether it
exits normally or by an exception. This is hygiene, not a security
boundary: copies made by libraries (``bytes(...)``, key objects) cannot be
reached from here.
"""

from __future__ import annotations

from typing import Optional, Union


class SecretBytes:
    __slots__ = ("_buf",)

    def __init__(self, value: Union[str, bytes, bytearray]) -> None:
        if isinstance(value, str):
            value = value.encode("utf-8")
        self._buf: Optional[bytearray] = bytearray(value)

    @property
    def wiped(self) -> bool:
        return self._buf is None

    def reveal(self) -> bytes:
        """Return an immutable copy of the secret. Keep its scope small."""
        if self._buf is None:
            raise ValueError("secret has already been wiped")
        return bytes(self._buf)

    def wipe(self) -> None:
        if self._buf is not None:
            for i in range(len(self._buf)):
                self._buf[i] = 0
            self._buf = None

    def __len__(self) -> int:
        return 0 if self._buf is None else len(self._buf)

    def __bool__(self) -> bool:
        return len(self) > 0

    def __enter__(self) -> "SecretBytes":
        return self

    def __exit__(self, *exc) -> None:
        self.wipe()

    def __repr__(self) -> str:
        state = "wiped" if self._buf is None else f"{len(self._buf)} bytes"
        return f"SecretBytes(<{state}>)"
