"""
Mock certificate generation for development and tests.

Real certificates are issued by the Ministry of Finance; these helpers only
write throw-away files with the same structure so the signer can be
exercised end to end.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import (
    BestAvailableEncryption,
    Encoding,
    NoEncryption,
    PrivateFormat,
)
from lxml import etree

from .config import DEFAULT_CERT_EXTENSION
from .schema import SchemaVariant
from .validator import hash_password

logger = logging.getLogger(__name__)

TEST_NIT = "12345678901234"
TEST_PASSWORD = "testpassword"
KEY_SIZE = 2048


@dataclass
class MockCertificate:
    nit: str
    path: Path
    private_key: rsa.RSAPrivateKey
    variant: SchemaVariant


def generate_private_key(key_size: int = KEY_SIZE) -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=key_size)


def private_key_der(key: rsa.RSAPrivateKey, password: Optional[str] = None) -> bytes:
    encryption = BestAvailableEncryption(password.encode("utf-8")) if password else NoEncryption()
    return key.private_bytes(Encoding.DER, PrivateFormat.PKCS8, encryption)


def private_key_pem(key: rsa.RSAPrivateKey, password: Optional[str] = None) -> str:
    encryption = BestAvailableEncryption(password.encode("utf-8")) if password else NoEncryption()
    return key.private_bytes(Encoding.PEM, PrivateFormat.PKCS8, encryption).decode("ascii")


def _sub(parent, tag: str, text: Optional[str] = None):
    el = etree.SubElement(parent, tag)
    if text is not None:
        el.text = text
    return el


def _serialize(root) -> bytes:
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True)


def ministry_certificate_xml(
    nit: str,
    key: rsa.RSAPrivateKey,
    *,
    active: bool = True,
    verified: bool = True,
    key_password: Optional[str] = None,
    key_id: str = "test_key_identifier",
) -> bytes:
    """``CertificadoMH`` XML with the key as base64 PKCS#8 DER."""
    root = etree.Element("CertificadoMH")
    _sub(root, "nit", nit)
    _sub(root, "activo", "true" if active else "false")
    if verified:
        _sub(root, "verificado")
    private = _sub(root, "privateKey")
    _sub(private, "clave", key_id)
    encoded = base64.b64encode(private_key_der(key, key_password)).decode("ascii")
    # wrapped like the files the Ministry hands out
    _sub(private, "encodied", "\n".join(encoded[i:i + 76] for i in range(0, len(encoded), 76)))
    return _serialize(root)


def legacy_certificate_xml(
    key: rsa.RSAPrivateKey,
    password: str,
    *,
    active: bool = True,
    verified: bool = True,
    as_pem: bool = True,
    nit: Optional[str] = None,
) -> bytes:
    root = etree.Element("certificate")
    if nit:
        _sub(root, "nit", nit)
    _sub(root, "activo", "true" if active else "false")
    _sub(root, "verificado", "true" if verified else "false")
    key_el = _sub(root, "privateKey")
    if as_pem:
        key_el.text = etree.CDATA(private_key_pem(key))
    else:
        key_el.text = base64.b64encode(private_key_der(key)).decode("ascii")
    _sub(root, "passwordHash", hash_password(password))
    return _serialize(root)


def write_mock_certificate(
    cert_directory: Union[str, Path],
    nit: str = TEST_NIT,
    password: str = TEST_PASSWORD,
    variant: SchemaVariant = SchemaVariant.MINISTRY,
    *,
    encrypt_key: bool = False,
    key: Optional[rsa.RSAPrivateKey] = None,
    extension: str = DEFAULT_CERT_EXTENSION,
) -> MockCertificate:
    """Write ``{cert_directory}/{nit}.crt`` and return what went into it."""
    directory = Path(cert_directory)
    directory.mkdir(parents=True, exist_ok=True)
    key = key or generate_private_key()

    if variant is SchemaVariant.MINISTRY:
        content = ministry_certificate_xml(
            nit, key, key_password=password if encrypt_key else None
        )
    else:
        content = legacy_certificate_xml(key, password, nit=nit)

    path = directory / f"{nit}{extension}"
    path.write_bytes(content)
    logger.info(f"Wrote mock {variant.value} certificate {path}")
    return MockCertificate(nit=nit, path=path, private_key=key, variant=variant)
