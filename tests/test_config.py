"""Tests for SignerConfig environment overrides."""

import pytest

from dtesign.config import SignerConfig
from dtesign.schema import PayloadEncoding


def test_defaults():
    config = SignerConfig()
    assert config.cert_directory == "certificates"
    assert config.certificate_extension == ".crt"
    assert config.payload_encoding is PayloadEncoding.PRETTY


def test_from_empty_environment():
    assert SignerConfig.from_env({}) == SignerConfig()


def test_from_environment():
    config = SignerConfig.from_env({
        "DTE_CERT_DIR": "/srv/certs",
        "DTE_CERT_EXTENSION": ".xml",
        "DTE_PAYLOAD_ENCODING": " COMPACT ",
    })
    assert config.cert_directory == "/srv/certs"
    assert config.certificate_extension == ".xml"
    assert config.payload_encoding is PayloadEncoding.COMPACT


def test_reads_process_environment(monkeypatch):
    monkeypatch.setenv("DTE_CERT_DIR", "/tmp/dte")
    assert SignerConfig.from_env().cert_directory == "/tmp/dte"


def test_invalid_encoding():
    with pytest.raises(ValueError, match="DTE_PAYLOAD_ENCODING"):
        SignerConfig.from_env({"DTE_PAYLOAD_ENCODING": "base85"})
