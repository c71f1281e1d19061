"""Tests for the FastAPI API endpoints."""

import pytest
from httpx import AsyncClient, ASGITransport

from dtesign.mock import TEST_NIT, TEST_PASSWORD, generate_private_key, write_mock_certificate
from server.app import app

DOCUMENT = {"identificacion": {"tipoDte": "01"}, "resumen": {"totalPagar": 42.0}}

_KEY = generate_private_key()


@pytest.fixture(autouse=True)
def cert_dir(tmp_path, monkeypatch):
    """Point the app at a fresh certificate directory for each test."""
    import server.app as sa
    sa._config = None
    monkeypatch.setenv("DTE_CERT_DIR", str(tmp_path))
    write_mock_certificate(tmp_path, key=_KEY)
    yield tmp_path
    sa._config = None


def _sign_body(**overrides) -> dict:
    body = {"nit": TEST_NIT, "passwordPri": TEST_PASSWORD, "dteJson": DOCUMENT}
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_sign_then_verify():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.post("/firma/sign", json=_sign_body())
        assert resp.status_code == 200
        signed = resp.json()
        assert signed["success"] is True
        assert "errorCode" not in signed

        resp = await client.post("/firma/verify", json={"token": signed["data"], "nit": TEST_NIT})
        assert resp.status_code == 200
        assert resp.json()["data"] == DOCUMENT


@pytest.mark.asyncio
async def test_sign_validation_error():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.post("/firma/sign", json=_sign_body(nit="123", passwordPri="short"))
        assert resp.status_code == 400
        data = resp.json()
        assert data["success"] is False
        assert data["errorCode"] == "COD_803"
        assert len(data["errors"]) == 2


@pytest.mark.asyncio
async def test_sign_unknown_certificate():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.post("/firma/sign", json=_sign_body(nit="99999999999999"))
        assert resp.status_code == 400
        assert resp.json()["errorCode"] == "COD_812"


@pytest.mark.asyncio
async def test_verify_tampered_fails():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        token = (await client.post("/firma/sign", json=_sign_body())).json()["data"]
        header, _, signature = token.split(".")
        resp = await client.post(
            "/firma/verify",
            json={"token": f"{header}.eyJ0b3RhbCI6MH0.{signature}", "nit": TEST_NIT},
        )
        assert resp.status_code == 400
        data = resp.json()
        assert data["errorCode"] == "COD_820"
        assert data["message"] == "Invalid JWS signature"


@pytest.mark.asyncio
async def test_extract_unverified():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        token = (await client.post("/firma/sign", json=_sign_body())).json()["data"]
        header, payload, _ = token.split(".")
        resp = await client.post("/firma/extract", json={"token": f"{header}.{payload}.garbage"})
        assert resp.status_code == 200
        assert resp.json()["data"] == DOCUMENT


@pytest.mark.asyncio
async def test_extract_empty_token():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.post("/firma/extract", json={})
        assert resp.status_code == 400
        assert resp.json()["errorCode"] == "COD_820"


@pytest.mark.asyncio
async def test_unexpected_error_is_500(monkeypatch):
    from dtesign.loader import CertificateLoader

    def boom(self, nit, password):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(CertificateLoader, "load_signing_key", boom)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.post("/firma/sign", json=_sign_body())
        assert resp.status_code == 500
        assert resp.json()["errorCode"] == "COD_500"


@pytest.mark.asyncio
async def test_status(cert_dir):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/firma/status")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["cert_directory"] == str(cert_dir)
        assert data["payload_encoding"] == "pretty"


@pytest.mark.asyncio
async def test_verify_with_encrypted_certificate(cert_dir):
    write_mock_certificate(cert_dir, key=_KEY, encrypt_key=True)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        token = (await client.post("/firma/sign", json=_sign_body())).json()["data"]
        resp = await client.post(
            "/firma/verify",
            json={"token": token, "nit": TEST_NIT, "passwordPri": TEST_PASSWORD},
        )
        assert resp.status_code == 200
        assert resp.json()["data"] == DOCUMENT

        resp = await client.post("/firma/verify", json={"token": token, "nit": TEST_NIT})
        assert resp.status_code == 400
        assert resp.json()["errorCode"] == "COD_816"
