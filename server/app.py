"""
DTE Signer FastAPI server.

Endpoints:
  POST /firma/sign     — sign a DTE with the issuer's certificate
  POST /firma/verify   — verify a signed DTE, return its payload
  POST /firma/extract  — read a payload WITHOUT signature verification
  GET  /firma/status   — configuration summary
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from dtesign.config import SignerConfig
from dtesign.errors import ERROR_CODES, ErrorKind
from dtesign.schema import OperationResult
from dtesign.service import DteSigner, DteVerifier

from .models import ExtractBody, SignBody, StatusResponse, VerifyBody

app = FastAPI(
    title="DTE Signer",
    description="RS512 JWS signing of electronic tax documents",
    version="0.1.0",
)

# ---------------------------------------------------------------------------
# Global state (config read once; signer/verifier are stateless)
# ---------------------------------------------------------------------------
_config: SignerConfig | None = None


def get_config() -> SignerConfig:
    global _config
    if _config is None:
        _config = SignerConfig.from_env()
    return _config


def _respond(result: OperationResult) -> JSONResponse:
    if result.success:
        status = 200
    elif result.error_code == ERROR_CODES[ErrorKind.UNEXPECTED]:
        status = 500
    else:
        status = 400
    return JSONResponse(status_code=status, content=result.to_dict())


# ---------------------------------------------------------------------------
# POST /firma/sign
# ---------------------------------------------------------------------------

@app.post("/firma/sign")
async def sign(body: SignBody):
    """Sign ``dteJson`` with the certificate of ``nit``."""
    signer = DteSigner(get_config())
    request = {"nit": body.nit, "passwordPri": body.password, "dteJson": body.document}
    return _respond(signer.sign(request))


# ---------------------------------------------------------------------------
# POST /firma/verify
# ---------------------------------------------------------------------------

@app.post("/firma/verify")
async def verify(body: VerifyBody):
    verifier = DteVerifier(get_config())
    return _respond(verifier.verify(body.token, body.nit, body.password))


# ---------------------------------------------------------------------------
# POST /firma/extract
# ---------------------------------------------------------------------------

@app.post("/firma/extract")
async def extract(body: ExtractBody):
    """Return the payload without checking the signature. Untrusted data."""
    verifier = DteVerifier(get_config())
    return _respond(verifier.extract_payload(body.token))


# ---------------------------------------------------------------------------
# GET /firma/status
# ---------------------------------------------------------------------------

@app.get("/firma/status", response_model=StatusResponse)
async def status():
    config = get_config()
    return StatusResponse(
        status="ok",
        cert_directory=config.cert_directory,
        payload_encoding=config.payload_encoding.value,
    )
