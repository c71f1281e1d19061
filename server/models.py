"""Request/response models for the DTE signer API."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# POST /firma/sign
# ---------------------------------------------------------------------------

class SignBody(BaseModel):
    """Raw body; field rules are enforced by ``dtesign.schema.SignRequest``."""
    model_config = ConfigDict(populate_by_name=True)

    nit: str = ""
    password: str = Field(default="", alias="passwordPri")
    document: Any = Field(default=None, alias="dteJson")


# ---------------------------------------------------------------------------
# POST /firma/verify, POST /firma/extract
# ---------------------------------------------------------------------------

class VerifyBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str = ""
    nit: str = ""
    password: Optional[str] = Field(default=None, alias="passwordPri")


class ExtractBody(BaseModel):
    token: str = ""


class StatusResponse(BaseModel):
    status: str
    cert_directory: str
    payload_encoding: str
