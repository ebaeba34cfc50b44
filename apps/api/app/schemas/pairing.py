from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class GenerateCodeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    target_owner_id: int | None = Field(default=None, ge=1)


class GeneratedCode(BaseModel):
    code: str
    expires_in: int
    expires_at: datetime
    for_user: str


class CodeStatus(BaseModel):
    valid: bool
    site_name: str | None = None
    site_url: str | None = None


class CodeStatusError(BaseModel):
    valid: bool = False
    error: str
    message: str


class ClaimRequest(BaseModel):
    code: str = Field(min_length=1)
    agent_name: str | None = None
    agent_id: str | None = None


class ClaimedCredentials(BaseModel):
    success: bool = True
    site_name: str
    site_url: str
    rest_url: str
    username: str
    password: str
    manifest_url: str
    agent_name: str
    message: str


class PairingErrorResponse(BaseModel):
    error: str
    message: str
