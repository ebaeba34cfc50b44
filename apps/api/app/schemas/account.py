from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class AccountCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    username: str = Field(min_length=1, max_length=60, pattern=r"^[A-Za-z0-9_.@-]+$")
    display_name: str = Field(default="", max_length=250)
    role: Literal["administrator", "manager", "member"] = "member"


class AccountCreatedResponse(BaseModel):
    id: int
    username: str
    role: str
    application_password: str
    message: str
