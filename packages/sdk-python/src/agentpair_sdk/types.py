from typing import Literal, NotRequired, TypedDict


class ClaimRequestBody(TypedDict):
    code: str
    agent_name: str
    agent_id: NotRequired[str]


class CodeStatusResponse(TypedDict):
    valid: Literal[True]
    site_name: str
    site_url: str


class ClaimResponse(TypedDict):
    success: bool
    site_name: str
    site_url: str
    rest_url: str
    username: str
    password: str
    manifest_url: str
    agent_name: str
    message: str
