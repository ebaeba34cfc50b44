from typing import Annotated

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from app.api.deps import CurrentAccount, Handshake
from app.core.errors import PairingError
from app.core.openapi import CLAIM_ERROR_RESPONSES, GENERATE_ERROR_RESPONSES
from app.schemas.pairing import (
    ClaimedCredentials,
    ClaimRequest,
    CodeStatus,
    CodeStatusError,
    GenerateCodeRequest,
    GeneratedCode,
)

router = APIRouter(prefix="/pair", tags=["pairing"])


@router.post(
    "/generate",
    response_model=GeneratedCode,
    status_code=status.HTTP_201_CREATED,
    summary="Generate Pairing Code",
    description=(
        "Issues a single-use 6-character code for the caller, or for `target_owner_id` "
        "when the caller may act on other accounts. The code expires after 5 minutes."
    ),
    responses=GENERATE_ERROR_RESPONSES,
)
def generate_code_endpoint(
    caller: CurrentAccount,
    service: Handshake,
    payload: GenerateCodeRequest | None = None,
) -> GeneratedCode:
    target_owner_id = payload.target_owner_id if payload is not None else None
    return service.generate(caller, target_owner_id)


@router.get(
    "/status",
    response_model=CodeStatus,
    summary="Check Pairing Code",
    description="Public probe telling an agent whether a code can still be claimed.",
    responses={
        400: {"model": CodeStatusError},
        404: {"model": CodeStatusError},
        410: {"model": CodeStatusError},
    },
)
def code_status_endpoint(
    code: Annotated[str, Query(min_length=1)], service: Handshake
) -> CodeStatus | JSONResponse:
    try:
        return service.status(code)
    except PairingError as exc:
        body = CodeStatusError(error=exc.error, message=exc.message)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@router.post(
    "",
    response_model=ClaimedCredentials,
    status_code=status.HTTP_201_CREATED,
    summary="Claim Pairing Code",
    description=(
        "Exchanges a pairing code for an application password bound to the account "
        "that generated it. The password is returned once; the code is consumed."
    ),
    responses=CLAIM_ERROR_RESPONSES,
)
def claim_code_endpoint(payload: ClaimRequest, service: Handshake) -> ClaimedCredentials:
    return service.claim(payload.code, agent_name=payload.agent_name, agent_id=payload.agent_id)
