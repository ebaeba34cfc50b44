import hmac
import logging
from typing import Annotated

from fastapi import APIRouter, Header, HTTPException, status
from sqlalchemy.exc import IntegrityError

from app.api.deps import DbSession
from app.core.config import settings
from app.modules.accounts.service import create_account
from app.modules.credentials.service import (
    CredentialIssuanceError,
    SqlAlchemyCredentialIssuer,
    chunk_password,
)
from app.schemas.account import AccountCreatedResponse, AccountCreateRequest

router = APIRouter(tags=["accounts"])
logger = logging.getLogger("agentpair.accounts")


def _ensure_bootstrap_token(provided: str | None) -> None:
    expected = settings.agentpair_bootstrap_token
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "BOOTSTRAP_DISABLED", "message": "Account bootstrap is disabled"},
        )
    if provided is None or not hmac.compare_digest(provided, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "BOOTSTRAP_TOKEN_INVALID", "message": "Invalid X-Bootstrap-Token"},
        )


@router.post(
    "/accounts",
    response_model=AccountCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Bootstrap Account",
    description=(
        "Creates an operator account and returns its first application password, "
        "used with HTTP Basic on `POST /pair/generate`."
    ),
)
def create_account_endpoint(
    payload: AccountCreateRequest,
    db: DbSession,
    x_bootstrap_token: Annotated[str | None, Header()] = None,
) -> AccountCreatedResponse:
    _ensure_bootstrap_token(x_bootstrap_token)

    try:
        account = create_account(
            db,
            username=payload.username,
            display_name=payload.display_name,
            role=payload.role,
        )
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"code": "USERNAME_TAKEN", "message": "Username already exists"},
        ) from None

    try:
        issued = SqlAlchemyCredentialIssuer(db).mint(
            account,
            name=f"{settings.credential_name_prefix} (bootstrap)",
            app_id="agentpair-bootstrap",
        )
    except CredentialIssuanceError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"code": "PASSWORD_CREATION_FAILED", "message": "Could not create password"},
        ) from None

    logger.info(
        "account_bootstrapped",
        extra={"event_name": "account_bootstrapped", "owner_id": account.id},
    )
    return AccountCreatedResponse(
        id=account.id,
        username=account.username,
        role=account.role,
        application_password=chunk_password(issued.password),
        message="Save this application password. It won't be shown again.",
    )
