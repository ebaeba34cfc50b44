from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from sqlalchemy.orm import Session

from app.core.clock import Clock, system_clock
from app.core.config import settings
from app.db.session import get_db, redis_client
from app.models.account import Account
from app.modules.accounts.service import SqlAlchemyIdentityStore
from app.modules.credentials.service import SqlAlchemyCredentialIssuer
from app.modules.pairing.redis_store import RedisPairingStore
from app.modules.pairing.service import HandshakeService, SiteIdentity
from app.modules.pairing.store import InMemoryPairingStore, PairingStore

DbSession = Annotated[Session, Depends(get_db)]

_basic_auth = HTTPBasic(auto_error=False)


def get_clock() -> Clock:
    return system_clock


@lru_cache
def get_pairing_store() -> PairingStore:
    if settings.pairing_store_backend == "memory":
        return InMemoryPairingStore(system_clock)
    return RedisPairingStore(redis_client)


def get_site_identity() -> SiteIdentity:
    return SiteIdentity(
        name=settings.site_name,
        url=settings.site_url,
        rest_url=settings.rest_url,
        manifest_url=settings.manifest_url,
        credential_name_prefix=settings.credential_name_prefix,
    )


def get_handshake_service(
    db: DbSession,
    store: Annotated[PairingStore, Depends(get_pairing_store)],
    clock: Annotated[Clock, Depends(get_clock)],
    site: Annotated[SiteIdentity, Depends(get_site_identity)],
) -> HandshakeService:
    return HandshakeService(
        store=store,
        identity=SqlAlchemyIdentityStore(db),
        issuer=SqlAlchemyCredentialIssuer(db),
        clock=clock,
        site=site,
        code_ttl_seconds=settings.pairing_code_ttl_seconds,
        claimed_retention_seconds=settings.pairing_claimed_retention_seconds,
        max_generate_attempts=settings.pairing_max_generate_attempts,
    )


def get_current_account(
    db: DbSession,
    credentials: Annotated[HTTPBasicCredentials | None, Depends(_basic_auth)],
) -> Account:
    account = None
    if credentials is not None:
        account = SqlAlchemyCredentialIssuer(db).authenticate(
            credentials.username, credentials.password
        )
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "AUTH_INVALID", "message": "Invalid username or application password"},
            headers={"WWW-Authenticate": "Basic"},
        )
    return account


Handshake = Annotated[HandshakeService, Depends(get_handshake_service)]
CurrentAccount = Annotated[Account, Depends(get_current_account)]
