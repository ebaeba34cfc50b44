import logging
import re
import secrets
import string
from dataclasses import dataclass
from datetime import UTC, datetime
from hashlib import sha256
from typing import Protocol
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.account import Account
from app.models.application_password import ApplicationPassword

logger = logging.getLogger("agentpair.credentials")

PASSWORD_LENGTH = 24
PASSWORD_CHUNK_SIZE = 4
_PASSWORD_ALPHABET = string.ascii_letters + string.digits


class CredentialIssuanceError(Exception):
    pass


@dataclass(frozen=True)
class IssuedCredential:
    credential_id: UUID
    name: str
    app_id: str
    password: str


class CredentialIssuer(Protocol):
    def mint(self, account: Account, *, name: str, app_id: str) -> IssuedCredential: ...


def generate_password() -> str:
    return "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(PASSWORD_LENGTH))


def hash_password(raw: str) -> str:
    return sha256(raw.encode()).hexdigest()


def chunk_password(raw: str) -> str:
    size = PASSWORD_CHUNK_SIZE
    return " ".join(raw[index : index + size] for index in range(0, len(raw), size))


def slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-") or "agent"


class SqlAlchemyCredentialIssuer:
    """Application passwords: the plaintext leaves this class once, only the hash is stored."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def mint(self, account: Account, *, name: str, app_id: str) -> IssuedCredential:
        password = generate_password()
        credential_id = uuid4()
        owner_id = account.id
        row = ApplicationPassword(
            id=credential_id,
            account_id=owner_id,
            name=name,
            app_id=app_id,
            password_hash=hash_password(password),
        )
        try:
            self._db.add(row)
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            logger.error(
                "application_password_write_failed",
                extra={"event_name": "application_password_write_failed", "owner_id": owner_id},
                exc_info=True,
            )
            raise CredentialIssuanceError("could not store application password") from exc

        return IssuedCredential(
            credential_id=credential_id, name=name, app_id=app_id, password=password
        )

    def authenticate(self, username: str, password: str) -> Account | None:
        digest = hash_password("".join(password.split()))
        row = self._db.scalar(
            select(ApplicationPassword)
            .join(Account, Account.id == ApplicationPassword.account_id)
            .where(Account.username == username, ApplicationPassword.password_hash == digest)
        )
        if row is None:
            return None

        row.last_used_at = datetime.now(tz=UTC)
        self._db.commit()
        return self._db.get(Account, row.account_id)
