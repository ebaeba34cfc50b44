from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.account import Account

CAP_GENERATE_PAIRING = "pairing:generate"
CAP_ACT_FOR_OTHERS = "accounts:act_for_others"

ROLE_CAPABILITIES: dict[str, frozenset[str]] = {
    "administrator": frozenset({CAP_GENERATE_PAIRING, CAP_ACT_FOR_OTHERS}),
    "manager": frozenset({CAP_GENERATE_PAIRING}),
    "member": frozenset(),
}


class IdentityStore(Protocol):
    def get_account(self, account_id: int) -> Account | None: ...

    def has_capability(self, account: Account, capability: str) -> bool: ...


class SqlAlchemyIdentityStore:
    def __init__(self, db: Session) -> None:
        self._db = db

    def get_account(self, account_id: int) -> Account | None:
        return self._db.get(Account, account_id)

    def get_account_by_username(self, username: str) -> Account | None:
        return self._db.scalar(select(Account).where(Account.username == username))

    def has_capability(self, account: Account, capability: str) -> bool:
        return capability in ROLE_CAPABILITIES.get(account.role, frozenset())


def create_account(
    db: Session, *, username: str, display_name: str = "", role: str = "member"
) -> Account:
    if role not in ROLE_CAPABILITIES:
        raise ValueError(f"unknown role: {role}")

    account = Account(username=username, display_name=display_name, role=role)
    db.add(account)
    db.flush()
    return account
