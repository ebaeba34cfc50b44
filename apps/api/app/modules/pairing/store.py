import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from app.core.clock import Clock


class PairingRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: str
    owner_id: int
    created_at: datetime
    expires_at: datetime
    claimed: bool = False
    claimed_at: datetime | None = None
    agent_name: str | None = None
    agent_id: str | None = None


@dataclass(frozen=True)
class ClaimMutation:
    claimed_at: datetime
    agent_name: str
    agent_id: str | None = None


class ClaimOutcome(StrEnum):
    CLAIMED = "claimed"
    ALREADY_CLAIMED = "already_claimed"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ClaimResult:
    outcome: ClaimOutcome
    record: PairingRecord | None = None


class PairingStore(Protocol):
    def put(self, code: str, record: PairingRecord, ttl_seconds: int) -> None: ...

    def add(self, code: str, record: PairingRecord, ttl_seconds: int) -> bool: ...

    def get(self, code: str) -> PairingRecord | None: ...

    def atomic_claim(
        self, code: str, mutation: ClaimMutation, retention_seconds: int
    ) -> ClaimResult: ...

    def ping(self) -> bool: ...


@dataclass
class _Entry:
    record: PairingRecord
    expires_at: datetime


class InMemoryPairingStore:
    """Process-local store with lazy expiry against the injected clock.

    A single lock guards every read-modify-write, so ``atomic_claim`` behaves
    like a compare-and-set on the ``claimed`` flag across threads.
    """

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def _live_entry(self, code: str, now: datetime) -> _Entry | None:
        entry = self._entries.get(code)
        if entry is None:
            return None
        if entry.expires_at <= now:
            del self._entries[code]
            return None
        return entry

    def put(self, code: str, record: PairingRecord, ttl_seconds: int) -> None:
        with self._lock:
            expires_at = self._clock.now() + timedelta(seconds=ttl_seconds)
            self._entries[code] = _Entry(record=record.model_copy(), expires_at=expires_at)

    def add(self, code: str, record: PairingRecord, ttl_seconds: int) -> bool:
        with self._lock:
            now = self._clock.now()
            if self._live_entry(code, now) is not None:
                return False
            self._entries[code] = _Entry(
                record=record.model_copy(),
                expires_at=now + timedelta(seconds=ttl_seconds),
            )
            return True

    def get(self, code: str) -> PairingRecord | None:
        with self._lock:
            entry = self._live_entry(code, self._clock.now())
            return None if entry is None else entry.record.model_copy()

    def atomic_claim(
        self, code: str, mutation: ClaimMutation, retention_seconds: int
    ) -> ClaimResult:
        with self._lock:
            now = self._clock.now()
            entry = self._live_entry(code, now)
            if entry is None:
                return ClaimResult(ClaimOutcome.NOT_FOUND)
            if entry.record.claimed:
                return ClaimResult(ClaimOutcome.ALREADY_CLAIMED)

            claimed = entry.record.model_copy(
                update={
                    "claimed": True,
                    "claimed_at": mutation.claimed_at,
                    "agent_name": mutation.agent_name,
                    "agent_id": mutation.agent_id,
                }
            )
            self._entries[code] = _Entry(
                record=claimed,
                expires_at=now + timedelta(seconds=retention_seconds),
            )
            return ClaimResult(ClaimOutcome.CLAIMED, claimed.model_copy())

    def ping(self) -> bool:
        return True
