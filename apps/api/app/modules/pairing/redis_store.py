import logging
from collections.abc import Iterator
from contextlib import contextmanager

from redis import Redis
from redis.commands.core import Script
from redis.exceptions import RedisError

from app.core.errors import PairingStoreUnavailable
from app.modules.pairing.store import ClaimMutation, ClaimOutcome, ClaimResult, PairingRecord

logger = logging.getLogger("agentpair.pairing_store")

# KEYS[1] = record key
# ARGV[1] = claimed_at (ISO 8601), ARGV[2] = agent_name, ARGV[3] = agent_id or "",
# ARGV[4] = retention seconds
_ATOMIC_CLAIM_LUA = """
local raw = redis.call('GET', KEYS[1])
if not raw then
  return {'not_found'}
end
local record = cjson.decode(raw)
if record['claimed'] == true then
  return {'already_claimed'}
end
record['claimed'] = true
record['claimed_at'] = ARGV[1]
record['agent_name'] = ARGV[2]
if ARGV[3] == '' then
  record['agent_id'] = cjson.null
else
  record['agent_id'] = ARGV[3]
end
local updated = cjson.encode(record)
redis.call('SET', KEYS[1], updated, 'EX', tonumber(ARGV[4]))
return {'claimed', updated}
"""


def _record_key(code: str) -> str:
    return f"pairing:code:{code}"


class RedisPairingStore:
    """Pairing records as JSON strings with native Redis expiry.

    The claim runs as one Lua script so the check of ``claimed`` and the
    write of the mutated record cannot interleave with another claimer.
    """

    def __init__(self, client: Redis) -> None:
        self._client = client
        self._claim_script: Script = client.register_script(_ATOMIC_CLAIM_LUA)

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except RedisError as exc:
            logger.warning(
                "pairing_store_unavailable",
                extra={"event_name": "pairing_store_unavailable", "operation": operation},
                exc_info=True,
            )
            raise PairingStoreUnavailable() from exc

    def put(self, code: str, record: PairingRecord, ttl_seconds: int) -> None:
        with self._guard("put"):
            self._client.set(_record_key(code), record.model_dump_json(), ex=ttl_seconds)

    def add(self, code: str, record: PairingRecord, ttl_seconds: int) -> bool:
        with self._guard("add"):
            created = self._client.set(
                _record_key(code), record.model_dump_json(), ex=ttl_seconds, nx=True
            )
        return bool(created)

    def get(self, code: str) -> PairingRecord | None:
        with self._guard("get"):
            raw = self._client.get(_record_key(code))
        if raw is None:
            return None
        return PairingRecord.model_validate_json(raw)

    def atomic_claim(
        self, code: str, mutation: ClaimMutation, retention_seconds: int
    ) -> ClaimResult:
        with self._guard("atomic_claim"):
            reply = self._claim_script(
                keys=[_record_key(code)],
                args=[
                    mutation.claimed_at.isoformat(),
                    mutation.agent_name,
                    mutation.agent_id or "",
                    retention_seconds,
                ],
            )

        outcome = ClaimOutcome(_as_text(reply[0]))
        if outcome is not ClaimOutcome.CLAIMED:
            return ClaimResult(outcome)
        return ClaimResult(outcome, PairingRecord.model_validate_json(reply[1]))

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except RedisError:
            logger.warning("redis_unavailable_ping", exc_info=True)
            return False


def _as_text(value: str | bytes) -> str:
    return value.decode() if isinstance(value, bytes) else value
