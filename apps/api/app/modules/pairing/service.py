import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta

from app.core.clock import Clock
from app.core.errors import (
    AuthorizationDenied,
    CodeAlreadyClaimed,
    CodeGenerationExhausted,
    CodeNotFound,
    CredentialIssuanceFailed,
    InvalidCodeFormat,
    OwnerAccountMissing,
    TargetAccountMissing,
)
from app.models.account import Account
from app.modules.accounts.service import CAP_ACT_FOR_OTHERS, CAP_GENERATE_PAIRING, IdentityStore
from app.modules.credentials.service import (
    CredentialIssuanceError,
    CredentialIssuer,
    chunk_password,
    slugify,
)
from app.modules.pairing.codes import generate_code, is_well_formed, mask_code, normalize_code
from app.modules.pairing.store import ClaimMutation, ClaimOutcome, PairingRecord, PairingStore
from app.schemas.pairing import ClaimedCredentials, CodeStatus, GeneratedCode

logger = logging.getLogger("agentpair.handshake")

DEFAULT_AGENT_NAME = "Agent"
AGENT_NAME_MAX_LENGTH = 100
AGENT_ID_MAX_LENGTH = 200
CLAIM_SUCCESS_MESSAGE = "Connected! Save these credentials. The password won't be shown again."


@dataclass(frozen=True)
class SiteIdentity:
    name: str
    url: str
    rest_url: str
    manifest_url: str
    credential_name_prefix: str


class HandshakeService:
    """Issues pairing codes and exchanges a claimed code for an application password.

    Every failure after ``atomic_claim`` succeeds leaves the code consumed;
    the operator has to issue a fresh code instead of retrying.
    """

    def __init__(
        self,
        *,
        store: PairingStore,
        identity: IdentityStore,
        issuer: CredentialIssuer,
        clock: Clock,
        site: SiteIdentity,
        code_ttl_seconds: int = 300,
        claimed_retention_seconds: int = 60,
        max_generate_attempts: int = 8,
        code_factory: Callable[[], str] = generate_code,
    ) -> None:
        self._store = store
        self._identity = identity
        self._issuer = issuer
        self._clock = clock
        self._site = site
        self._code_ttl_seconds = code_ttl_seconds
        self._claimed_retention_seconds = claimed_retention_seconds
        self._max_generate_attempts = max_generate_attempts
        self._code_factory = code_factory

    def generate(self, caller: Account, target_owner_id: int | None = None) -> GeneratedCode:
        if not self._identity.has_capability(caller, CAP_GENERATE_PAIRING):
            self._log_generate_denied(caller, target_owner_id, CAP_GENERATE_PAIRING)
            raise AuthorizationDenied()

        owner = caller
        if target_owner_id is not None and target_owner_id != caller.id:
            if not self._identity.has_capability(caller, CAP_ACT_FOR_OTHERS):
                self._log_generate_denied(caller, target_owner_id, CAP_ACT_FOR_OTHERS)
                raise AuthorizationDenied("You may only generate pairing codes for yourself.")
            target = self._identity.get_account(target_owner_id)
            if target is None:
                raise TargetAccountMissing()
            owner = target

        created_at = self._clock.now().replace(microsecond=0)
        expires_at = created_at + timedelta(seconds=self._code_ttl_seconds)

        for attempt in range(1, self._max_generate_attempts + 1):
            code = self._code_factory()
            record = PairingRecord(
                code=code,
                owner_id=owner.id,
                created_at=created_at,
                expires_at=expires_at,
            )
            if self._store.add(code, record, self._code_ttl_seconds):
                break
            logger.info(
                "pairing_code_collision",
                extra={"event_name": "pairing_code_collision", "attempt": attempt},
            )
        else:
            raise CodeGenerationExhausted()

        logger.info(
            "pairing_code_generated",
            extra={
                "event_name": "pairing_code_generated",
                "code": mask_code(code),
                "caller_id": caller.id,
                "owner_id": owner.id,
            },
        )
        return GeneratedCode(
            code=code,
            expires_in=self._code_ttl_seconds,
            expires_at=expires_at,
            for_user=owner.username,
        )

    def status(self, raw_code: str) -> CodeStatus:
        code = self._validated(raw_code)
        record = self._store.get(code)
        if record is None:
            raise CodeNotFound("Code not found or expired.")
        if record.claimed:
            raise CodeAlreadyClaimed("Code already used.")
        return CodeStatus(valid=True, site_name=self._site.name, site_url=self._site.url)

    def claim(
        self,
        raw_code: str,
        agent_name: str | None = DEFAULT_AGENT_NAME,
        agent_id: str | None = None,
    ) -> ClaimedCredentials:
        code = self._validated(raw_code)
        agent_name = (agent_name or "").strip()[:AGENT_NAME_MAX_LENGTH] or DEFAULT_AGENT_NAME
        agent_id = (agent_id or "").strip()[:AGENT_ID_MAX_LENGTH] or None

        result = self._store.atomic_claim(
            code,
            ClaimMutation(claimed_at=self._clock.now(), agent_name=agent_name, agent_id=agent_id),
            self._claimed_retention_seconds,
        )
        if result.outcome is ClaimOutcome.NOT_FOUND:
            self._log_claim_rejected(code, CodeNotFound.error)
            raise CodeNotFound()
        if result.outcome is ClaimOutcome.ALREADY_CLAIMED:
            self._log_claim_rejected(code, CodeAlreadyClaimed.error)
            raise CodeAlreadyClaimed()

        assert result.record is not None
        owner_id = result.record.owner_id
        logger.info(
            "pairing_code_claimed",
            extra={
                "event_name": "pairing_code_claimed",
                "code": mask_code(code),
                "owner_id": owner_id,
                "agent_name": agent_name,
                "agent_id": agent_id,
            },
        )

        # From here on the code stays burned whatever happens.
        owner = self._identity.get_account(owner_id)
        if owner is None:
            self._log_claim_rejected(code, OwnerAccountMissing.error, owner_id=owner_id)
            raise OwnerAccountMissing()

        try:
            issued = self._issuer.mint(
                owner,
                name=f"{self._site.credential_name_prefix} ({agent_name})",
                app_id=f"agentpair-{slugify(agent_name)}",
            )
        except CredentialIssuanceError as exc:
            logger.error(
                "pairing_credential_failed",
                extra={
                    "event_name": "pairing_credential_failed",
                    "code": mask_code(code),
                    "owner_id": owner_id,
                    "agent_name": agent_name,
                },
                exc_info=True,
            )
            raise CredentialIssuanceFailed() from exc

        logger.info(
            "pairing_credential_issued",
            extra={
                "event_name": "pairing_credential_issued",
                "owner_id": owner_id,
                "agent_name": agent_name,
                "credential_id": str(issued.credential_id),
            },
        )
        return ClaimedCredentials(
            site_name=self._site.name,
            site_url=self._site.url,
            rest_url=self._site.rest_url,
            username=owner.username,
            password=chunk_password(issued.password),
            manifest_url=self._site.manifest_url,
            agent_name=agent_name,
            message=CLAIM_SUCCESS_MESSAGE,
        )

    def _validated(self, raw_code: str) -> str:
        code = normalize_code(raw_code)
        if not is_well_formed(code):
            raise InvalidCodeFormat()
        return code

    def _log_generate_denied(
        self, caller: Account, target_owner_id: int | None, capability: str
    ) -> None:
        logger.warning(
            "pairing_generate_denied",
            extra={
                "event_name": "pairing_generate_denied",
                "caller_id": caller.id,
                "owner_id": target_owner_id,
                "reason_code": capability,
            },
        )

    def _log_claim_rejected(self, code: str, reason_code: str, owner_id: int | None = None) -> None:
        logger.info(
            "pairing_claim_rejected",
            extra={
                "event_name": "pairing_claim_rejected",
                "code": mask_code(code),
                "owner_id": owner_id,
                "reason_code": reason_code,
            },
        )
