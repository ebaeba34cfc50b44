import httpx

from agentpair_sdk.errors import PairingRequestError
from agentpair_sdk.types import ClaimRequestBody, ClaimResponse, CodeStatusResponse

DEFAULT_AGENT_NAME = "Agent"


def normalize_code(code: str) -> str:
    return code.strip().upper()


def unchunk_password(password: str) -> str:
    """Application passwords are delivered in groups of four; strip the spaces."""
    return "".join(password.split())


def _claim_body(code: str, agent_name: str, agent_id: str | None) -> ClaimRequestBody:
    body: ClaimRequestBody = {"code": normalize_code(code), "agent_name": agent_name}
    if agent_id:
        body["agent_id"] = agent_id
    return body


def _raise_for_pairing_error(response: httpx.Response) -> None:
    if response.is_success:
        return
    try:
        payload = response.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}
    raise PairingRequestError(
        status_code=response.status_code,
        error=payload.get("error"),
        message=str(payload.get("message") or response.reason_phrase),
    )


class PairingClient:
    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def check_status(self, code: str) -> CodeStatusResponse:
        with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
            response = client.get(
                f"{self._base_url}/pair/status",
                params={"code": normalize_code(code)},
            )
            _raise_for_pairing_error(response)
            return response.json()

    def claim(
        self,
        code: str,
        *,
        agent_name: str = DEFAULT_AGENT_NAME,
        agent_id: str | None = None,
    ) -> ClaimResponse:
        with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
            response = client.post(
                f"{self._base_url}/pair",
                json=_claim_body(code, agent_name, agent_id),
            )
            _raise_for_pairing_error(response)
            return response.json()


class AsyncPairingClient:
    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def check_status(self, code: str) -> CodeStatusResponse:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.get(
                f"{self._base_url}/pair/status",
                params={"code": normalize_code(code)},
            )
            _raise_for_pairing_error(response)
            return response.json()

    async def claim(
        self,
        code: str,
        *,
        agent_name: str = DEFAULT_AGENT_NAME,
        agent_id: str | None = None,
    ) -> ClaimResponse:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(
                f"{self._base_url}/pair",
                json=_claim_body(code, agent_name, agent_id),
            )
            _raise_for_pairing_error(response)
            return response.json()
