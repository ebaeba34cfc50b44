import asyncio
import json

import httpx
import pytest

from agentpair_sdk import (
    AsyncPairingClient,
    PairingClient,
    PairingRequestError,
    normalize_code,
    unchunk_password,
)


def _claim_response() -> dict[str, object]:
    return {
        "success": True,
        "site_name": "Test Site",
        "site_url": "https://site.test/",
        "rest_url": "https://site.test/api/",
        "username": "admin",
        "password": "abcd EFGH ijkl MNOP qrst UVWX",
        "manifest_url": "https://site.test/api/agentpair/v1/manifest",
        "agent_name": "Claw",
        "message": "Connected!",
    }


def test_sync_client_check_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/pair/status"
        assert request.url.params["code"] == "ABC234"
        return httpx.Response(
            status_code=200,
            json={"valid": True, "site_name": "Test Site", "site_url": "https://site.test/"},
        )

    sdk = PairingClient(base_url="http://example.test/", transport=httpx.MockTransport(handler))

    result = sdk.check_status(" abc234 ")
    assert result["valid"] is True
    assert result["site_name"] == "Test Site"


def test_sync_client_claim() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/pair"
        assert json.loads(request.content) == {
            "code": "ABC234",
            "agent_name": "Claw",
            "agent_id": "claw-1",
        }
        return httpx.Response(status_code=201, json=_claim_response())

    sdk = PairingClient(base_url="http://example.test", transport=httpx.MockTransport(handler))

    result = sdk.claim("abc234", agent_name="Claw", agent_id="claw-1")
    assert result["username"] == "admin"
    assert unchunk_password(result["password"]) == "abcdEFGHijklMNOPqrstUVWX"


def test_sync_client_claim_omits_empty_agent_id() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert json.loads(request.content) == {"code": "ABC234", "agent_name": "Agent"}
        return httpx.Response(status_code=201, json=_claim_response())

    sdk = PairingClient(base_url="http://example.test", transport=httpx.MockTransport(handler))

    sdk.claim("ABC234")


def test_sync_client_claim_code_used() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code=410,
            json={"error": "code_used", "message": "This pairing code has already been used."},
        )

    sdk = PairingClient(base_url="http://example.test", transport=httpx.MockTransport(handler))

    with pytest.raises(PairingRequestError) as exc_info:
        sdk.claim("ABC234")

    assert exc_info.value.status_code == 410
    assert exc_info.value.error == "code_used"
    assert exc_info.value.code_consumed is True


def test_sync_client_status_not_found_keeps_code() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code=404,
            json={"valid": False, "error": "invalid_code", "message": "Code not found or expired."},
        )

    sdk = PairingClient(base_url="http://example.test", transport=httpx.MockTransport(handler))

    with pytest.raises(PairingRequestError) as exc_info:
        sdk.check_status("ABC234")

    assert exc_info.value.error == "invalid_code"
    assert exc_info.value.message == "Code not found or expired."
    assert exc_info.value.code_consumed is False


def test_sync_client_non_json_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=502, text="<html>bad gateway</html>")

    sdk = PairingClient(base_url="http://example.test", transport=httpx.MockTransport(handler))

    with pytest.raises(PairingRequestError) as exc_info:
        sdk.claim("ABC234")

    assert exc_info.value.status_code == 502
    assert exc_info.value.error is None
    assert exc_info.value.message == "Bad Gateway"


def test_async_client_claim() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/pair"
        return httpx.Response(status_code=201, json=_claim_response())

    sdk = AsyncPairingClient(
        base_url="http://example.test",
        transport=httpx.MockTransport(handler),
    )

    async def run() -> None:
        result = await sdk.claim("ABC234", agent_name="Claw")
        assert result["agent_name"] == "Claw"

    asyncio.run(run())


def test_async_client_check_status_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code=410,
            json={"valid": False, "error": "code_used", "message": "Code already used."},
        )

    sdk = AsyncPairingClient(
        base_url="http://example.test",
        transport=httpx.MockTransport(handler),
    )

    async def run() -> None:
        with pytest.raises(PairingRequestError) as exc_info:
            await sdk.check_status("ABC234")
        assert exc_info.value.status_code == 410

    asyncio.run(run())


def test_normalize_code() -> None:
    assert normalize_code(" xk4p9q\n") == "XK4P9Q"


def test_sync_client_claim_failure_after_consume() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code=500,
            json={
                "error": "password_creation_failed",
                "message": "Could not create an application password for this agent.",
            },
        )

    sdk = PairingClient(base_url="http://example.test", transport=httpx.MockTransport(handler))

    with pytest.raises(PairingRequestError) as exc_info:
        sdk.claim("ABC234")

    assert exc_info.value.error == "password_creation_failed"
    assert exc_info.value.code_consumed is True


def test_bad_format_does_not_consume_code() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code=400,
            json={"error": "invalid_code_format", "message": "Pairing codes are 6 characters."},
        )

    sdk = PairingClient(base_url="http://example.test", transport=httpx.MockTransport(handler))

    with pytest.raises(PairingRequestError) as exc_info:
        sdk.claim("AB")

    assert exc_info.value.code_consumed is False
