from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class PairingError(Exception):
    """Expected handshake failure, rendered as ``{"error": ..., "message": ...}``."""

    status_code = 500
    error = "pairing_error"
    message = "Pairing request failed."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_payload(self) -> dict[str, object]:
        return {"error": self.error, "message": self.message}


class AuthorizationDenied(PairingError):
    status_code = 403
    error = "forbidden"
    message = "Insufficient permissions."


class InvalidCodeFormat(PairingError):
    status_code = 400
    error = "invalid_code_format"
    message = "Pairing codes are 6 characters long and use letters A-Z and digits 2-9."


class CodeNotFound(PairingError):
    # Absent and expired are deliberately reported the same way.
    status_code = 404
    error = "invalid_code"
    message = "Pairing code not found or expired. Ask the site owner for a new one."


class CodeAlreadyClaimed(PairingError):
    status_code = 410
    error = "code_used"
    message = "This pairing code has already been used."


class OwnerAccountMissing(PairingError):
    status_code = 500
    error = "user_not_found"
    message = "The user who generated this code no longer exists."


class TargetAccountMissing(PairingError):
    status_code = 404
    error = "user_not_found"
    message = "The requested user does not exist."


class CredentialIssuanceFailed(PairingError):
    status_code = 500
    error = "password_creation_failed"
    message = "Could not create an application password for this agent."


class CodeGenerationExhausted(PairingError):
    status_code = 503
    error = "code_generation_failed"
    message = "Could not allocate a unique pairing code. Try again."


class PairingStoreUnavailable(PairingError):
    status_code = 503
    error = "store_unavailable"
    message = "Pairing service is temporarily unavailable."


async def pairing_error_handler(_: Request, exc: PairingError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def _is_code_field(loc: tuple[int | str, ...]) -> bool:
    return len(loc) >= 2 and loc[0] in {"body", "query"} and loc[1] == "code"


async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    code_errors = [error for error in errors if _is_code_field(tuple(error.get("loc", ())))]
    if code_errors:
        payload = InvalidCodeFormat().to_payload()
        if code_errors[0]["loc"][0] == "query":
            payload = {"valid": False, **payload}
        return JSONResponse(status_code=InvalidCodeFormat.status_code, content=payload)

    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request.")
    if field:
        message = f"{field}: {message}"
    return JSONResponse(status_code=422, content={"error": "invalid_request", "message": message})
