from collections.abc import Callable
from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

from app.schemas.pairing import PairingErrorResponse

OPENAPI_TAGS_METADATA = [
    {
        "name": "health",
        "description": "Liveness check for the API and the pairing store.",
    },
    {
        "name": "pairing",
        "description": "Pairing codes: generate (operator), status and claim (agent).",
    },
    {
        "name": "accounts",
        "description": "Bootstrap route creating operator accounts.",
    },
]

API_DESCRIPTION = """
## AgentPair API

Human-in-the-loop pairing for autonomous agents.

### Flow
1. An operator calls `POST /pair/generate` and receives a 6-character code
   valid for 5 minutes.
2. The operator tells the code to the agent (chat, voice, anything).
3. The agent may check the code with `GET /pair/status?code=...`.
4. The agent calls `POST /pair` with the code and its name and receives an
   application password, shown exactly once.

Codes are single use. A claimed code stays consumed even if issuing the
password fails afterwards; generate a new code in that case.

### Auth model
`POST /pair/generate` uses HTTP Basic with a username and an application
password. `GET /pair/status` and `POST /pair` are public: the code is the
credential. `POST /accounts` is protected by `X-Bootstrap-Token`.

### Error format
Handshake errors are returned as:

```json
{"error": "code_used", "message": "This pairing code has already been used."}
```
"""

CLAIM_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {
        "description": "Malformed pairing code; rejected before any lookup.",
        "model": PairingErrorResponse,
        "content": {
            "application/json": {
                "example": {
                    "error": "invalid_code_format",
                    "message": (
                        "Pairing codes are 6 characters long and use letters A-Z and digits 2-9."
                    ),
                }
            }
        },
    },
    404: {
        "description": "Unknown or expired pairing code.",
        "model": PairingErrorResponse,
        "content": {
            "application/json": {
                "example": {
                    "error": "invalid_code",
                    "message": (
                        "Pairing code not found or expired. Ask the site owner for a new one."
                    ),
                }
            }
        },
    },
    410: {
        "description": "Pairing code already claimed.",
        "model": PairingErrorResponse,
        "content": {
            "application/json": {
                "example": {
                    "error": "code_used",
                    "message": "This pairing code has already been used.",
                }
            }
        },
    },
    500: {
        "description": "Code consumed but credentials could not be issued.",
        "model": PairingErrorResponse,
        "content": {
            "application/json": {
                "example": {
                    "error": "password_creation_failed",
                    "message": "Could not create an application password for this agent.",
                }
            }
        },
    },
}

GENERATE_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    401: {"description": "Missing or invalid application password."},
    403: {
        "description": "Caller may not generate codes, or not for the requested user.",
        "model": PairingErrorResponse,
        "content": {
            "application/json": {
                "example": {"error": "forbidden", "message": "Insufficient permissions."}
            }
        },
    },
}


def install_custom_openapi(app: FastAPI) -> Callable[[], dict[str, Any]]:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        app.openapi_schema = get_openapi(
            title=app.title,
            version=app.version,
            summary=app.summary,
            description=app.description,
            routes=app.routes,
            tags=OPENAPI_TAGS_METADATA,
            servers=app.servers,
            license_info=app.license_info,
        )
        return app.openapi_schema

    return custom_openapi
