from agentpair_sdk.client import (
    AsyncPairingClient,
    PairingClient,
    normalize_code,
    unchunk_password,
)
from agentpair_sdk.errors import PairingRequestError

__all__ = [
    "normalize_code",
    "unchunk_password",
    "PairingClient",
    "AsyncPairingClient",
    "PairingRequestError",
]
