from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.deps import get_pairing_store
from app.modules.pairing.store import PairingStore

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health Check")
def health_endpoint(
    store: Annotated[PairingStore, Depends(get_pairing_store)],
) -> JSONResponse:
    store_ok = store.ping()
    return JSONResponse(
        status_code=200 if store_ok else 503,
        content={"ok": store_ok, "pairing_store": "ok" if store_ok else "unavailable"},
    )
