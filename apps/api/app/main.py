from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.routes.accounts import router as accounts_router
from app.api.routes.health import router as health_router
from app.api.routes.pairing import router as pairing_router
from app.core.config import settings
from app.core.errors import PairingError, pairing_error_handler, validation_error_handler
from app.core.openapi import API_DESCRIPTION, install_custom_openapi
from app.db.session import init_db
from app.observability.logging import configure_logging
from app.observability.request_logging import request_logging_middleware


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    init_db()
    yield


app = FastAPI(
    title="AgentPair API",
    summary="Pair autonomous agents with a one-time code",
    description=API_DESCRIPTION,
    version="0.3.0",
    license_info={"name": "Apache-2.0"},
    openapi_url="/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    servers=[
        {"url": "http://localhost:8000", "description": "Local development"},
    ],
    lifespan=lifespan,
)
app.openapi = install_custom_openapi(app)  # type: ignore[method-assign]
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(BaseHTTPMiddleware, dispatch=request_logging_middleware)
app.add_exception_handler(PairingError, pairing_error_handler)  # type: ignore[arg-type]
app.add_exception_handler(
    RequestValidationError, validation_error_handler  # type: ignore[arg-type]
)

app.include_router(health_router)
app.include_router(pairing_router)
app.include_router(accounts_router)
