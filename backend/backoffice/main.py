from __future__ import annotations
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from backoffice.config import settings
from backoffice.logging_setup import configure_logging
from backoffice.routes.system import router as system_router
from backoffice.routes.withdrawals import router as withdrawals_router
from backoffice.routes.ledger import router as ledger_router
from backoffice.routes.vouchers import router as vouchers_router
from backoffice.routes.domains import router as domains_router
import structlog

configure_logging(settings.log_level, json=settings.log_json)
log = structlog.get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("startup", env=settings.environment, version=settings.app_version, git_sha=settings.git_sha)
    yield
    log.info("shutdown")

app = FastAPI(
    title=f"{settings.app_display_name} API",
    version=settings.app_version,
    lifespan=lifespan,
    description="Points settlement, prepaid voucher batches and settings exchange for the site back-office",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "dev" else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(system_router)
app.include_router(withdrawals_router)
app.include_router(ledger_router)
app.include_router(vouchers_router)
app.include_router(domains_router)

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    structlog.contextvars.bind_contextvars(request_id=rid)
    try:
        response: Response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()
    response.headers["X-Request-ID"] = rid
    return response
