from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from sqlalchemy.ext.asyncio import async_sessionmaker
from starlette.exceptions import HTTPException
from starlette.responses import JSONResponse

from aivestor.api.auth import router as auth_router
from aivestor.api.brokerage import router as brokerage_router
from aivestor.api.feed import router as feed_router
from aivestor.api.health import router as health_router
from aivestor.api.metrics import router as metrics_router
from aivestor.api.onboarding import router as onboarding_router
from aivestor.api.portfolios import router as portfolios_router
from aivestor.api.predictions import router as predictions_router
from aivestor.api.users import router as users_router
from aivestor.api.ws import router as ws_router
from aivestor.config import GlobalConfig
from aivestor.db.session import SessionLocal
from aivestor.dependencies import limiter
from aivestor.ledger.errors import LedgerError
from aivestor.ledger.store import ConnectionStore, LedgerStore, SqlConnectionStore, SqlLedgerStore
from aivestor.middleware.auth_middleware import AuthMiddleware
from aivestor.middleware.request_id import RequestIdMiddleware
from aivestor.services.auth_service import AuthError, AuthService
from aivestor.services.brokerage_client import MOCK_BROKERAGE_PORTFOLIO, BrokerageClient, MockBrokerageClient
from aivestor.services.brokerage_service import BrokerageService
from aivestor.services.google_auth import GoogleTokenVerifier
from aivestor.services.ledger_service import LedgerService
from aivestor.services.prediction_client import PredictionClient
from aivestor.services.price_ticker import PriceBroadcaster, price_ticks
from aivestor.services.token_service import TokenService
from aivestor.utils.encryption import EncryptionManager
from aivestor.utils.logging import setup_logging

settings = GlobalConfig()
logger = logging.getLogger(__name__)


def _filter_sensitive_data(event, hint):
    """Strip sensitive data from Sentry events."""
    if "request" in event:
        headers = event["request"].get("headers", {})
        for key in list(headers.keys()):
            if key.lower() in ("cookie", "authorization", "x-api-key"):
                headers[key] = "[FILTERED]"
    return event


def init_services(
    app: FastAPI,
    *,
    ledger_store: LedgerStore,
    connection_store: ConnectionStore,
    session_factory: async_sessionmaker = SessionLocal,
    brokerage_client: BrokerageClient | None = None,
    encryption: EncryptionManager | None = None,
    config: GlobalConfig | None = None,
) -> None:
    """Wire every service onto ``app.state``. The lifespan passes the SQL stores."""
    config = config or settings

    if encryption is None:
        if config.encryption_key_list:
            encryption = EncryptionManager(config.encryption_key_list)
        else:
            logger.warning("ENCRYPTION_KEYS not set; brokerage credentials will not survive a restart")
            encryption = EncryptionManager.ephemeral()
    app.state.encryption = encryption

    tokens = TokenService(config.jwt_secret, config.jwt_algorithm, config.access_token_expire_minutes)
    app.state.token_service = tokens
    app.state.auth_service = AuthService(
        session_factory=session_factory,
        tokens=tokens,
        google=GoogleTokenVerifier(config.google_client_id),
        reset_expire=timedelta(minutes=config.reset_token_expire_minutes),
        verify_expire=timedelta(hours=config.verify_token_expire_hours),
    )

    ledger = LedgerService(ledger_store, max_retries=config.ledger_max_retries)
    app.state.ledger_service = ledger
    app.state.brokerage_service = BrokerageService(
        connections=connection_store,
        ledger=ledger,
        client=brokerage_client or MockBrokerageClient(),
        encryption=encryption,
    )
    app.state.prediction_client = PredictionClient(
        config.ai_service_url, tokens, timeout=config.ai_service_timeout_sec
    )

    seed_prices = {row["symbol"]: row["last_price"] for row in MOCK_BROKERAGE_PORTFOLIO}
    app.state.price_broadcaster = PriceBroadcaster(
        price_ticks(config.price_tick_symbol_list, config.price_tick_interval_sec, seed_prices),
        interval=config.price_tick_interval_sec,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize Sentry before anything else
    if settings.sentry_dsn:
        import sentry_sdk
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            traces_sample_rate=0.2,
            send_default_pii=False,
            before_send=_filter_sensitive_data,
        )

    setup_logging(settings.log_level)
    logger.info("Starting aivestor backend...")

    init_services(
        app,
        ledger_store=SqlLedgerStore(SessionLocal),
        connection_store=SqlConnectionStore(SessionLocal),
    )
    ticker_task = asyncio.create_task(app.state.price_broadcaster.run())

    yield

    logger.info("Shutting down price broadcaster...")
    ticker_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await ticker_task
    logger.info("Shutdown complete")


app = FastAPI(
    title="Aivestor",
    description="Investment app backend: auth, portfolios and a brokerage simulator",
    version="0.1.0",
    lifespan=lifespan,
)

# Rate limiting (slowapi)
app.state.limiter = limiter


def _rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        {"error": f"Rate limit exceeded: {exc.detail}"},
        status_code=429,
        headers={"Retry-After": "60"},
    )


async def _ledger_error_handler(request: Request, exc: LedgerError):
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


async def _auth_error_handler(request: Request, exc: AuthError):
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def _http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    message = f"{field}: {first.get('msg', 'invalid')}" if field else first.get("msg", "Invalid request")
    return JSONResponse({"error": message, "kind": "validation_error"}, status_code=400)


app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)
app.add_exception_handler(LedgerError, _ledger_error_handler)
app.add_exception_handler(AuthError, _auth_error_handler)
app.add_exception_handler(HTTPException, _http_exception_handler)
app.add_exception_handler(RequestValidationError, _validation_error_handler)

# Middleware (order matters: last added = first executed)
app.add_middleware(AuthMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIdMiddleware)

app.include_router(health_router)
app.include_router(metrics_router)
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(portfolios_router)
app.include_router(feed_router)
app.include_router(onboarding_router)
app.include_router(brokerage_router)
app.include_router(predictions_router)
app.include_router(ws_router)


@app.get("/")
async def root():
    return {"status": "running", "service": "aivestor"}
