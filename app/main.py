import logging
from contextlib import asynccontextmanager
from decimal import Decimal, InvalidOperation
from urllib.parse import urlparse

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import listings, order
from app.config import settings
from app.db_init import init_db
from app.services.payment_gateways import COD_GATEWAY_ID, get_enabled_payment_methods
from app.webhooks import auction_won

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("app.startup")

POSTGRES_SCHEMES = {"postgres", "postgresql", "postgresql+psycopg"}


def _is_localhost(host: str | None) -> bool:
    return host in {"localhost", "127.0.0.1"}


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.hostname)


def _get_cors_origins(cors_raw: str) -> list[str]:
    return [origin.strip() for origin in cors_raw.split(",") if origin.strip()]


def _validate_database_url_for_runtime(database_url: str) -> None:
    parsed = urlparse(database_url)
    scheme = parsed.scheme

    if not scheme:
        raise RuntimeError("DATABASE_URL is missing URL scheme (expected postgresql:// or postgresql+psycopg://).")
    if scheme == "sqlite":
        return
    if scheme not in POSTGRES_SCHEMES:
        raise RuntimeError(
            f"DATABASE_URL has unsupported scheme '{scheme}' "
            "(expected postgresql:// or postgresql+psycopg://)."
        )
    if not parsed.hostname:
        raise RuntimeError("DATABASE_URL is missing host.")
    if not parsed.path.lstrip("/"):
        raise RuntimeError("DATABASE_URL is missing database name in path.")


def _db_url_diagnostics(database_url: str) -> str:
    parsed = urlparse(database_url)
    host = parsed.hostname or "<missing>"
    port = parsed.port or "<missing>"
    db_name = parsed.path.lstrip("/") or "<missing>"
    scheme = parsed.scheme or "<missing>"

    tips = []
    if _is_localhost(host):
        tips.append("Host points to localhost; make sure the database runs next to the app.")
    if scheme in {"postgres", "postgresql"}:
        tips.append("URL scheme is fine; app normalizes it to postgresql+psycopg internally.")
    if not tips:
        tips.append("URL structure looks valid; check network access, DB credentials, and DB service status.")

    return f"scheme={scheme}, host={host}, port={port}, database={db_name}; tips={' | '.join(tips)}"


def _validate_required_env_for_runtime() -> None:
    errors = []
    warnings = []

    if not settings.JWT_SECRET.strip():
        errors.append("JWT_SECRET is required.")

    origins = _get_cors_origins(settings.CORS_ORIGINS)
    if not origins:
        errors.append("CORS_ORIGINS must contain at least one comma-separated origin URL.")
    else:
        invalid_origins = [origin for origin in origins if not _is_http_url(origin)]
        if invalid_origins:
            errors.append(f"CORS_ORIGINS contains invalid URL(s): {', '.join(invalid_origins)}")

    if len(settings.STORE_CURRENCY) != 3:
        errors.append("STORE_CURRENCY must be a 3-letter ISO currency code.")

    try:
        shipping_cost = Decimal(settings.AUTO_ORDER_SHIPPING_COST or "0")
    except InvalidOperation:
        shipping_cost = None
    if shipping_cost is None or not shipping_cost.is_finite() or shipping_cost < 0:
        errors.append("AUTO_ORDER_SHIPPING_COST must be a non-negative decimal amount.")

    if not settings.AUCTION_WEBHOOK_SECRET:
        warnings.append("AUCTION_WEBHOOK_SECRET is not set; auction-won webhooks are accepted unsigned.")
    if COD_GATEWAY_ID not in get_enabled_payment_methods():
        warnings.append("Cash on delivery is disabled; auction-won orders will fail to be created.")

    if warnings:
        logger.warning("Startup environment warnings: %s", " | ".join(warnings))

    if errors:
        raise RuntimeError("Startup environment validation failed: " + " | ".join(errors))


@asynccontextmanager
async def lifespan(app: FastAPI):
    database_url = "<unavailable>"
    logger.info("Application startup initiated.")
    try:
        database_url = settings.DATABASE_URL
        logger.info("DATABASE_URL diagnostics at startup: %s", _db_url_diagnostics(database_url))
        _validate_database_url_for_runtime(database_url)
        _validate_required_env_for_runtime()
        init_db()
    except Exception as exc:
        diagnostics = (
            _db_url_diagnostics(database_url)
            if database_url != "<unavailable>"
            else "DATABASE_URL unavailable (missing or unreadable)."
        )
        logger.exception(
            "Database initialization failed: %s. DATABASE_URL diagnostics: %s",
            str(exc),
            diagnostics,
        )
        raise
    logger.info("Application startup completed successfully.")
    yield


app = FastAPI(
    title="Auction Orders API",
    description=(
        "Creates orders for auction winners without checkout. "
        "The auction engine calls `POST /webhooks/auction-won`; bidders read their orders with a JWT."
    ),
    version="1.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Listings", "description": "Auction listings and their closing state."},
        {"name": "Orders", "description": "Orders of the authenticated bidder (requires auth)."},
        {"name": "Webhooks", "description": "Called by the auction engine."},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_cors_origins(settings.CORS_ORIGINS),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(listings.router, prefix="/api/listings", tags=["Listings"])
app.include_router(order.router, prefix="/api/orders", tags=["Orders"])
app.include_router(auction_won.router, prefix="/webhooks", tags=["Webhooks"])


@app.get("/")
def root():
    return {"status": "ok", "service": "Auction Orders API"}


@app.get("/health")
def health():
    return {"status": "ok"}
