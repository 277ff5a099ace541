"""
Happy Sourdough - Backend API
Storefront and back-office API for the bakery
"""
import logging
import time
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables before settings are read
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sourdough import __version__
from sourdough.api import account, admin, admin_products, checkout, delivery, discounts, loyalty, orders, products, settings as settings_api, webhooks
from sourdough.core.config import settings
from sourdough.core.database import CONNECTION_TIMEOUT, get_db_connection_with_retry
from sourdough.core.errors import SourdoughError
from sourdough.core.rate_limit import RateLimitMiddleware

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION,
)

app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"],
)


@app.exception_handler(SourdoughError)
async def sourdough_error_handler(request: Request, exc: SourdoughError):
    """Application errors become {"detail": message} with the error's status code"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")

    content = {"detail": exc.message}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


# Include API routers
app.include_router(products.router, prefix="/api/v1/products", tags=["Products"])
app.include_router(delivery.router, prefix="/api/v1/delivery", tags=["Delivery"])
app.include_router(discounts.router, prefix="/api/v1/discounts", tags=["Discounts"])
app.include_router(orders.router, prefix="/api/v1/orders", tags=["Orders"])
app.include_router(loyalty.router, prefix="/api/v1/loyalty", tags=["Loyalty"])
app.include_router(checkout.router, prefix="/api/v1/checkout", tags=["Checkout"])
app.include_router(webhooks.router, prefix="/api/v1/webhooks", tags=["Webhooks"])
app.include_router(settings_api.router, prefix="/api/v1/settings", tags=["Settings"])
app.include_router(account.router, prefix="/api/v1/account", tags=["Account"])
app.include_router(admin_products.router, prefix="/api/v1/admin/products", tags=["Admin"])
app.include_router(admin.router, prefix="/api/v1/admin", tags=["Admin"])


@app.get("/")
async def root():
    """Root endpoint - API status"""
    return {
        "message": "Happy Sourdough API",
        "status": "online",
        "version": __version__,
    }


@app.get("/health")
async def health():
    """Health check endpoint for monitoring - tests database connectivity"""
    start_time = time.time()

    db_status = "unknown"
    db_latency_ms = None
    db_error = None

    try:
        # Minimal retry keeps the check fast
        conn = get_db_connection_with_retry(max_retries=1, retry_delay=0.5)
        cursor = conn.cursor()

        db_start = time.time()
        cursor.execute("SELECT 1")
        cursor.fetchone()
        db_latency_ms = round((time.time() - db_start) * 1000, 2)

        cursor.close()
        conn.close()
        db_status = "connected"
    except Exception as e:
        db_status = "disconnected"
        db_error = str(e)

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "service": "happy-sourdough-api",
        "version": __version__,
        "database": {
            "status": db_status,
            "latency_ms": db_latency_ms,
            "error": db_error,
            "connection_timeout_s": CONNECTION_TIMEOUT,
        },
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
    }
