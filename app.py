from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from config import settings
from database import SessionLocal, check_db_connection, engine, init_db
from utils.errors import AppError
from utils.responses import error_response, validation_details
import uvicorn
import logging
import os

# Set up logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Import routes
from routes import (
    auth_router,
    platforms_router,
    dashboard_router,
    today_router,
    routes_router,
    packages_router,
    earnings_router,
    shifts_router,
    hubs_router,
    notifications_router,
)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="DeliveryBridge - one dashboard for delivery drivers across platforms",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,  # Must be False when allow_origins=["*"]
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,
)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return error_response(exc.message, details=exc.details, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(
        "Validation failed",
        details=validation_details(exc.errors()),
        status_code=400
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(
        str(exc.detail),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {str(exc)}", exc_info=exc)
    return error_response("Internal server error", status_code=500)


# ============================================================================
# HEALTH
# ============================================================================

@app.get("/health")
def health_check():
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.APP_VERSION
    }


@app.get("/health/db")
def health_check_db():
    """Check database connectivity"""
    if not check_db_connection():
        return error_response("Database connection failed", status_code=503)
    return {"status": "ok", "database": engine.dialect.name}


# Include routers with /api prefix
app.include_router(auth_router, prefix="/api")
app.include_router(platforms_router, prefix="/api")
app.include_router(dashboard_router, prefix="/api")
app.include_router(today_router, prefix="/api")
app.include_router(routes_router, prefix="/api")
app.include_router(packages_router, prefix="/api")
app.include_router(earnings_router, prefix="/api")
app.include_router(shifts_router, prefix="/api")
app.include_router(hubs_router, prefix="/api")
app.include_router(notifications_router, prefix="/api")


# Startup event
@app.on_event("startup")
def startup_event():
    logger.info(f"🚀 {settings.APP_NAME} v{settings.APP_VERSION} is starting...")
    logger.info(f"🔗 Database: {engine.url.render_as_string(hide_password=True)}")

    logger.info("📊 Initializing database tables...")
    init_db()

    if settings.SEED_PLATFORMS_ON_STARTUP:
        from services.platform_catalog import seed_platforms
        db = SessionLocal()
        try:
            count = seed_platforms(db)  # upsert only
            logger.info(f"✅ Platform catalog seeded ({count} platforms)")
        finally:
            db.close()

    from utils.cache import cache
    if cache.enabled:
        if cache.ping():
            logger.info("✅ Redis cache is connected and ready!")
        else:
            logger.warning("⚠️ Redis is configured but not reachable - caching disabled")
    else:
        logger.info("ℹ️ Redis caching is disabled (no REDIS_URL configured)")

    logger.info("✅ API ready to receive requests")


@app.on_event("shutdown")
def shutdown_event():
    logger.info(f"👋 Shutting down {settings.APP_NAME}...")


# Run the application
if __name__ == "__main__":
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=port,
        reload=settings.DEBUG,
        log_level="info"
    )
