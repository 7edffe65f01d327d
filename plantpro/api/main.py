from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy import text
import time

from plantpro.api.core.database import engine
from plantpro.api.core.exceptions import register_exception_handlers
from plantpro.api.config import settings
from plantpro.utils.logger import get_logger, setup_logging

# Configure logging
setup_logging()
logger = get_logger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup
    logger.info(f"Starting {settings.APP_NAME}...")

    # Test database connection
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
            logger.info("Database connected")
    except Exception as e:
        # Allow the API to start while the database is temporarily unavailable
        logger.error(f"Database connection failed: {e}")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")
    try:
        await engine.dispose()
    except Exception as e:
        logger.warning(f"Engine dispose failed: {e}")


# Initialize FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="Plantation analytics dashboard and report API",
    version=API_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# GZip compression for responses
app.add_middleware(GZipMiddleware, minimum_size=1000)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    logger.info(f"{request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s")
    return response


# Domain errors (404/409/400/401/403)
register_exception_handlers(app)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if settings.DEBUG else "An error occurred"
        }
    )


# Health check endpoint
@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint for monitoring"""
    db_status = "connected"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Health check database probe failed: {e}")
        db_status = "disconnected"

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "version": API_VERSION,
        "database": db_status
    }


# Import routers
from plantpro.api.routers import dashboard

# Include routers
app.include_router(
    dashboard.router,
    prefix=f"{settings.API_V1_STR}/dashboard",
    tags=["Dashboard"]
)


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """API root endpoint"""
    prefix = f"{settings.API_V1_STR}/dashboard"
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "docs": "/api/docs",
        "version": API_VERSION,
        "endpoints": {
            "health": "/health",
            "docs": "/api/docs",
            "summary": f"{prefix}/summary",
            "plant_lots": f"{prefix}/plant-lots",
            "zones": f"{prefix}/zones",
            "production_trends": f"{prefix}/production-trends",
            "health_trends": f"{prefix}/health-trends",
            "quick_stats": f"{prefix}/quick-stats",
            "alerts": f"{prefix}/alerts",
            "reports": f"{prefix}/reports/generate"
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "plantpro.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info"
    )
