"""
Order Desk - FastAPI Backend Application
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from orderdesk import __version__
from orderdesk.config import settings
from orderdesk.api import analytics, boards, history, orders
from orderdesk.errors import OrderDeskError


def configure_logging() -> None:
    """Configure structured logging; JSON unless log_format is console"""
    logging.basicConfig(format="%(message)s", level=settings.log_level.upper())
    
    if settings.log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()
    
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting Order Desk API", version=__version__)
    yield
    logger.info("Shutting down Order Desk API")


# Create FastAPI application
app = FastAPI(
    title="Order Desk",
    description="Order lifecycle, live boards, history and analytics for restaurant staff",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(OrderDeskError)
async def order_desk_error_handler(request: Request, exc: OrderDeskError):
    """Map domain errors to HTTP responses"""
    logger.info(
        "Request rejected",
        path=request.url.path,
        error=type(exc).__name__,
        order_id=exc.order_id,
        detail=exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


# Health check endpoints
@app.get("/health")
async def health():
    """Basic health check"""
    return {"status": "healthy", "service": "api", "version": __version__}


@app.get("/health/ready")
async def ready():
    """Readiness check with dependency verification"""
    from sqlalchemy import text
    from orderdesk.database import SessionLocal
    
    checks = {}
    
    # Check database
    try:
        async with SessionLocal() as db:
            await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"failed: {str(e)}"
    
    # Check Redis
    try:
        from orderdesk.jobs.celery_app import celery_app
        celery_app.control.ping(timeout=1)
        checks["redis"] = "ok"
    except Exception as e:
        checks["redis"] = f"failed: {str(e)}"
    
    all_ok = all(v == "ok" for v in checks.values())
    
    return {
        "status": "ready" if all_ok else "not_ready",
        "checks": checks,
    }


# Include API routers
app.include_router(orders.router, prefix="/restaurants/{restaurant_id}/orders", tags=["Orders"])
app.include_router(boards.router, prefix="/restaurants/{restaurant_id}/boards", tags=["Boards"])
app.include_router(history.router, prefix="/restaurants/{restaurant_id}/history", tags=["History"])
app.include_router(analytics.router, prefix="/restaurants/{restaurant_id}/analytics", tags=["Analytics"])


if __name__ == "__main__":
    import uvicorn
    
    uvicorn.run(
        "orderdesk.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
