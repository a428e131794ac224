"""Main FastAPI application: monitor API plus the check scheduler."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .database import init_db, close_db
from .exceptions import StoreError
from .routers import monitors_router, charts_router, status_router
from .services.history import HistoryStore
from .services.scheduler import SchedulerService

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    logger.info("Starting UptimeKit")
    
    await init_db()
    logger.info("Database initialized")
    
    app.state.scheduler.start()
    
    yield
    
    app.state.scheduler.stop()
    await close_db()
    logger.info("Shutdown complete")


def create_app(
    store: Optional[HistoryStore] = None,
    scheduler: Optional[SchedulerService] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="UptimeKit",
        description="Uptime monitoring for HTTP endpoints, DNS names, and ICMP hosts",
        version="1.0.0",
        lifespan=lifespan,
    )
    
    store = store or HistoryStore()
    app.state.store = store
    app.state.scheduler = scheduler or SchedulerService(store=store)
    
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    
    app.include_router(monitors_router)
    app.include_router(charts_router)
    app.include_router(status_router)
    
    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        logger.error(f"Store error on {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"detail": "Database error"})
    
    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "scheduler_running": app.state.scheduler.running,
        }
    
    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    
    uvicorn.run(app, host="0.0.0.0", port=settings.web_port)
