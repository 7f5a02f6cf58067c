import asyncio
from fastapi import FastAPI, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from taskdesk.core.database import session_manager, aget_db
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.api.v1.endpoints.employees import router as employees_router
from taskdesk.api.v1.endpoints.tasks import router as tasks_router
from taskdesk.utils.schedulers.expire_overdue_tasks import expire_overdue_tasks_scheduler

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
import logging
from contextlib import asynccontextmanager
from taskdesk.core.config import settings
from taskdesk.core.exceptions import TaskLifecycleError
from taskdesk.core.limiter import limiter

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

scheduler_tasks = []

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Async context manager for app lifespan events"""

    try:
        logger.info("🚀 Starting TaskDesk application...")

        backend = "PostgreSQL" if settings.IS_POSTGRES else "SQLite"
        logger.info(f"🔌 Initializing {backend} connection pool...")
        await session_manager.init()
        logger.info("✅ Database connection pool ready")

        if settings.SWEEP_ENABLED:
            logger.info("📅 Starting expired task sweeper...")
            task = asyncio.create_task(expire_overdue_tasks_scheduler())
            scheduler_tasks.append(task)
            logger.info("✅ Expired task sweeper started")

    except Exception as e:
        logger.critical(f"🔥 Application startup failed: {str(e)}")
        raise

    try:
        logger.info("🏁 TaskDesk application startup complete")
        yield
    finally:
        try:
            logger.info("🛑 Beginning application shutdown...")

            # Cancel all scheduler tasks
            for task in scheduler_tasks:
                if not task.done():
                    logger.info("⏹️ Stopping scheduler...")
                    task.cancel()
                    try:
                        await task
                    except asyncio.CancelledError:
                        logger.info("✅ Scheduler stopped")
            scheduler_tasks.clear()

            logger.info("🔌 Closing database connections...")
            await session_manager.close()
            logger.info("✅ Database connections closed cleanly")
        except Exception as e:
            logger.error(f"⚠️ Error during shutdown: {str(e)}")
            raise
        finally:
            logger.info("👋 Application shutdown complete")


app = FastAPI(
    title="TaskDesk API",
    description="API for TaskDesk - employee task assignment and verification",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"Request: {request.method} {request.url}")
    response = await call_next(request)
    logger.info(f"Response status: {response.status_code}")
    return response


# CORS Configuration
if settings.ENVIRONMENT == "production":
    allowed_origins = [settings.FRONTEND_URL]
else:
    allowed_origins = [
        "http://localhost:3000",
        "http://localhost:3001",
        "http://localhost:5173",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logging.error(f"Validation Error: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors())},
    )

@app.exception_handler(TaskLifecycleError)
async def task_lifecycle_exception_handler(request: Request, exc: TaskLifecycleError):
    logger.warning(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )

@app.get("/", tags=["Health Check"])
async def health_check(db: AsyncSession = Depends(aget_db)):
    try:
        await db.execute(text("SELECT 1"))
        return {
            "status": "healthy",
            "service": "TaskDesk API",
            "database": "connected",
            "schedulers_running": len([t for t in scheduler_tasks if not t.done()])
        }
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        return {
            "status": "unhealthy",
            "service": "TaskDesk API",
            "database": "disconnected",
            "error": str(e)
        }


app.include_router(employees_router, prefix="/api/v1", tags=["Employees"])
app.include_router(tasks_router, prefix="/api/v1", tags=["Tasks"])

logger.info(f"✅ Loaded {len(app.routes)} routes")
