from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import time

from .core.config import settings
from .core.database import close_db_connections, init_models
from .core.error_handlers import register_exception_handlers
from .core.logging import setup_logging

# Import all routers
from .routers import (
    health, auth, users, admin, branches, classrooms,
    classes, students, enrollments, attendance, payments,
)

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting Tuition Center API ({settings.environment})")

    if settings.create_schema_on_startup:
        await init_models()

    yield

    logger.info("Shutting down Tuition Center API")
    await close_db_connections()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Tuition Center API",
    description="Scheduling, enrollment, attendance and payments for a multi-branch tuition center",
    version=settings.app_version,
    lifespan=lifespan,
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    logger.info(f"{request.method} {request.url.path} - {process_time:.3f}s")
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,
)

register_exception_handlers(app)

# Include all routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(admin.router)
app.include_router(branches.router)
app.include_router(classrooms.router)
app.include_router(classes.router)
app.include_router(students.router)
app.include_router(enrollments.router)
app.include_router(attendance.router)
app.include_router(payments.router)


@app.get("/")
async def root():
    return {
        "message": "Tuition Center API",
        "version": settings.app_version,
        "status": "active",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
