from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from alembic import command  # type: ignore
from alembic.config import Config
from sqlalchemy import text

from face_attendance.config import settings
from face_attendance.database import dispose_engine, get_engine
from face_attendance.exceptions import AttendanceError, ConfigurationError
from face_attendance.routers import (
    attendance_router,
    health_router,
    ui_router,
    users_router,
)
from face_attendance.routers.ui import is_loopback_host
from face_attendance.utils.logging import configure_logging, get_logger

ROOT_DIR = Path(__file__).resolve().parents[1]
WEBUI_DIR = Path(__file__).resolve().parent / "webui"

logger = get_logger(__name__)


def run_migrations() -> None:
    alembic_cfg = Config(str(ROOT_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(ROOT_DIR / "alembic"))
    alembic_cfg.attributes["configure_logger"] = False
    command.upgrade(alembic_cfg, "head")


# Lifecycle Manager
@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # Raises ConfigurationError when DATABASE_URL is missing: refuse to start.
    engine = get_engine()
    logger.info("Server starting up... DB: %s", settings.DATABASE_URL.split("@")[-1])

    if settings.RUN_MIGRATIONS:
        try:
            logger.info("Checking for database migrations...")
            # env.py drives its own event loop, so keep it off this one.
            await run_in_threadpool(run_migrations)
            logger.info("Database is up to date.")
        except Exception as e:
            logger.warning("Migration warning: %s", e)
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection established.")
    except Exception as e:
        logger.critical("Database connection failed! %s", e)

    yield

    logger.info("Server shutting down...")
    await dispose_engine()


app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def enforce_local_only_mode(request: Request, call_next):
    if settings.LOCAL_ONLY:
        client_host = request.client.host if request.client else None
        if not is_loopback_host(client_host):
            return JSONResponse(
                status_code=403,
                content={
                    "error": "local_only",
                    "detail": "Local-only mode is enabled. Access is allowed only from this machine.",
                },
            )
    return await call_next(request)


@app.exception_handler(AttendanceError)
async def attendance_error_handler(request: Request, exc: AttendanceError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.message},
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error("Configuration error: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"error": "configuration_error", "detail": str(exc)},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    # Anything not in the taxonomy is a defect: log the traceback, answer JSON.
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "detail": f"Something went wrong: {type(exc).__name__}: {exc}",
        },
    )


if WEBUI_DIR.exists():
    app.mount("/ui/static", StaticFiles(directory=str(WEBUI_DIR)), name="ui-static")

# --- Register Routers ---
app.include_router(users_router)
app.include_router(attendance_router)
app.include_router(health_router)
app.include_router(ui_router)


def start():
    import uvicorn

    host = "127.0.0.1" if settings.LOCAL_ONLY else settings.HOST
    uvicorn.run(
        "face_attendance.main:app",
        host=host,
        port=settings.PORT,
        reload=settings.DEBUG,
    )


@app.get("/")
async def root():
    return {
        "message": f"Welcome to {settings.PROJECT_NAME}",
        "ui": "/ui",
        "docs": "/docs",
        "version": settings.VERSION,
        "local_only": settings.LOCAL_ONLY,
    }
