# app/main.py

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
import sys
import time
import psutil

from app.core.database import test_connection, init_db, AsyncSessionLocal
from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.core.rate_limiter import limiter
from app.services.auth_service import get_user_by_email, create_user
from app.models.user import UserRole

# Routers
from app.api.endpoints import (
    auth as auth_router,
    users as users_router,
    applications as applications_router,
    notifications as notifications_router,
)

# ------------------------------------------------------------
# LOGURU CONFIGURATION
# ------------------------------------------------------------
logger.remove()
logger.add(
    sys.stdout,
    level=settings.LOG_LEVEL,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
           "<level>{level}</level> | "
           "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
           "<level>{message}</level>",
    colorize=True,
    backtrace=True,
    diagnose=settings.ENV != "prod",
)

# ------------------------------------------------------------
# FASTAPI APP INIT
# ------------------------------------------------------------
app = FastAPI(
    title="CampusHub Backend",
    version="1.0.0",
    description="Applications and approval workflow service for CampusHub.",
)

START_TIME = time.time()

app.state.limiter = limiter
register_exception_handlers(app)


# ------------------------------------------------------------
# METRICS API
# ------------------------------------------------------------
@app.get("/api/metrics", tags=["System"])
async def metrics():
    uptime_seconds = int(time.time() - START_TIME)
    cpu_usage = psutil.cpu_percent(interval=None)
    ram_usage = psutil.virtual_memory().percent
    try:
        disk_usage = psutil.disk_usage('/').percent
    except OSError:
        disk_usage = 0

    # Database health & latency
    db_start = time.time()
    try:
        await test_connection()
        db_status = "Connected"
        db_latency = round((time.time() - db_start) * 1000, 2)
    except Exception:
        logger.exception("Metrics: database ping failed")
        db_status = "Error"
        db_latency = 0

    return {
        "success": True,
        "data": {
            "status": "Online",
            "version": app.version,
            "cpu": cpu_usage,
            "ram": ram_usage,
            "disk": disk_usage,
            "uptime": uptime_seconds,
            "database": db_status,
            "db_latency": db_latency,
        },
    }


# ------------------------------------------------------------
# CORS CONFIGURATION
# ------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

# ------------------------------------------------------------
# REGISTER ROUTERS
# ------------------------------------------------------------
app.include_router(auth_router.router)
app.include_router(users_router.router)
app.include_router(applications_router.router)
app.include_router(notifications_router.router)


# ------------------------------------------------------------
# APPLICATION STARTUP EVENTS
# ------------------------------------------------------------
@app.on_event("startup")
async def on_startup():
    logger.info("Starting CampusHub backend...")

    # 1) Database connection test
    try:
        await test_connection()
        logger.success("Database connection established.")
    except Exception:
        logger.exception("Startup aborted: Database connection failed.")
        return

    # 2) Initialize database tables
    try:
        await init_db()
        logger.success("Database tables ready.")
    except Exception as e:
        logger.warning(f"Table initialization encountered an issue: {e}")

    # 3) Seed Super Admin
    if not settings.SUPER_ADMIN_EMAIL or not settings.SUPER_ADMIN_PASSWORD:
        logger.warning("Missing Super Admin credentials in settings.")
    else:
        try:
            async with AsyncSessionLocal() as session:
                existing = await get_user_by_email(session, settings.SUPER_ADMIN_EMAIL)
                if not existing:
                    logger.info(f"Seeding Super Admin: {settings.SUPER_ADMIN_EMAIL}")
                    await create_user(
                        session=session,
                        name=settings.SUPER_ADMIN_NAME or "Super Admin",
                        email=settings.SUPER_ADMIN_EMAIL,
                        password=settings.SUPER_ADMIN_PASSWORD,
                        role=UserRole.Admin,
                    )
                    logger.success("Super Admin created successfully.")
                else:
                    logger.info("Super Admin already exists. Skipping.")
        except Exception:
            logger.exception("Super Admin seeding failed.")

    logger.success("Backend startup completed successfully.")


# ------------------------------------------------------------
# ROOT HEALTH CHECK
# ------------------------------------------------------------
@app.get("/", tags=["System"])
async def root():
    return {
        "success": True,
        "data": {
            "status": "ok",
            "service": "CampusHub Backend",
            "version": app.version,
        },
        "message": "Backend running successfully",
    }
