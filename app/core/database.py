# app/core/database.py

import ssl
from typing import AsyncGenerator

from dotenv import load_dotenv
from loguru import logger
from sqlmodel import SQLModel
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine
)
from sqlalchemy.pool import NullPool
from sqlalchemy import text

from app.core.config import settings

# ----------------------------------------------------
# Load environment
# ----------------------------------------------------
load_dotenv()
DATABASE_URL = settings.DATABASE_URL


# ----------------------------------------------------
# SSL for managed Postgres poolers
# ----------------------------------------------------
def make_ssl():
    ctx = ssl.create_default_context()
    if not settings.DB_SSL_VERIFY:
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
    return ctx


def build_engine_kwargs(url: str) -> dict:
    """
    asyncpg behind a transaction pooler needs prepared statements off and
    no client-side pooling. Any other driver (sqlite in tests) gets defaults.
    """
    if url.startswith("postgresql+asyncpg"):
        logger.info("Configuring database (asyncpg, pooler mode)")
        return {
            "connect_args": {
                "ssl": make_ssl(),
                "statement_cache_size": 0,            # disable prepared statements
                "prepared_statement_name_func": None  # prevent SQLAlchemy from naming statements
            },
            "pool_pre_ping": True,
            "poolclass": NullPool,
        }
    logger.info(f"Configuring database ({url.split(':', 1)[0]})")
    return {"poolclass": NullPool}


# ----------------------------------------------------
# Engine
# ----------------------------------------------------
engine = create_async_engine(
    DATABASE_URL,
    echo=False,
    future=True,
    **build_engine_kwargs(DATABASE_URL),
)


# ----------------------------------------------------
# Sessions
# ----------------------------------------------------
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


# ----------------------------------------------------
# Create tables
# ----------------------------------------------------
async def init_db():
    # Register every table on the metadata before create_all
    from app.models import user, department, application, application_comment, notification  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


# ----------------------------------------------------
# Test Connection
# ----------------------------------------------------
async def test_connection():
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    logger.debug("DB connection OK")
