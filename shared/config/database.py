import os
from dotenv import load_dotenv
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

load_dotenv()

DB_USER = os.getenv("POSTGRES_USER", "postgres")
DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
DB_HOST = os.getenv("POSTGRES_HOST", "localhost") # In Docker, this will be 'postgres'
DB_PORT = os.getenv("POSTGRES_PORT", "5433")
DB_NAME = os.getenv("POSTGRES_DB", "ecommerce")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+asyncpg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)

# SQLite (local runs, tests) has no schemas and must not share connections across event loops
IS_SQLITE = DATABASE_URL.startswith("sqlite")

if IS_SQLITE:
    engine = create_async_engine(DATABASE_URL, echo=os.getenv("SQL_ECHO") == "true", poolclass=NullPool)
else:
    engine = create_async_engine(DATABASE_URL, echo=os.getenv("SQL_ECHO") == "true")

AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)

Base = declarative_base()


def schema_args(schema: str) -> dict:
    """Table args placing a service's tables in its own schema (Postgres only)."""
    return {} if IS_SQLITE else {"schema": schema}


async def create_schema(conn, schema: str):
    if not IS_SQLITE:
        await conn.execute(text(f"CREATE SCHEMA IF NOT EXISTS {schema}"))


async def get_db():
    async with AsyncSessionLocal() as session:
        yield session
