import asyncio
import os

from dotenv import load_dotenv
import redis.asyncio as redis
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine

from src.core.database import resolve_async_database_url

# 1. Load .env before reading anything
load_dotenv()

DB_LABELS = {
    "postgresql": "PostgreSQL",
    "sqlite": "SQLite (dev/test)",
}

HEALTH_QUERIES = {
    "postgresql": "SELECT version();",
    "sqlite": "SELECT sqlite_version();",
}


async def verify_database():
    print("-" * 30)
    db_url = os.getenv("DATABASE_URL")
    if not db_url:
        print("ERROR: DATABASE_URL is not set")
        return False

    try:
        async_url = resolve_async_database_url(db_url)
        url = make_url(async_url)
    except ValueError as exc:
        print(f"ERROR: unsupported database configuration: {exc}")
        return False

    backend = url.get_backend_name()
    label = DB_LABELS.get(backend, backend)
    print(f"Checking {label} connection...")
    print(f"DSN: {url.render_as_string(hide_password=True)}")

    query = HEALTH_QUERIES.get(backend, "SELECT 1")

    try:
        engine = create_async_engine(async_url, echo=False)
        async with engine.connect() as conn:
            result = await conn.execute(text(query))
            version = result.scalar()
            print(f"OK: {label} reachable, version {version}")
        await engine.dispose()
        return True
    except Exception as e:  # noqa: BLE001 - surface connection failure
        print(f"FAILED: {label} connection error: {e}")
        return False


async def verify_redis():
    print("-" * 30)
    redis_url = os.getenv("REDIS_URL")
    if not redis_url:
        # Booking locks fall back to process-local locks without redis.
        print("SKIP: REDIS_URL not set, booking locks will be process-local (single worker only)")
        return True

    print("Checking Redis connection...")
    print(f"REDIS_URL: {redis_url.split('@')[-1]}")  # hide credentials

    try:
        r = redis.from_url(redis_url, encoding="utf-8", decode_responses=True)
        if await r.ping():
            print("OK: Redis answered PING")
        await r.aclose()
        return True
    except Exception as e:  # noqa: BLE001 - surface connection failure
        print(f"FAILED: Redis connection error: {e}")
        return False


def verify_jwt_secret():
    print("-" * 30)
    if not os.getenv("JWT_SECRET"):
        print("ERROR: JWT_SECRET is not set, admin endpoints cannot verify breeder tokens")
        return False
    print("OK: JWT_SECRET is set")
    return True


async def main():
    print("Verifying environment configuration...")

    db_ok = await verify_database()
    redis_ok = await verify_redis()
    jwt_ok = verify_jwt_secret()

    print("-" * 30)
    if db_ok and redis_ok and jwt_ok:
        print("All required services are configured correctly.")
    else:
        print("WARNING: configuration problems found, check your .env file and running containers.")


if __name__ == "__main__":
    asyncio.run(main())
