"""
Root conftest for the pytest test suite.

This file contains the main fixtures that are used across the entire test suite.

Database tests run against a fresh in-memory SQLite database that is created
inside the test's own event loop. Pure tests of the report pipeline do not
request it and never touch Tortoise.

Key Fixtures:
- `anyio_backend`: Specifies the asyncio backend for pytest-asyncio.
- `initialize_test_db`: Creates a fresh document store schema for a test.
- `app_for_testing`: Provides the FastAPI application instance with its production
  lifespan disabled to allow `initialize_test_db` to manage the test DB.
- `client`: Provides a starlette TestClient.
- `async_client`: Provides an httpx AsyncClient bound to the ASGI app, for tests
  that share the event loop with the test database.
- `seed_documents`: Writes orders, vendors and customers into the test DB.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Awaitable, Callable, Generator

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.testclient import TestClient
from tortoise import Tortoise

from ops_reports.features.documents.service import CUSTOMERS, ORDERS, VENDORS, upsert_documents

# Import the app
from ops_reports.main import app as actual_app

TEST_DB_CONFIG = {
    "connections": {"default": "sqlite://:memory:"},
    "apps": {
        "models": {
            "models": [
                "ops_reports.features.documents.models",
                "aerich.models",
            ],
            "default_connection": "default",
        }
    },
    "use_tz": True,
    "timezone": "UTC",
}


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """
    Specifies the asyncio backend for pytest-asyncio.
    """
    return "asyncio"


@pytest_asyncio.fixture(scope="function")
async def initialize_test_db() -> AsyncGenerator[None, None]:
    """
    Initializes the database for one test function.

    Creates a fresh in-memory database and schema and tears it down afterwards.
    """
    await Tortoise.init(config=TEST_DB_CONFIG)
    await Tortoise.generate_schemas()

    yield

    await Tortoise.close_connections()


@pytest.fixture(scope="function")
def seed_documents(initialize_test_db) -> Callable[..., Awaitable[None]]:
    """
    Returns a coroutine function that stores the given collections.
    """
    async def _seed(orders=(), vendors=(), customers=()):
        await upsert_documents(ORDERS, orders)
        await upsert_documents(VENDORS, vendors)
        await upsert_documents(CUSTOMERS, customers)

    return _seed


@pytest.fixture(scope="function")
def app_for_testing() -> Generator[FastAPI, Any, None]:
    """
    Provides a FastAPI application instance for testing, with its
    production lifespan manager disabled to allow the test DB fixture
    to manage the database connection.
    """
    original_lifespan = actual_app.router.lifespan_context

    @asynccontextmanager
    async def dummy_lifespan(app: FastAPI):
        yield

    actual_app.router.lifespan_context = dummy_lifespan

    yield actual_app

    # Restore the original lifespan context after the test
    actual_app.router.lifespan_context = original_lifespan


@pytest.fixture(scope="function")
def client(app_for_testing: FastAPI) -> Generator[TestClient, Any, None]:
    """
    Provides a starlette TestClient.
    """
    with TestClient(app_for_testing) as tc:
        yield tc


@pytest_asyncio.fixture(scope="function")
async def async_client(app_for_testing: FastAPI) -> AsyncGenerator[httpx.AsyncClient, Any]:
    """
    Provides an httpx AsyncClient that calls the app in the current event loop.
    """
    transport = httpx.ASGITransport(app=app_for_testing)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
