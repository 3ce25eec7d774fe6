from collections.abc import Generator
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from tablegate.core.config import Settings
from tablegate.core.gateway import GatewayContext
from tablegate.main import create_app
from tests.utils.fake_db import FakeConnection

DB_CONFIG = {
    "host": "localhost",
    "port": 5432,
    "database": "app",
    "username": "postgres",
    "password": "postgres",
}


@pytest.fixture
def fake_conn() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def gateway(fake_conn: FakeConnection) -> Generator[GatewayContext, None, None]:
    """GatewayContext exposing widgets and users; the pool hands out fake_conn."""
    with patch("tablegate.core.pool.manager.connect", return_value=fake_conn):
        ctx = GatewayContext(DB_CONFIG, ["widgets", "users"], prefix="/")
        yield ctx
        ctx.close()


@pytest.fixture
def client(gateway: GatewayContext) -> Generator[TestClient, None, None]:
    app = create_app(Settings(ENVIRONMENT="local"), context=gateway)
    with TestClient(app) as c:
        yield c
