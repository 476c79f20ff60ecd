"""Pytest configuration and fixtures."""

import sqlite3
import tempfile
from pathlib import Path

import httpx
import openai
import pytest

from aisql.config import AppConfig
from aisql.database import DatabaseManager, SchemaField


@pytest.fixture
def temp_db_path():
    """A SQLite file with an orders and a customers table."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "shop.db"
        with sqlite3.connect(str(db_path)) as conn:
            conn.execute("CREATE TABLE orders (id integer, total numeric)")
            conn.execute("CREATE TABLE customers (id INTEGER, name TEXT, email TEXT)")
            conn.executemany("INSERT INTO orders VALUES (?, ?)", [(1, 10.5), (2, 20)])
            conn.execute("INSERT INTO customers VALUES (1, 'Alice', 'alice@example.com')")
        conn.close()
        yield db_path


@pytest.fixture
def database(temp_db_path):
    manager = DatabaseManager(f"sqlite:///{temp_db_path}")
    yield manager
    manager.close()


@pytest.fixture
def config(temp_db_path):
    return AppConfig(
        api_key="test-key",
        connection_string=f"sqlite:///{temp_db_path}",
        base_url="https://completions.test/v1",
        dialect="SQLite",
    )


@pytest.fixture
def orders_schema():
    return {
        "orders": [
            SchemaField(column="id", datatype="integer"),
            SchemaField(column="total", datatype="numeric"),
        ]
    }


@pytest.fixture
def make_openai_client(config):
    """Build an SDK client whose requests are answered by ``handler``."""
    clients = []

    def factory(handler):
        client = openai.OpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            max_retries=0,
            http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        )
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()
