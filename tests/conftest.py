"""Test configuration and fixtures for DBSynth tests."""

import pytest
import tempfile
import os
from unittest.mock import Mock

from sqlalchemy import create_engine, text

from dbsynth.core.database import DatabaseConnection, DatabaseConfig
from dbsynth.core.generator import GeneratorContext, ValueGenerator
from dbsynth.core.models import ColumnSpec, GenerationRule, TableSpec, UniqueIndex
from dbsynth.core.rules import SqlType


@pytest.fixture
def temp_db_file():
    """Create a temporary database file for SQLite testing."""
    fd, path = tempfile.mkstemp(suffix='.db')
    os.close(fd)
    yield path
    if os.path.exists(path):
        os.unlink(path)


@pytest.fixture
def sqlite_db(temp_db_file):
    """SQLite database with a customers and an orders table."""
    engine = create_engine(f"sqlite:///{temp_db_file}")
    with engine.begin() as conn:
        conn.execute(text(
            "CREATE TABLE customers ("
            " id INTEGER PRIMARY KEY,"
            " email VARCHAR(100) NOT NULL UNIQUE,"
            " age INTEGER,"
            " created_at DATETIME NOT NULL)"
        ))
        conn.execute(text(
            "CREATE TABLE orders ("
            " order_id INTEGER PRIMARY KEY,"
            " customer_id INTEGER NOT NULL REFERENCES customers(id),"
            " amount DECIMAL(10, 2) NOT NULL,"
            " note VARCHAR(20))"
        ))
    engine.dispose()
    return temp_db_file


@pytest.fixture
def sqlite_connection(sqlite_db):
    """Connected DatabaseConnection for the SQLite test database."""
    connection = DatabaseConnection(DatabaseConfig(driver="sqlite", database=sqlite_db))
    connection.connect()
    yield connection
    connection.close()


@pytest.fixture
def mock_db_config():
    """Create a mock database configuration for testing."""
    return DatabaseConfig(
        host="localhost",
        port=1433,
        database="test_db",
        username="test_user",
        password="test_pass",
        driver="mssql"
    )


@pytest.fixture
def mock_db_connection(mock_db_config):
    """Create a mock database connection for testing."""
    connection = Mock(spec=DatabaseConnection)
    connection.config = mock_db_config
    connection.test_connection.return_value = True
    connection.quote_identifier.side_effect = lambda name: f"[{name}]"
    return connection


@pytest.fixture
def generator():
    """Seeded value generator."""
    return ValueGenerator(GeneratorContext(seed=42))


@pytest.fixture
def customer_table():
    """Customer table with identity, unique and nullable columns."""
    table = TableSpec(
        name="Customer",
        schema="dbo",
        rows=50,
        columns=[
            ColumnSpec(name="CustomerId", sql_type=SqlType.INT, is_identity=True),
            ColumnSpec(name="Code", sql_type=SqlType.VARCHAR,
                       rule=GenerationRule.for_sql_type("varchar", min_value=8, max_value=8)),
            ColumnSpec(name="FirstName", sql_type=SqlType.NVARCHAR,
                       rule=GenerationRule.for_randomizer("Name", "FirstName", max_value=20)),
            ColumnSpec(name="Age", sql_type=SqlType.TINYINT, nullable=True,
                       rule=GenerationRule.for_sql_type("tinyint", min_value=18, max_value=90)),
            ColumnSpec(name="Balance", sql_type=SqlType.DECIMAL,
                       rule=GenerationRule.for_sql_type("decimal", min_value=0, max_value=500, precision=2)),
            ColumnSpec(name="Joined", sql_type=SqlType.DATE,
                       rule=GenerationRule.for_sql_type("date", min_value="2020-01-01",
                                                        max_value="2020-12-31")),
        ],
    )
    return table.with_unique_indexes([UniqueIndex(name="UQ_Customer_Code", columns=("Code",))])
