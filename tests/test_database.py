"""Tests for database connection functionality."""

import pytest
from unittest.mock import MagicMock, Mock, patch
from sqlalchemy.exc import SQLAlchemyError

from dbsynth.core.database import DatabaseConnection, DatabaseConfig, create_database_connection


class TestDatabaseConfig:
    """Test DatabaseConfig model."""

    def test_valid_config(self):
        """Test valid database configuration."""
        config = DatabaseConfig(
            host="sqlprod01",
            port=1433,
            database="SalesDb",
            username="loader",
            password="secret",
            driver="mssql"
        )
        assert config.host == "sqlprod01"
        assert config.port == 1433
        assert config.odbc_driver == "ODBC Driver 18 for SQL Server"

    def test_invalid_driver(self):
        """Test invalid database driver."""
        with pytest.raises(ValueError, match="Unsupported driver"):
            DatabaseConfig(database="SalesDb", driver="oracle")

    def test_invalid_port(self):
        """Test invalid port number."""
        with pytest.raises(ValueError, match="Port must be between"):
            DatabaseConfig(database="SalesDb", port=99999)

    def test_sqlite_ignores_port(self):
        """SQLite does not validate the port."""
        config = DatabaseConfig(driver="sqlite", database="test.db", port=0)
        assert config.port == 0


class TestDatabaseConnection:
    """Test DatabaseConnection class."""

    def test_connection_url_mssql(self):
        """Test SQL Server connection URL building."""
        config = DatabaseConfig(
            host="sqlprod01",
            port=1433,
            database="SalesDb",
            username="loader",
            password="secret",
            trust_server_certificate=True,
        )
        url = DatabaseConnection(config)._build_connection_url()

        assert url.drivername == "mssql+pyodbc"
        assert url.host == "sqlprod01"
        assert url.database == "SalesDb"
        assert url.username == "loader"
        assert url.query["driver"] == "ODBC Driver 18 for SQL Server"
        assert url.query["TrustServerCertificate"] == "yes"
        assert "Trusted_Connection" not in url.query

    def test_connection_url_integrated_security(self):
        """Without a login the connection uses integrated security."""
        url = DatabaseConnection(DatabaseConfig(database="SalesDb"))._build_connection_url()
        assert url.query["Trusted_Connection"] == "yes"
        assert url.username is None

    def test_connection_url_sqlite(self):
        """Test SQLite connection URL building."""
        config = DatabaseConfig(database="/path/to/test.db", driver="sqlite")
        url = DatabaseConnection(config)._build_connection_url()

        assert url == "sqlite:////path/to/test.db"

    @patch('dbsynth.core.database.create_engine')
    def test_connect_success(self, mock_create_engine):
        """Test successful database connection."""
        mock_engine = MagicMock()
        mock_connection = Mock()
        mock_engine.connect.return_value.__enter__.return_value = mock_connection
        mock_create_engine.return_value = mock_engine

        db_conn = DatabaseConnection(DatabaseConfig(database="SalesDb"))
        db_conn.connect()

        assert db_conn._engine is not None
        mock_create_engine.assert_called_once()
        mock_connection.execute.assert_called_once()

    @patch('dbsynth.core.database.create_engine')
    def test_connect_failure(self, mock_create_engine):
        """Test database connection failure."""
        mock_create_engine.side_effect = SQLAlchemyError("Connection failed")

        db_conn = DatabaseConnection(DatabaseConfig(database="SalesDb"))

        with pytest.raises(ConnectionError, match="Database connection failed"):
            db_conn.connect()

    def test_engine_not_connected(self):
        """Test accessing engine when not connected."""
        db_conn = DatabaseConnection(DatabaseConfig(database="SalesDb"))

        with pytest.raises(RuntimeError, match="Database not connected"):
            _ = db_conn.engine

    @patch('dbsynth.core.database.create_engine')
    def test_context_manager(self, mock_create_engine):
        """Test database connection as context manager."""
        mock_engine = MagicMock()
        mock_create_engine.return_value = mock_engine

        with DatabaseConnection(DatabaseConfig(database="SalesDb")) as db_conn:
            assert db_conn._engine is not None

        # Engine should be disposed after context exit
        mock_engine.dispose.assert_called_once()

    def test_quote_identifier(self):
        """Identifiers are bracket quoted."""
        db_conn = DatabaseConnection(DatabaseConfig(database="SalesDb"))
        assert db_conn.quote_identifier("Order Details") == "[Order Details]"


class TestSqliteExecution:
    """Run statements against a SQLite file."""

    def test_execute_batch_and_query(self, sqlite_connection):
        """Batched statements are committed together."""
        sqlite_connection.execute_batch([
            "INSERT INTO customers (id, email, age, created_at) VALUES (1, 'a@example.com', 30, '2020-01-01')",
            "INSERT INTO customers (id, email, age, created_at) VALUES (2, 'b@example.com', NULL, '2020-01-02')",
        ])

        rows = sqlite_connection.execute_query("SELECT COUNT(*) FROM customers")
        assert rows[0][0] == 2

    def test_failed_batch_rolls_back(self, sqlite_connection):
        """A failing statement rolls back the whole batch."""
        with pytest.raises(SQLAlchemyError):
            sqlite_connection.execute_batch([
                "INSERT INTO customers (id, email, age, created_at) VALUES (1, 'a@example.com', 30, '2020-01-01')",
                "INSERT INTO customers (id, email, age, created_at) VALUES (2, 'a@example.com', 31, '2020-01-01')",
            ])

        rows = sqlite_connection.execute_query("SELECT COUNT(*) FROM customers")
        assert rows[0][0] == 0

    def test_query_parameters(self, sqlite_connection):
        """Named parameters are bound."""
        sqlite_connection.execute_non_query(
            "INSERT INTO customers (id, email, age, created_at) VALUES (5, 'c@example.com', 44, '2020-01-01')"
        )
        rows = sqlite_connection.execute_query("SELECT email FROM customers WHERE id = :id", {"id": 5})
        assert rows[0][0] == "c@example.com"

    def test_test_connection(self, sqlite_connection):
        """A live connection answers."""
        assert sqlite_connection.test_connection()


def test_create_database_connection():
    """Test factory function for creating database connection."""
    db_conn = create_database_connection(
        host="sqlprod01",
        database="SalesDb",
        username="loader",
        password="secret",
    )

    assert isinstance(db_conn, DatabaseConnection)
    assert db_conn.config.host == "sqlprod01"
    assert db_conn.config.port == 1433
    assert db_conn.config.driver == "mssql"
