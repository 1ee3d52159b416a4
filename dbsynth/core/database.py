"""Database connection and management utilities."""

import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, ValidationInfo, field_validator
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError


logger = logging.getLogger(__name__)

SUPPORTED_DRIVERS = ["mssql", "sqlite"]


class DatabaseConfig(BaseModel):
    """Configuration model for database connections."""

    driver: str = Field(default="mssql", description="Database driver")
    host: str = Field(default="localhost", description="Database host (SQL Server instance)")
    port: int = Field(default=1433, description="Database port")
    database: str = Field(default="", description="Database name, or file path for SQLite")
    username: Optional[str] = Field(default=None, description="SQL login; omit for integrated security")
    password: Optional[str] = Field(default=None, description="SQL login password")
    odbc_driver: str = Field(default="ODBC Driver 18 for SQL Server", description="ODBC driver name")
    trust_server_certificate: bool = Field(default=False, description="Skip TLS certificate validation")

    @field_validator("driver")
    @classmethod
    def validate_driver(cls, v):
        if v not in SUPPORTED_DRIVERS:
            raise ValueError(f"Unsupported driver: {v}. Supported: {SUPPORTED_DRIVERS}")
        return v

    @field_validator("port")
    @classmethod
    def validate_port(cls, v, info: ValidationInfo):
        # SQLite doesn't use ports
        if info.data.get("driver") == "sqlite":
            return v
        if not 1 <= v <= 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v


class DatabaseConnection:
    """The database collaborator: runs queries and batched statements."""

    def __init__(self, config: DatabaseConfig):
        """Initialize database connection with configuration."""
        self.config = config
        self._engine: Optional[Engine] = None

    def connect(self) -> None:
        """Establish connection to the database."""
        try:
            connection_url = self._build_connection_url()
            logger.info(f"Connecting to {self.config.driver} database at {self.config.host}:{self.config.port}")

            self._engine = create_engine(connection_url, echo=False, pool_pre_ping=True)

            # Test connection
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
                logger.info("Database connection established successfully")

        except SQLAlchemyError as e:
            logger.error(f"Failed to connect to database: {e}")
            raise ConnectionError(f"Database connection failed: {e}")

    def _build_connection_url(self):
        """Build SQLAlchemy connection URL from config."""
        if self.config.driver == "sqlite":
            return f"sqlite:///{self.config.database}"

        query = {"driver": self.config.odbc_driver}
        if self.config.trust_server_certificate:
            query["TrustServerCertificate"] = "yes"
        if not self.config.username:
            query["Trusted_Connection"] = "yes"

        return URL.create(
            "mssql+pyodbc",
            username=self.config.username or None,
            password=self.config.password or None,
            host=self.config.host,
            port=self.config.port,
            database=self.config.database or None,
            query=query,
        )

    @property
    def engine(self) -> Engine:
        """Get the SQLAlchemy engine."""
        if self._engine is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._engine

    def _use_database(self, conn, database: Optional[str]) -> None:
        if database and self.config.driver == "mssql" and database != self.config.database:
            conn.exec_driver_sql(f"USE {self.quote_identifier(database)}")

    def execute_query(self, query: str, params: Optional[Dict[str, Any]] = None,
                      database: Optional[str] = None) -> List[Any]:
        """Execute a raw SQL query and return its rows."""
        try:
            with self.engine.connect() as conn:
                self._use_database(conn, database)
                result = conn.execute(text(query), params or {})
                return result.fetchall()
        except SQLAlchemyError as e:
            logger.error(f"Query execution failed: {e}")
            raise

    def execute_non_query(self, statement: str, database: Optional[str] = None) -> None:
        """Execute one statement in its own transaction."""
        self.execute_batch([statement], database=database)

    def execute_batch(self, statements: Sequence[str], database: Optional[str] = None) -> None:
        """Execute statements in a single transaction; any failure rolls all of them back."""
        try:
            with self.engine.begin() as conn:
                self._use_database(conn, database)
                for statement in statements:
                    conn.exec_driver_sql(statement)
        except SQLAlchemyError as e:
            logger.error(f"Statement execution failed, transaction rolled back: {e}")
            raise

    def test_connection(self) -> bool:
        """Test if the database connection is alive."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False

    def close(self) -> None:
        """Close database connection and cleanup resources."""
        if self._engine:
            self._engine.dispose()
            self._engine = None
            logger.info("Database connection closed")

    def quote_identifier(self, identifier: str) -> str:
        """Quote table or column name with square brackets."""
        return "[" + identifier.replace("]", "]]") + "]"

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


def create_database_connection(
    host: str,
    database: str,
    username: Optional[str] = None,
    password: Optional[str] = None,
    port: int = 1433,
    driver: str = "mssql",
    **kwargs
) -> DatabaseConnection:
    """Factory function to create a database connection."""
    config = DatabaseConfig(
        host=host,
        port=port,
        database=database,
        username=username,
        password=password,
        driver=driver,
        **kwargs
    )
    return DatabaseConnection(config)
