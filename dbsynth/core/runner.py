"""Generation runner: turns a generation document into inserted rows."""

import logging
import time
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from tqdm import tqdm

from .assembler import IdentitySequence, RowAssembler
from .config import DataGeneratorConfig, GenerationOptions, build_table_spec, canonical_indexes
from .database import DatabaseConnection
from .exceptions import ConfigurationError, DBSynthError
from .generator import GeneratorContext, ValueGenerator
from .introspector import SchemaIntrospector
from .models import GenerationStats, TableSpec


logger = logging.getLogger(__name__)


class DataGeneratorRunner:
    """Generates and inserts rows for every table of a generation document.

    Each table is handled on its own: its statements run in a single
    transaction, and a failure is recorded in the returned stats before the
    runner moves on to the next table. Without a database connection the
    runner can still render the statements as a script.
    """

    def __init__(self, config: DataGeneratorConfig,
                 db_connection: Optional[DatabaseConnection] = None,
                 options: Optional[GenerationOptions] = None,
                 generator: Optional[ValueGenerator] = None):
        self.config = config
        self.db_connection = db_connection
        self.options = options or GenerationOptions()
        self.generator = generator or ValueGenerator(
            GeneratorContext(locale=self.options.locale, seed=self.options.seed)
        )
        self.introspector = (
            SchemaIntrospector(db_connection, database=config.name) if db_connection else None
        )

    @property
    def driver(self) -> str:
        return self.db_connection.config.driver if self.db_connection else "mssql"

    def selected_tables(self) -> List[TableSpec]:
        specs = []
        for table in self.config.tables:
            if not self.options.includes_table(table.name):
                logger.debug(f"Table {table.name} excluded by options")
                continue
            specs.append(build_table_spec(table, self.options))
        return specs

    def run(self) -> GenerationStats:
        """Generate and insert rows for every selected table."""
        if self.db_connection is None:
            raise ConfigurationError("A database connection is required to insert rows; use generate_script instead")

        stats = GenerationStats()
        start_time = time.time()
        tables = self.selected_tables()
        logger.info(f"Generating data for {len(tables)} tables")

        for table in tqdm(tables, desc="Tables", unit="table"):
            table_start = time.time()
            table_stats: Dict[str, Any] = {"rows_requested": table.rows, "rows_inserted": 0, "errors": []}
            stats.table_stats[table.qualified_name] = table_stats

            if table.rows <= 0:
                logger.info(f"Skipping {table.qualified_name}: no rows requested")
                table_stats["skipped"] = True
                continue

            try:
                statements = self.build_table_statements(table, check_existing=True)
                self.db_connection.execute_batch(statements, database=self.config.name)
            except (DBSynthError, SQLAlchemyError) as e:
                if isinstance(e, DBAPIError) and e.connection_invalidated:
                    logger.error(f"Lost connection while generating {table.qualified_name}: {e}")
                    raise ConnectionError(f"Database connection lost: {e}")
                error_msg = f"Failed to generate data for {table.qualified_name}: {e}"
                logger.error(error_msg)
                stats.errors.append(error_msg)
                table_stats["errors"].append(str(e))
                continue

            stats.tables_processed += 1
            stats.total_rows_generated += table.rows
            table_stats["rows_inserted"] = table.rows
            table_stats["time_seconds"] = time.time() - table_start
            logger.info(f"Inserted {table.rows} rows into {table.qualified_name} "
                        f"in {table_stats['time_seconds']:.2f} seconds")

        stats.total_time_seconds = time.time() - start_time
        return stats

    def generate_script(self) -> str:
        """Render the statements of every selected table without executing them."""
        parts = []
        for table in self.selected_tables():
            if table.rows <= 0:
                logger.info(f"Skipping {table.qualified_name}: no rows requested")
                continue
            try:
                statements = self.build_table_statements(table, check_existing=False)
            except DBSynthError as e:
                logger.error(f"Failed to generate data for {table.qualified_name}: {e}")
                parts.append(f"-- {table.qualified_name} skipped: {e}")
                continue
            parts.append(f"-- {table.qualified_name}: {table.rows} rows")
            parts.append("\n".join(statements))
        return "\n\n".join(parts) + "\n" if parts else ""

    def build_table_statements(self, table: TableSpec, check_existing: bool = True) -> List[str]:
        """Build the full statement list for one table."""
        statements: List[str] = []
        if check_existing:
            statements.extend(self._prepare_existing_rows(table))

        table = self._resolve_unique_indexes(table)
        identity = self._identity_sequence(table)
        foreign_key_values = self.introspector.foreign_key_values(table) if self.introspector else {}
        existing_keys = self._existing_keys(table) if check_existing and not statements else {}

        assembler = RowAssembler(
            table,
            self.generator,
            null_modulus=self.options.modulus_factor,
            identity=identity,
            foreign_key_values=foreign_key_values,
            max_unique_attempts=self.options.max_unique_attempts,
            existing_keys=existing_keys,
        )
        rows = list(tqdm(assembler.generate_rows(table.rows), total=table.rows,
                         desc=f"Generating {table.name}", unit="row", leave=False))
        statements.extend(assembler.build_insert_statements(
            rows,
            batch_size=self.options.batch_size,
            identity_insert=self.driver == "mssql",
        ))
        return statements

    def _prepare_existing_rows(self, table: TableSpec) -> List[str]:
        """Statements that clear the table, or an error when it holds rows it may not keep."""
        existing = self.introspector.table_row_count(table)
        if existing == 0:
            return []
        if table.truncate:
            logger.info(f"Removing {existing} existing rows from {table.qualified_name}")
            if self.driver == "sqlite":
                return [f"DELETE FROM {table.qualified_name}"]
            return [f"TRUNCATE TABLE {table.qualified_name};"]
        if self.options.force:
            logger.warning(f"{table.qualified_name} already contains {existing} rows, adding more")
            return []
        raise ConfigurationError(
            f"Table {table.qualified_name} already contains {existing} rows; "
            f"set TruncateTable or use force",
            context={"table": table.qualified_name, "rows": existing},
        )

    def _resolve_unique_indexes(self, table: TableSpec) -> TableSpec:
        if table.unique_indexes or not table.has_unique_index or self.introspector is None:
            return table
        discovered = self.introspector.unique_indexes(table)
        if discovered:
            logger.debug(f"Discovered {len(discovered)} unique indexes on {table.qualified_name}")
            return table.with_unique_indexes(canonical_indexes(table, discovered))
        return table

    def _identity_sequence(self, table: TableSpec) -> Optional[IdentitySequence]:
        if table.identity_column is None:
            return None
        if self.introspector is None:
            return IdentitySequence.from_table(1, 1)
        return self.introspector.identity_sequence(table)

    def _existing_keys(self, table: TableSpec) -> Dict[str, Any]:
        if self.introspector is None:
            return {}
        return {index.name: self.introspector.existing_unique_keys(table, index)
                for index in table.unique_indexes}
