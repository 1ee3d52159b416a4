"""SQL Server metadata lookups used by the generation runner."""

import logging
import re
from collections import defaultdict
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError

from .assembler import IdentitySequence
from .config import ColumnConfig, DataGeneratorConfig, ForeignKeyConfig, TableConfig
from .database import DatabaseConnection
from .exceptions import ConfigurationError
from .models import TableSpec, UniqueIndex
from .rules import DECIMAL_TYPES, STRING_TYPES, SqlType


logger = logging.getLogger(__name__)

# Column-name patterns mapped to randomizers, first match wins
NAME_PATTERNS: List[Tuple[str, str, str]] = [
    (r"e-?mail", "Internet", "Email"),
    (r"first_?name|fname|given_?name", "Name", "FirstName"),
    (r"last_?name|lname|surname|family_?name", "Name", "LastName"),
    (r"full_?name|^name$|person_?name", "Name", "FullName"),
    (r"user_?name|login", "Internet", "UserName"),
    (r"phone|mobile|fax", "Phone", "PhoneNumber"),
    (r"zip|postal", "Address", "ZipCode"),
    (r"city|town", "Address", "City"),
    (r"country", "Address", "Country"),
    (r"state|province", "Address", "State"),
    (r"address|street", "Address", "StreetAddress"),
    (r"company|employer", "Company", "CompanyName"),
    (r"job_?title|^title$", "Name", "JobTitle"),
    (r"url|website", "Internet", "Url"),
    (r"ip_?address", "Internet", "Ip"),
    (r"iban", "Finance", "Iban"),
    (r"currency", "Finance", "Currency"),
]

SKIPPED_TYPES = {"timestamp", "rowversion"}
DECIMAL_MAX_CAP = 1000000

COLUMNS_QUERY = """
SELECT c.TABLE_SCHEMA, c.TABLE_NAME, c.COLUMN_NAME, c.DATA_TYPE,
       c.CHARACTER_MAXIMUM_LENGTH, c.NUMERIC_PRECISION, c.NUMERIC_SCALE, c.IS_NULLABLE,
       COLUMNPROPERTY(OBJECT_ID(QUOTENAME(c.TABLE_SCHEMA) + '.' + QUOTENAME(c.TABLE_NAME)),
                      c.COLUMN_NAME, 'IsIdentity') AS IS_IDENTITY,
       COLUMNPROPERTY(OBJECT_ID(QUOTENAME(c.TABLE_SCHEMA) + '.' + QUOTENAME(c.TABLE_NAME)),
                      c.COLUMN_NAME, 'IsComputed') AS IS_COMPUTED
FROM INFORMATION_SCHEMA.COLUMNS c
JOIN INFORMATION_SCHEMA.TABLES t
  ON t.TABLE_SCHEMA = c.TABLE_SCHEMA AND t.TABLE_NAME = c.TABLE_NAME
WHERE t.TABLE_TYPE = 'BASE TABLE'
ORDER BY c.TABLE_SCHEMA, c.TABLE_NAME, c.ORDINAL_POSITION
"""

FOREIGN_KEYS_QUERY = """
SELECT OBJECT_SCHEMA_NAME(fkc.parent_object_id), OBJECT_NAME(fkc.parent_object_id), pc.name,
       OBJECT_SCHEMA_NAME(fkc.referenced_object_id), OBJECT_NAME(fkc.referenced_object_id), rc.name
FROM sys.foreign_key_columns fkc
JOIN sys.columns pc ON pc.object_id = fkc.parent_object_id AND pc.column_id = fkc.parent_column_id
JOIN sys.columns rc ON rc.object_id = fkc.referenced_object_id AND rc.column_id = fkc.referenced_column_id
"""

UNIQUE_INDEXES_QUERY = """
SELECT i.name, c.name
FROM sys.indexes i
JOIN sys.index_columns ic ON ic.object_id = i.object_id AND ic.index_id = i.index_id
JOIN sys.columns c ON c.object_id = ic.object_id AND c.column_id = ic.column_id
WHERE i.object_id = OBJECT_ID(:table_name) AND i.is_unique = 1 AND ic.is_included_column = 0
ORDER BY i.index_id, ic.key_ordinal
"""

IDENTITY_QUERY = """
SELECT CAST(seed_value AS bigint), CAST(increment_value AS bigint), CAST(last_value AS bigint)
FROM sys.identity_columns
WHERE object_id = OBJECT_ID(:table_name)
"""


def randomizer_for_column(column_name: str) -> Optional[Tuple[str, str]]:
    """Pick a randomizer from the column name, if one of the patterns matches."""
    lowered = column_name.lower()
    for pattern, category, subtype in NAME_PATTERNS:
        if re.search(pattern, lowered):
            return category, subtype
    return None


class SchemaIntrospector:
    """Reads the table metadata the generator cannot get from the document."""

    def __init__(self, db_connection: DatabaseConnection, database: Optional[str] = None):
        self.db_connection = db_connection
        self.database = database

    @property
    def is_sql_server(self) -> bool:
        return self.db_connection.config.driver == "mssql"

    def _query(self, query: str, params: Optional[Dict[str, Any]] = None) -> List[Any]:
        return self.db_connection.execute_query(query, params, database=self.database)

    def table_row_count(self, table: TableSpec) -> int:
        result = self._query(f"SELECT COUNT(*) FROM {table.qualified_name}")
        return int(result[0][0]) if result else 0

    def identity_sequence(self, table: TableSpec) -> Optional[IdentitySequence]:
        """Identity seed, increment and last value of the table, when it has one."""
        if table.identity_column is None:
            return None
        if not self.is_sql_server:
            # Without sys.identity_columns continue after the current maximum
            column = self.db_connection.quote_identifier(table.identity_column.name)
            result = self._query(f"SELECT MAX({column}) FROM {table.qualified_name}")
            last_value = result[0][0] if result else None
            return IdentitySequence.from_table(1, 1, last_value)

        result = self._query(IDENTITY_QUERY, {"table_name": table.qualified_name})
        if not result:
            return None
        seed, increment, last_value = result[0]
        logger.debug(f"Identity on {table.qualified_name}: seed={seed}, "
                     f"increment={increment}, last={last_value}")
        return IdentitySequence.from_table(seed, increment, last_value)

    def unique_indexes(self, table: TableSpec) -> List[UniqueIndex]:
        """Unique indexes of the table with their key columns in key order."""
        if not self.is_sql_server:
            return []
        columns: Dict[str, List[str]] = defaultdict(list)
        for index_name, column_name in self._query(UNIQUE_INDEXES_QUERY, {"table_name": table.qualified_name}):
            columns[index_name].append(column_name)
        return [UniqueIndex(name=name, columns=tuple(cols)) for name, cols in columns.items()]

    def existing_unique_keys(self, table: TableSpec, index: UniqueIndex) -> Set[Tuple[Any, ...]]:
        """Key tuples already present for ``index``."""
        quoted = ", ".join(self.db_connection.quote_identifier(c) for c in index.columns)
        try:
            result = self._query(f"SELECT DISTINCT {quoted} FROM {table.qualified_name}")
        except SQLAlchemyError as e:
            logger.warning(f"Could not fetch existing keys for {table.qualified_name}.{index.name}: {e}")
            return set()
        return {tuple(row) for row in result}

    def foreign_key_values(self, table: TableSpec) -> Dict[str, List[Any]]:
        """Distinct referenced values for every foreign key column of the table."""
        values: Dict[str, List[Any]] = {}
        for column in table.columns:
            if column.foreign_key is None:
                continue
            ref = column.foreign_key
            quoted_column = self.db_connection.quote_identifier(ref.column)
            quoted_table = (f"{self.db_connection.quote_identifier(ref.schema)}."
                            f"{self.db_connection.quote_identifier(ref.table)}")
            result = self._query(
                f"SELECT DISTINCT {quoted_column} FROM {quoted_table} WHERE {quoted_column} IS NOT NULL"
            )
            values[column.name] = [row[0] for row in result]
            logger.debug(f"Loaded {len(values[column.name])} referenced values for "
                         f"{table.qualified_name}.{column.name}")
        return values

    def build_config(self, tables: Optional[Sequence[str]] = None, rows: int = 1000) -> DataGeneratorConfig:
        """Describe the database as a generation document."""
        if not self.is_sql_server:
            raise ConfigurationError("Building a generation document requires a SQL Server connection")

        wanted = {t.lower() for t in tables} if tables else None
        foreign_keys = {
            (schema, table, column): ForeignKeyConfig(Schema=ref_schema, Table=ref_table, Column=ref_column)
            for schema, table, column, ref_schema, ref_table, ref_column in self._query(FOREIGN_KEYS_QUERY)
        }

        table_configs: Dict[Tuple[str, str], TableConfig] = {}
        for row in self._query(COLUMNS_QUERY):
            (schema, table, column, data_type, char_length,
             numeric_precision, numeric_scale, is_nullable, is_identity, is_computed) = row
            if wanted is not None and table.lower() not in wanted:
                continue
            if is_computed or data_type.lower() in SKIPPED_TYPES:
                logger.debug(f"Skipping computed or row version column {schema}.{table}.{column}")
                continue
            try:
                sql_type = SqlType.from_name(data_type)
            except ConfigurationError:
                logger.debug(f"Skipping column {schema}.{table}.{column} with unsupported type {data_type}")
                continue

            column_config = self._column_config(
                column, sql_type, char_length, numeric_precision, numeric_scale,
                nullable=is_nullable == "YES", identity=bool(is_identity),
                foreign_key=foreign_keys.get((schema, table, column)),
            )
            key = (schema, table)
            if key not in table_configs:
                table_configs[key] = TableConfig(Name=table, Schema=schema, Rows=rows)
            table_configs[key].columns.append(column_config)

        for table_config in table_configs.values():
            spec = TableSpec(name=table_config.name, schema=table_config.schema_name)
            table_config.has_unique_index = bool(self.unique_indexes(spec))

        logger.info(f"Built generation document for {len(table_configs)} tables")
        return DataGeneratorConfig(Name=self.database or self.db_connection.config.database,
                                   Tables=list(table_configs.values()))

    def _column_config(self, name: str, sql_type: SqlType, char_length: Optional[int],
                       numeric_precision: Optional[int], numeric_scale: Optional[int],
                       nullable: bool, identity: bool,
                       foreign_key: Optional[ForeignKeyConfig]) -> ColumnConfig:
        config: Dict[str, Any] = {
            "Name": name,
            "ColumnType": sql_type.value,
            "Nullable": nullable,
            "Identity": identity,
            "ForeignKey": foreign_key,
        }

        if sql_type in STRING_TYPES:
            # -1 means (max)
            if char_length and char_length > 0:
                config["MaxValue"] = char_length
            randomizer = randomizer_for_column(name)
            if randomizer:
                config["MaskingType"], config["SubType"] = randomizer
        elif sql_type in DECIMAL_TYPES and sql_type in (SqlType.DECIMAL, SqlType.NUMERIC):
            scale = numeric_scale or 0
            integer_digits = (numeric_precision or 18) - scale
            config["Precision"] = scale
            config["MinValue"] = 0
            config["MaxValue"] = min(10 ** integer_digits - 1, DECIMAL_MAX_CAP)

        return ColumnConfig(**config)
