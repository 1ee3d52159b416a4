"""Row assembly and INSERT statement rendering."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from .exceptions import ConfigurationError
from .generator import ValueGenerator
from .models import ColumnSpec, GeneratedRow, TableSpec
from .primitives import format_temporal, parse_temporal, truncate_text
from .rules import SqlType
from .uniqueness import DEFAULT_MAX_ATTEMPTS, UniquenessEnforcer


logger = logging.getLogger(__name__)

# SQL Server accepts at most 1000 row value expressions per INSERT
MAX_ROWS_PER_INSERT = 1000
UNICODE_TYPES = frozenset({SqlType.NCHAR, SqlType.NVARCHAR, SqlType.NTEXT})


@dataclass
class IdentitySequence:
    """Next-value source for an identity column."""
    current: int
    increment: int = 1

    @classmethod
    def from_table(cls, seed: int, increment: int, last_value: Optional[int] = None) -> "IdentitySequence":
        """Start after ``last_value``, or so that the first value is ``seed`` on an empty table."""
        if last_value is None:
            return cls(current=int(seed) - int(increment), increment=int(increment))
        return cls(current=int(last_value), increment=int(increment))

    def next_value(self) -> int:
        self.current += self.increment
        return self.current


def quote_identifier(identifier: str) -> str:
    return "[" + identifier.replace("]", "]]") + "]"


def format_literal(value: Any, column: ColumnSpec) -> str:
    """Render ``value`` as a T-SQL literal for the column's declared type."""
    if value is None:
        return "NULL"

    if column.is_boolean:
        truthy = str(value).strip().lower() in ("1", "true", "yes")
        return "1" if truthy else "0"

    if column.is_numeric:
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, (int, float, Decimal)):
            return str(value)

    if isinstance(value, (datetime, date, time)):
        sql_type = column.sql_type if column.is_date else SqlType.DATETIME2
        value = format_temporal(parse_temporal(value), sql_type)

    text = str(value).replace("'", "''")
    prefix = "N" if column.sql_type in UNICODE_TYPES else ""
    return f"{prefix}'{text}'"


class RowAssembler:
    """Builds complete rows for one table.

    Column values are resolved in declaration order: NULL for nullable columns
    whenever the shared null counter hits a multiple of ``null_modulus``, the
    precomputed unique tuple for unique-index columns, the identity sequence for
    identity columns, a referenced value for foreign keys, and the value
    generator for everything else. A column that belongs to an enforced
    unique index receives at most one NULL per table.
    """

    def __init__(self, table: TableSpec, generator: ValueGenerator,
                 null_modulus: int = 10,
                 identity: Optional[IdentitySequence] = None,
                 foreign_key_values: Optional[Dict[str, Sequence[Any]]] = None,
                 max_unique_attempts: int = DEFAULT_MAX_ATTEMPTS,
                 existing_keys: Optional[Dict[str, Iterable[Tuple[Any, ...]]]] = None):
        if null_modulus < 1:
            raise ConfigurationError("Modulus factor must be 1 or greater")

        self.table = table
        self.generator = generator
        self.null_modulus = null_modulus
        self.identity = identity
        self.foreign_key_values = foreign_key_values or {}
        self.max_unique_attempts = max_unique_attempts
        self.existing_keys = existing_keys or {}

        self.skipped_columns: Dict[str, str] = {}
        self.columns: List[ColumnSpec] = self._usable_columns()
        self.enforcer: Optional[UniquenessEnforcer] = None
        self._unique_rows: List[Dict[str, Any]] = []
        self._null_counter = 0
        self._null_unique_columns: Set[str] = set()

    def _usable_columns(self) -> List[ColumnSpec]:
        """Drop columns whose rule fails on a probe generation."""
        usable = []
        for column in self.table.columns:
            if column.is_identity and self.identity is None:
                logger.debug(f"Skipping identity column {column.name}, no identity sequence given")
                continue
            if column.is_identity or column.foreign_key is not None:
                usable.append(column)
                continue
            if column.rule is None:
                self._skip(column, "no generation rule")
                continue
            try:
                self.generator.generate(column.rule)
            except (ConfigurationError, ValueError, TypeError, AttributeError) as e:
                self._skip(column, str(e))
                continue
            usable.append(column)
        return usable

    def _skip(self, column: ColumnSpec, reason: str) -> None:
        logger.warning(f"Skipping column {self.table.qualified_name}.{column.name}: {reason}")
        self.skipped_columns[column.name] = reason

    def prepare(self, row_count: int) -> None:
        """Precompute the unique tuples for ``row_count`` rows."""
        rules = {column.name: column.rule for column in self.columns
                 if column.rule is not None and not column.is_identity and column.foreign_key is None}
        identity_names = {column.name for column in self.columns if column.is_identity}

        indexes = []
        for index in self.table.unique_indexes:
            if identity_names.intersection(index.columns):
                # Identity values never repeat, so the key is unique already
                continue
            if not all(name in rules for name in index.columns):
                logger.warning(f"Unique index {index.name} on {self.table.qualified_name} "
                               f"references a skipped or non-generated column, uniqueness not enforced")
                continue
            indexes.append(index)
        if not indexes:
            self._unique_rows = []
            return
        limits = {column.name: self._length_limit(column) for column in self.columns}
        length_limits = {name: limit for name, limit in limits.items() if limit is not None}
        self.enforcer = UniquenessEnforcer(self.generator, indexes, rules, self.max_unique_attempts,
                                           length_limits=length_limits)
        for index in indexes:
            if index.name in self.existing_keys:
                keys = [tuple(key) for key in self.existing_keys[index.name]]
                self.enforcer.add_existing(index.name, keys)
                for key in keys:
                    # A NULL already in the index uses up the one NULL SQL Server allows
                    self._null_unique_columns.update(
                        name for name, value in zip(index.columns, key) if value is None
                    )
        logger.info(f"Precomputing {row_count} unique tuples for {self.table.qualified_name}")
        self._unique_rows = self.enforcer.precompute(row_count)

    def assemble_row(self, row_index: int) -> GeneratedRow:
        """Build the values of one row, ``None`` standing for NULL."""
        row: GeneratedRow = {}
        unique_values = self._unique_rows[row_index] if row_index < len(self._unique_rows) else {}

        unique_columns = self.enforcer.columns if self.enforcer else []

        for column in self.columns:
            if column.nullable:
                self._null_counter += 1
                if self._null_counter % self.null_modulus == 0:
                    if column.name not in unique_columns:
                        row[column.name] = None
                        continue
                    # Unique indexes accept a single NULL per key column
                    if column.name not in self._null_unique_columns:
                        self._null_unique_columns.add(column.name)
                        row[column.name] = None
                        continue

            if column.name in unique_values:
                row[column.name] = unique_values[column.name]
            elif column.is_identity:
                row[column.name] = self.identity.next_value()
            elif column.foreign_key is not None:
                row[column.name] = self._foreign_key_value(column)
            else:
                row[column.name] = self._generate(column)
        return row

    @staticmethod
    def _length_limit(column: ColumnSpec) -> Optional[int]:
        """Longest randomizer output a character column holds, if capped."""
        if (column.rule is None or not column.is_string or not column.rule.is_randomizer
                or column.rule.max_value in (None, "")):
            return None
        return int(column.rule.max_value)

    def _generate(self, column: ColumnSpec) -> Any:
        # Randomizer output can be longer than the column allows
        return truncate_text(self.generator.generate(column.rule), self._length_limit(column))

    def _foreign_key_value(self, column: ColumnSpec) -> Any:
        candidates = self.foreign_key_values.get(column.name)
        if candidates:
            return self.generator.random.choice(list(candidates))
        if column.nullable:
            return None
        raise ConfigurationError(
            f"No referenced values available for foreign key column {column.name}",
            context={"table": self.table.qualified_name, "column": column.name},
        )

    def generate_rows(self, count: int) -> Iterator[GeneratedRow]:
        self.prepare(count)
        for row_index in range(count):
            yield self.assemble_row(row_index)

    def format_row(self, row: GeneratedRow) -> str:
        return "(" + ", ".join(format_literal(row[column.name], column) for column in self.columns) + ")"

    def build_insert_statements(self, rows: Sequence[GeneratedRow],
                                batch_size: int = MAX_ROWS_PER_INSERT,
                                identity_insert: bool = False) -> List[str]:
        """Render rows as batched multi-row INSERT statements."""
        if not rows or not self.columns:
            return []
        batch_size = max(1, min(batch_size, MAX_ROWS_PER_INSERT))

        column_list = ", ".join(quote_identifier(column.name) for column in self.columns)
        header = f"INSERT INTO {self.table.qualified_name} ({column_list}) VALUES\n"

        statements = []
        for start in range(0, len(rows), batch_size):
            batch = rows[start:start + batch_size]
            statements.append(header + ",\n".join(self.format_row(row) for row in batch) + ";")

        if identity_insert and any(column.is_identity for column in self.columns):
            statements.insert(0, f"SET IDENTITY_INSERT {self.table.qualified_name} ON;")
            statements.append(f"SET IDENTITY_INSERT {self.table.qualified_name} OFF;")
        return statements
