"""Data models for generation rules, table specifications and run statistics."""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

from .exceptions import ConfigurationError
from .rules import (
    RandomizerCategory, SqlType, resolve_randomizer,
    INTEGER_TYPES, BOOLEAN_TYPES, DATE_TYPES, DECIMAL_TYPES, STRING_TYPES, GUID_TYPES,
)


@dataclass(frozen=True)
class GenerationRule:
    """Identifies how one value is produced.

    Exactly one of ``sql_type`` or the (``category``, ``subtype``) pair is set.
    The remaining attributes are parameters whose meaning depends on the rule:
    bounds, fractional digits, the character pool for strings, a format
    pattern, a separator, a currency symbol, or the input of ``Random.Shuffle``.
    """
    sql_type: Optional[SqlType] = None
    category: Optional[RandomizerCategory] = None
    subtype: Optional[str] = None
    min_value: Optional[Any] = None
    max_value: Optional[Any] = None
    precision: Optional[int] = None
    character_set: Optional[str] = None
    format_string: Optional[str] = None
    separator: Optional[str] = None
    symbol: Optional[str] = None
    value: Optional[Any] = None

    def __post_init__(self):
        has_type = self.sql_type is not None
        has_randomizer = self.category is not None or self.subtype is not None
        if has_type == has_randomizer:
            raise ConfigurationError(
                "A generation rule needs either a SQL data type or a randomizer "
                "category/subtype, not both and not neither"
            )
        if has_randomizer and (self.category is None or self.subtype is None):
            raise ConfigurationError(
                f"Randomizer rule is incomplete: {self.category}.{self.subtype}"
            )

    @classmethod
    def for_sql_type(cls, data_type: str, **params) -> "GenerationRule":
        """Build a rule for a SQL data type name."""
        return cls(sql_type=SqlType.from_name(data_type), **params)

    @classmethod
    def for_randomizer(cls, category: Optional[str], subtype: str, **params) -> "GenerationRule":
        """Build a rule for a randomizer, looking up the category when omitted."""
        resolved, canonical = resolve_randomizer(category, subtype)
        return cls(category=resolved, subtype=canonical, **params)

    @property
    def is_randomizer(self) -> bool:
        return self.category is not None

    @property
    def key(self) -> str:
        if self.is_randomizer:
            return f"{self.category.value}.{self.subtype}"
        return self.sql_type.value

    def with_params(self, **changes) -> "GenerationRule":
        return replace(self, **changes)


@dataclass(frozen=True)
class ForeignKeyRef:
    """Referenced column for a foreign key column."""
    table: str
    column: str
    schema: str = "dbo"


@dataclass(frozen=True)
class ColumnSpec:
    """One column in a generation job."""
    name: str
    sql_type: SqlType
    rule: Optional[GenerationRule] = None
    nullable: bool = False
    is_identity: bool = False
    in_unique_index: bool = False
    foreign_key: Optional[ForeignKeyRef] = None

    @property
    def is_string(self) -> bool:
        return self.sql_type in STRING_TYPES

    @property
    def is_guid(self) -> bool:
        return self.sql_type in GUID_TYPES

    @property
    def is_date(self) -> bool:
        return self.sql_type in DATE_TYPES

    @property
    def is_boolean(self) -> bool:
        return self.sql_type in BOOLEAN_TYPES

    @property
    def is_numeric(self) -> bool:
        return self.sql_type in INTEGER_TYPES or self.sql_type in DECIMAL_TYPES


@dataclass(frozen=True)
class UniqueIndex:
    """A unique index and its key columns, in key order."""
    name: str
    columns: Tuple[str, ...]


@dataclass
class TableSpec:
    """Everything needed to generate rows for one table."""
    name: str
    schema: str = "dbo"
    rows: int = 0
    columns: List[ColumnSpec] = field(default_factory=list)
    unique_indexes: List[UniqueIndex] = field(default_factory=list)
    has_unique_index: bool = False
    truncate: bool = False

    @property
    def qualified_name(self) -> str:
        return f"[{self.schema}].[{self.name}]"

    def get_column(self, name: str) -> Optional[ColumnSpec]:
        """Get column by name (case-insensitive, as SQL Server resolves them)."""
        for column in self.columns:
            if column.name.lower() == name.lower():
                return column
        return None

    @property
    def identity_column(self) -> Optional[ColumnSpec]:
        for column in self.columns:
            if column.is_identity:
                return column
        return None

    def with_unique_indexes(self, indexes: List[UniqueIndex]) -> "TableSpec":
        """Return a copy whose columns are flagged for the given unique indexes."""
        indexed = {name.lower() for index in indexes for name in index.columns}
        columns = [
            replace(column, in_unique_index=column.name.lower() in indexed)
            for column in self.columns
        ]
        return replace(self, columns=columns, unique_indexes=list(indexes))


@dataclass
class GenerationStats:
    """Statistics from a generation run."""
    tables_processed: int = 0
    total_rows_generated: int = 0
    total_time_seconds: float = 0.0
    errors: List[str] = field(default_factory=list)
    table_stats: Dict[str, Dict[str, Any]] = field(default_factory=dict)


# Column name -> generated value; None stands for NULL
GeneratedRow = Dict[str, Any]
