"""Generation document and run options."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import ConfigurationError
from .models import ColumnSpec, ForeignKeyRef, GenerationRule, TableSpec, UniqueIndex
from .rules import STRING_TYPES, SqlType


logger = logging.getLogger(__name__)


class ForeignKeyConfig(BaseModel):
    """Referenced column of a foreign key column."""
    model_config = ConfigDict(populate_by_name=True)

    schema_name: str = Field(default="dbo", alias="Schema")
    table: str = Field(..., alias="Table")
    column: str = Field(..., alias="Column")


class UniqueIndexConfig(BaseModel):
    """Unique index declared in the document."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., alias="Name")
    columns: List[str] = Field(..., alias="Columns", min_length=1)


class ColumnConfig(BaseModel):
    """One column entry of the generation document."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., alias="Name")
    column_type: str = Field(..., alias="ColumnType", description="Declared SQL data type")
    masking_type: Optional[str] = Field(default=None, alias="MaskingType",
                                        description="Randomizer category")
    sub_type: Optional[str] = Field(default=None, alias="SubType",
                                    description="Randomizer subtype")
    min_value: Optional[Union[int, float, str]] = Field(default=None, alias="MinValue")
    max_value: Optional[Union[int, float, str]] = Field(default=None, alias="MaxValue")
    precision: Optional[int] = Field(default=None, alias="Precision")
    character_string: Optional[str] = Field(default=None, alias="CharacterString")
    format_string: Optional[str] = Field(default=None, alias="Format")
    separator: Optional[str] = Field(default=None, alias="Separator")
    symbol: Optional[str] = Field(default=None, alias="Symbol")
    value: Optional[Any] = Field(default=None, alias="Value")
    nullable: bool = Field(default=False, alias="Nullable")
    identity: bool = Field(default=False, alias="Identity")
    unique: bool = Field(default=False, alias="Unique")
    foreign_key: Optional[ForeignKeyConfig] = Field(default=None, alias="ForeignKey")

    @field_validator("foreign_key", mode="before")
    @classmethod
    def ignore_flag_only_foreign_key(cls, v):
        # Older documents carry a plain boolean instead of the referenced column
        if isinstance(v, bool):
            return None
        return v

    def to_rule(self) -> Optional[GenerationRule]:
        """Build the generation rule; a subtype selects a randomizer over the SQL type."""
        params = dict(
            min_value=self.min_value,
            max_value=self.max_value,
            precision=self.precision,
            character_set=self.character_string,
            format_string=self.format_string,
            separator=self.separator,
            symbol=self.symbol,
            value=self.value,
        )
        if self.sub_type:
            return GenerationRule.for_randomizer(self.masking_type, self.sub_type, **params)
        return GenerationRule.for_sql_type(self.column_type, **params)


class TableConfig(BaseModel):
    """One table entry of the generation document."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., alias="Name")
    schema_name: str = Field(default="dbo", alias="Schema")
    rows: int = Field(default=1000, alias="Rows")
    truncate_table: bool = Field(default=False, alias="TruncateTable")
    has_unique_index: bool = Field(default=False, alias="HasUniqueIndex")
    unique_indexes: List[UniqueIndexConfig] = Field(default_factory=list, alias="UniqueIndexes")
    columns: List[ColumnConfig] = Field(default_factory=list, alias="Columns")

    @field_validator("rows")
    @classmethod
    def validate_rows(cls, v):
        if v < 0:
            raise ValueError("Rows must be 0 or greater")
        return v


class DataGeneratorConfig(BaseModel):
    """The generation document: a database name and its tables."""
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(default=None, alias="Name", description="Database name")
    type: str = Field(default="DataGeneratorConfiguration", alias="Type")
    tables: List[TableConfig] = Field(default_factory=list, alias="Tables")

    def get_table(self, name: str, schema: Optional[str] = None) -> Optional[TableConfig]:
        for table in self.tables:
            if table.name.lower() == name.lower() and (schema is None or table.schema_name == schema):
                return table
        return None


class GenerationOptions(BaseModel):
    """Run options layered over the generation document."""

    tables: Optional[List[str]] = Field(default=None, description="Tables to include (None = all)")
    columns: Optional[List[str]] = Field(default=None, description="Columns to include (None = all)")
    exclude_tables: List[str] = Field(default_factory=list, description="Tables to exclude")
    exclude_columns: List[str] = Field(default_factory=list, description="Columns to exclude")
    max_value: Optional[int] = Field(default=None, description="Cap for the length of character columns")
    exact_length: bool = Field(default=False, description="Generate strings of exactly MaxValue characters")
    modulus_factor: int = Field(default=10, description="Every n-th nullable value becomes NULL")
    force: bool = Field(default=False, description="Write to tables that already contain rows")
    batch_size: int = Field(default=1000, description="Rows per INSERT statement")
    seed: Optional[int] = Field(default=None, description="Random seed for reproducible data")
    locale: str = Field(default="en_US", description="Faker locale")
    max_unique_attempts: int = Field(default=1000, description="Retry ceiling per unique row")

    @field_validator("modulus_factor", "max_unique_attempts")
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("Value must be 1 or greater")
        return v

    @field_validator("batch_size")
    @classmethod
    def validate_batch_size(cls, v):
        if not 1 <= v <= 1000:
            raise ValueError("Batch size must be between 1 and 1000")
        return v

    def includes_table(self, name: str) -> bool:
        lowered = name.lower()
        if self.tables and lowered not in {t.lower() for t in self.tables}:
            return False
        return lowered not in {t.lower() for t in self.exclude_tables}

    def includes_column(self, name: str) -> bool:
        lowered = name.lower()
        if self.columns and lowered not in {c.lower() for c in self.columns}:
            return False
        return lowered not in {c.lower() for c in self.exclude_columns}


def load_config_file(config_path: Union[str, Path]) -> DataGeneratorConfig:
    """Load the generation document from a JSON or YAML file."""
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_file, "r", encoding="utf-8-sig") as f:
        if config_file.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {config_path} does not contain a document")
    logger.info(f"Loaded generation document from {config_file}")
    return DataGeneratorConfig.model_validate(data)


def _apply_options(column: ColumnConfig, options: GenerationOptions) -> ColumnConfig:
    """Apply the MaxValue cap and exact-length option to one column.

    Both options describe string lengths, so only character columns change.
    """
    try:
        is_string = SqlType.from_name(column.column_type) in STRING_TYPES
    except ConfigurationError:
        is_string = False
    if not is_string:
        return column

    updates: Dict[str, Any] = {}
    max_value = column.max_value
    if options.max_value is not None:
        if max_value in (None, "") or _as_number(max_value) > options.max_value:
            max_value = options.max_value
            updates["max_value"] = max_value

    if options.exact_length and max_value not in (None, ""):
        updates["min_value"] = max_value

    return column.model_copy(update=updates) if updates else column


def _as_number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return float("inf")


def build_table_spec(table: TableConfig, options: Optional[GenerationOptions] = None) -> TableSpec:
    """Turn a document table into a :class:`TableSpec`.

    Columns with an unsupported type or randomizer are logged and left out;
    the rest of the table is still generated.
    """
    options = options or GenerationOptions()
    columns: List[ColumnSpec] = []

    for column_config in table.columns:
        if not options.includes_column(column_config.name):
            logger.debug(f"Column {table.name}.{column_config.name} excluded by options")
            continue

        column_config = _apply_options(column_config, options)
        try:
            sql_type = SqlType.from_name(column_config.column_type)
            rule = None if column_config.identity else column_config.to_rule()
        except ConfigurationError as e:
            logger.warning(f"Skipping column [{table.schema_name}].[{table.name}].{column_config.name}: {e}")
            continue

        foreign_key = None
        if column_config.foreign_key:
            foreign_key = ForeignKeyRef(
                table=column_config.foreign_key.table,
                column=column_config.foreign_key.column,
                schema=column_config.foreign_key.schema_name,
            )

        columns.append(ColumnSpec(
            name=column_config.name,
            sql_type=sql_type,
            rule=rule,
            nullable=column_config.nullable,
            is_identity=column_config.identity,
            foreign_key=foreign_key,
        ))

    spec = TableSpec(
        name=table.name,
        schema=table.schema_name,
        rows=table.rows,
        columns=columns,
        has_unique_index=table.has_unique_index,
        truncate=table.truncate_table,
    )

    indexes = [UniqueIndex(name=index.name, columns=tuple(index.columns)) for index in table.unique_indexes]
    indexes.extend(
        UniqueIndex(name=f"UQ_{table.name}_{column.name}", columns=(column.name,))
        for column in table.columns if column.unique
    )
    return spec.with_unique_indexes(canonical_indexes(spec, indexes)) if indexes else spec


def canonical_indexes(spec: TableSpec, indexes: List[UniqueIndex]) -> List[UniqueIndex]:
    """Match index column names to the table's column spelling; drop unknown ones."""
    result = []
    for index in indexes:
        resolved = [spec.get_column(name) for name in index.columns]
        if any(column is None for column in resolved):
            logger.warning(f"Unique index {index.name} on {spec.qualified_name} references "
                           f"columns that are not generated, uniqueness not enforced")
            continue
        result.append(UniqueIndex(name=index.name, columns=tuple(c.name for c in resolved)))
    return result
