"""Tests for rule tables and data models."""

import pytest

from dbsynth.core.exceptions import (
    ConfigurationError, ConstraintUnsatisfiable, UnsupportedDataTypeError,
    UnsupportedRandomizerError,
)
from dbsynth.core.models import (
    ColumnSpec, GenerationRule, GenerationStats, TableSpec, UniqueIndex,
)
from dbsynth.core.rules import (
    RANDOMIZER_SUBTYPES, RandomizerCategory, SqlType, resolve_randomizer,
)


class TestSqlType:
    """Test SQL data type parsing."""

    def test_from_name_is_case_insensitive(self):
        """Type names are matched regardless of case."""
        assert SqlType.from_name("NVARCHAR") is SqlType.NVARCHAR
        assert SqlType.from_name("DateTime2") is SqlType.DATETIME2

    def test_from_name_strips_length(self):
        """Lengths and precisions in parentheses are ignored."""
        assert SqlType.from_name("varchar(50)") is SqlType.VARCHAR
        assert SqlType.from_name("decimal(10, 2)") is SqlType.DECIMAL

    def test_aliases(self):
        """GUID and INTEGER are accepted as aliases."""
        assert SqlType.from_name("guid") is SqlType.UNIQUEIDENTIFIER
        assert SqlType.from_name("integer") is SqlType.INT

    def test_unsupported_type(self):
        """Unknown types raise UnsupportedDataTypeError."""
        with pytest.raises(UnsupportedDataTypeError, match="Unsupported data type: geography"):
            SqlType.from_name("geography")


class TestRandomizerResolution:
    """Test category/subtype resolution."""

    def test_explicit_category(self):
        """Category and subtype are normalized to catalogue spelling."""
        assert resolve_randomizer("address", "zipcode") == (RandomizerCategory.ADDRESS, "ZipCode")

    def test_category_lookup(self):
        """A unique subtype finds its category."""
        assert resolve_randomizer(None, "Iban") == (RandomizerCategory.FINANCE, "Iban")

    def test_ambiguous_subtype(self):
        """Subtypes present in several categories need a category."""
        with pytest.raises(ConfigurationError, match="ambiguous"):
            resolve_randomizer(None, "Email")

    def test_unknown_subtype(self):
        """Unknown subtypes raise UnsupportedRandomizerError."""
        with pytest.raises(UnsupportedRandomizerError):
            resolve_randomizer("Name", "Nickname")

    def test_unknown_category(self):
        """Unknown categories raise UnsupportedRandomizerError."""
        with pytest.raises(UnsupportedRandomizerError):
            resolve_randomizer("Hacker", "Phrase")

    def test_every_category_has_subtypes(self):
        """Every category lists at least one subtype."""
        assert set(RANDOMIZER_SUBTYPES) == set(RandomizerCategory)
        assert all(RANDOMIZER_SUBTYPES.values())


class TestGenerationRule:
    """Test GenerationRule construction."""

    def test_sql_type_rule(self):
        """A rule for a SQL type keeps its parameters."""
        rule = GenerationRule.for_sql_type("int", min_value=1, max_value=10)
        assert rule.sql_type is SqlType.INT
        assert not rule.is_randomizer
        assert rule.key == "int"

    def test_randomizer_rule(self):
        """A randomizer rule carries category and subtype."""
        rule = GenerationRule.for_randomizer("Name", "firstname")
        assert rule.is_randomizer
        assert rule.key == "Name.FirstName"

    def test_rule_needs_exactly_one_source(self):
        """Neither or both a type and a randomizer are rejected."""
        with pytest.raises(ConfigurationError):
            GenerationRule()
        with pytest.raises(ConfigurationError):
            GenerationRule(sql_type=SqlType.INT, category=RandomizerCategory.NAME, subtype="FirstName")

    def test_with_params(self):
        """with_params returns a modified copy."""
        rule = GenerationRule.for_sql_type("int", min_value=1)
        changed = rule.with_params(max_value=5)
        assert changed.max_value == 5
        assert rule.max_value is None


class TestTableSpec:
    """Test TableSpec helpers."""

    def test_qualified_name(self):
        """Schema and table are bracket quoted."""
        assert TableSpec(name="Orders", schema="sales").qualified_name == "[sales].[Orders]"

    def test_get_column_case_insensitive(self, customer_table):
        """Column lookup ignores case."""
        assert customer_table.get_column("firstname").name == "FirstName"
        assert customer_table.get_column("missing") is None

    def test_identity_column(self, customer_table):
        """The identity column is found."""
        assert customer_table.identity_column.name == "CustomerId"

    def test_with_unique_indexes_flags_columns(self):
        """Columns in a unique index are flagged."""
        table = TableSpec(name="T", columns=[
            ColumnSpec(name="A", sql_type=SqlType.INT),
            ColumnSpec(name="B", sql_type=SqlType.INT),
        ])
        indexed = table.with_unique_indexes([UniqueIndex(name="UQ", columns=("a",))])
        assert indexed.get_column("A").in_unique_index
        assert not indexed.get_column("B").in_unique_index
        assert not table.get_column("A").in_unique_index


class TestColumnSpec:
    """Test ColumnSpec type families."""

    def test_type_families(self):
        """Type family properties follow the declared type."""
        assert ColumnSpec(name="a", sql_type=SqlType.NCHAR).is_string
        assert ColumnSpec(name="b", sql_type=SqlType.MONEY).is_numeric
        assert ColumnSpec(name="c", sql_type=SqlType.TIME).is_date
        assert ColumnSpec(name="d", sql_type=SqlType.BIT).is_boolean
        assert ColumnSpec(name="e", sql_type=SqlType.UNIQUEIDENTIFIER).is_guid


class TestExceptions:
    """Test exception messages."""

    def test_context_in_message(self):
        """Context is appended to the message."""
        error = ConfigurationError("Bad column", context={"column": "Age"})
        assert str(error) == "Bad column (context: column=Age)"

    def test_constraint_unsatisfiable(self):
        """ConstraintUnsatisfiable reports the columns and progress."""
        error = ConstraintUnsatisfiable(["A", "B"], 1000, 2)
        assert error.columns == ["A", "B"]
        assert error.generated == 2
        assert "(A, B)" in str(error)


class TestGenerationStats:
    """Test GenerationStats defaults."""

    def test_defaults(self):
        """Stats start empty."""
        stats = GenerationStats()
        assert stats.tables_processed == 0
        assert stats.errors == []
        assert stats.table_stats == {}
