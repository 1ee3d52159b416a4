"""Tests for the command-line interface."""

import json
import re

import yaml
from click.testing import CliRunner

from dbsynth.cli import cli
from dbsynth.core.config import load_config_file


class TestRandomValueCommand:
    """Test the random-value command."""

    def test_data_type(self):
        """A data type prints values within the bounds."""
        result = CliRunner().invoke(cli, ["random-value", "--data-type", "int", "--min", "5",
                                          "--max", "7", "--count", "10", "--seed", "1"])

        assert result.exit_code == 0
        values = [int(line) for line in result.output.split()]
        assert len(values) == 10
        assert all(5 <= v <= 7 for v in values)

    def test_randomizer(self):
        """A randomizer subtype prints formatted values."""
        result = CliRunner().invoke(cli, ["random-value", "--randomizer-type", "Address",
                                          "--randomizer-subtype", "ZipCode", "--format", "###-##"])

        assert result.exit_code == 0
        assert re.match(r"^\d{3}-\d{2}$", result.output.strip())

    def test_date_bounds(self):
        """Date bounds are passed through as text."""
        result = CliRunner().invoke(cli, ["random-value", "--data-type", "date",
                                          "--min", "2022-02-01", "--max", "2022-02-28"])

        assert result.exit_code == 0
        assert result.output.strip().startswith("2022-02-")

    def test_conflicting_options(self):
        """A data type and a subtype together fail."""
        result = CliRunner().invoke(cli, ["random-value", "--data-type", "int",
                                          "--randomizer-subtype", "City"])

        assert result.exit_code == 1
        assert "❌ Error:" in result.output


class TestInitConfigCommand:
    """Test the init-config command."""

    def test_writes_loadable_document(self, tmp_path):
        """The sample document loads back as a generation document."""
        output = tmp_path / "sample.yaml"
        result = CliRunner().invoke(cli, ["init-config", "--output", str(output)])

        assert result.exit_code == 0
        config = load_config_file(output)
        assert config.tables[0].name == "Customer"
        assert config.tables[0].unique_indexes[0].columns == ["Email"]


class TestGenerateCommand:
    """Test the generate command."""

    def write_document(self, tmp_path):
        path = tmp_path / "doc.json"
        path.write_text(json.dumps({
            "Name": "SalesDb",
            "Tables": [{
                "Name": "Region",
                "Rows": 3,
                "Columns": [
                    {"Name": "RegionName", "ColumnType": "nvarchar", "MinValue": 4, "MaxValue": 4},
                    {"Name": "Code", "ColumnType": "char", "MaxValue": 2, "Unique": True},
                ],
            }],
        }), encoding="utf-8")
        return path

    def test_dry_run_to_stdout(self, tmp_path):
        """--dry-run prints the script without connecting."""
        path = self.write_document(tmp_path)
        result = CliRunner().invoke(cli, ["generate", "--database", "SalesDb", "--file-path", str(path),
                                          "--dry-run", "--seed", "4"])

        assert result.exit_code == 0
        assert "INSERT INTO [dbo].[Region] ([RegionName], [Code]) VALUES" in result.output

    def test_dry_run_to_file(self, tmp_path):
        """--output writes the script to a file."""
        path = self.write_document(tmp_path)
        script = tmp_path / "out.sql"
        result = CliRunner().invoke(cli, ["generate", "--database", "SalesDb", "--file-path", str(path),
                                          "--dry-run", "--output", str(script)])

        assert result.exit_code == 0
        assert script.read_text(encoding="utf-8").count("(N'") == 3

    def test_excluded_column(self, tmp_path):
        """--exclude-column leaves a column out of the script."""
        path = self.write_document(tmp_path)
        result = CliRunner().invoke(cli, ["generate", "--database", "SalesDb", "--file-path", str(path),
                                          "--dry-run", "--exclude-column", "Code"])

        assert result.exit_code == 0
        assert "([RegionName]) VALUES" in result.output

    def test_sqlite_run(self, tmp_path, sqlite_db):
        """generate inserts rows into a SQLite database."""
        path = tmp_path / "doc.yaml"
        path.write_text(yaml.dump({
            "Tables": [{
                "Name": "customers",
                "Schema": "main",
                "Rows": 15,
                "Columns": [
                    {"Name": "email", "ColumnType": "varchar", "MaskingType": "Internet",
                     "SubType": "Email", "Unique": True},
                    {"Name": "created_at", "ColumnType": "date"},
                ],
            }],
        }), encoding="utf-8")

        result = CliRunner().invoke(cli, ["generate", "--driver", "sqlite", "--database", sqlite_db,
                                          "--file-path", str(path), "--seed", "2"])

        assert result.exit_code == 0, result.output
        assert "Rows inserted: 15" in result.output

    def test_missing_file(self, tmp_path):
        """A missing document is rejected by click."""
        result = CliRunner().invoke(cli, ["generate", "--database", "SalesDb",
                                          "--file-path", str(tmp_path / "missing.json")])
        assert result.exit_code != 0

    def test_dry_run_without_database(self, tmp_path):
        """A dry run needs no database name."""
        path = self.write_document(tmp_path)
        result = CliRunner().invoke(cli, ["generate", "--file-path", str(path), "--dry-run"])

        assert result.exit_code == 0
        assert "INSERT INTO [dbo].[Region]" in result.output

    def test_database_required_without_dry_run(self, tmp_path):
        """Inserting rows needs a database name."""
        path = self.write_document(tmp_path)
        result = CliRunner().invoke(cli, ["generate", "--file-path", str(path)])

        assert result.exit_code == 1
        assert "--database is required" in result.output
