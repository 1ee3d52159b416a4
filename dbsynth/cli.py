"""Command-line interface for DBSynth."""

import click
import json
import logging
import sys
import yaml
from pathlib import Path
from typing import Any, Optional, Tuple

from dbsynth.core.config import GenerationOptions, load_config_file
from dbsynth.core.database import DatabaseConfig, DatabaseConnection
from dbsynth.core.generator import GeneratorContext, ValueGenerator
from dbsynth.core.introspector import SchemaIntrospector
from dbsynth.core.runner import DataGeneratorRunner


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def connection_options(database_required: bool = True):
    """Shared connection options for commands that talk to a database."""
    options = [
        click.option('--host', '-h', default='localhost', help='SQL Server instance'),
        click.option('--port', '-p', type=int, default=1433, help='Database port'),
        click.option('--database', '-d', required=database_required,
                     help='Database name, or file path for SQLite'),
        click.option('--username', '-u', help='SQL login; omit for integrated security'),
        click.option('--password', envvar='DBSYNTH_PASSWORD', help='SQL login password'),
        click.option('--driver', default='mssql', type=click.Choice(['mssql', 'sqlite']),
                     help='Database driver'),
        click.option('--trust-server-certificate', is_flag=True,
                     help='Skip TLS certificate validation'),
    ]

    def decorator(func):
        for option in reversed(options):
            func = option(func)
        return func
    return decorator


def _database_config(host: str, port: int, database: str, username: Optional[str],
                     password: Optional[str], driver: str,
                     trust_server_certificate: bool) -> DatabaseConfig:
    return DatabaseConfig(
        host=host,
        port=port,
        database=database,
        username=username,
        password=password,
        driver=driver,
        trust_server_certificate=trust_server_certificate,
    )


def _parse_bound(value: Optional[str]) -> Any:
    """Numbers stay numbers; anything else (dates) is passed through as text."""
    if value is None:
        return None
    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            continue
    return value


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-error output')
def cli(verbose: bool, quiet: bool):
    """DBSynth - Generate random data for SQL Server tables."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif quiet:
        logging.getLogger().setLevel(logging.ERROR)


@cli.command()
@connection_options(database_required=False)
@click.option('--file-path', '-f', required=True, type=click.Path(exists=True),
              help='Generation document (JSON/YAML)')
@click.option('--table', 'tables', multiple=True, help='Only generate these tables')
@click.option('--column', 'columns', multiple=True, help='Only generate these columns')
@click.option('--exclude-table', 'exclude_tables', multiple=True, help='Tables to leave out')
@click.option('--exclude-column', 'exclude_columns', multiple=True, help='Columns to leave out')
@click.option('--max-value', type=int, help='Cap for the MaxValue of character columns')
@click.option('--exact-length', is_flag=True, help='Generate strings of exactly MaxValue characters')
@click.option('--modulus-factor', type=int, default=10, help='Every n-th nullable value becomes NULL')
@click.option('--batch-size', type=int, default=1000, help='Rows per INSERT statement (max 1000)')
@click.option('--force', is_flag=True, help='Add rows to tables that already contain data')
@click.option('--seed', type=int, help='Random seed for reproducible generation')
@click.option('--locale', default='en_US', help='Faker locale')
@click.option('--dry-run', is_flag=True, help='Write the INSERT script instead of executing it')
@click.option('--output', '-o', type=click.Path(), help='Script file for --dry-run (default: stdout)')
def generate(host: str, port: int, database: Optional[str], username: Optional[str], password: Optional[str],
             driver: str, trust_server_certificate: bool, file_path: str,
             tables: Tuple[str, ...], columns: Tuple[str, ...],
             exclude_tables: Tuple[str, ...], exclude_columns: Tuple[str, ...],
             max_value: Optional[int], exact_length: bool, modulus_factor: int, batch_size: int,
             force: bool, seed: Optional[int], locale: str, dry_run: bool, output: Optional[str]):
    """Generate random rows for the tables of a generation document."""
    try:
        config = load_config_file(file_path)
        options = GenerationOptions(
            tables=list(tables) or None,
            columns=list(columns) or None,
            exclude_tables=list(exclude_tables),
            exclude_columns=list(exclude_columns),
            max_value=max_value,
            exact_length=exact_length,
            modulus_factor=modulus_factor,
            batch_size=batch_size,
            force=force,
            seed=seed,
            locale=locale,
        )

        if dry_run:
            script = DataGeneratorRunner(config, options=options).generate_script()
            if output:
                Path(output).write_text(script, encoding='utf-8')
                click.echo(f"✅ Script written to {output}")
            else:
                click.echo(script)
            return

        if not database:
            raise click.UsageError("--database is required unless --dry-run is set")
        db_config = _database_config(host, port, database, username, password, driver,
                                     trust_server_certificate)
        with DatabaseConnection(db_config) as db_conn:
            click.echo(f"🔄 Generating data for {database}...")
            stats = DataGeneratorRunner(config, db_conn, options).run()

        click.echo("\n📊 Generation Summary:")
        click.echo(f"  Tables processed: {stats.tables_processed}")
        click.echo(f"  Rows inserted: {stats.total_rows_generated:,}")
        click.echo(f"  Total time: {stats.total_time_seconds:.2f}s")
        if stats.errors:
            click.echo(f"  ⚠️  {len(stats.errors)} tables failed:")
            for error in stats.errors:
                click.echo(f"    - {error}")
            sys.exit(1)
        click.echo("\n🎉 Generation completed successfully!")

    except KeyboardInterrupt:
        click.echo("\n\n⏹️  Operation cancelled by user")
        sys.exit(1)
    except Exception as e:
        click.echo(f"\n❌ Error: {e}", err=True)
        sys.exit(1)


@cli.command('random-value')
@click.option('--data-type', help='SQL data type, e.g. int, varchar, datetime2')
@click.option('--randomizer-type', help='Randomizer category, e.g. Name, Address')
@click.option('--randomizer-subtype', help='Randomizer subtype, e.g. FirstName, ZipCode')
@click.option('--min', 'min_value', help='Minimum value or length')
@click.option('--max', 'max_value', help='Maximum value or length')
@click.option('--precision', type=int, help='Decimal places for decimal types')
@click.option('--character-string', help='Characters to build strings from')
@click.option('--format', 'format_string', help='Date format or # pattern')
@click.option('--separator', help='Separator, e.g. for MAC addresses')
@click.option('--symbol', help='Currency symbol for prices')
@click.option('--value', help='Value to shuffle')
@click.option('--locale', default='en_US', help='Faker locale')
@click.option('--count', '-n', type=int, default=1, help='Number of values to print')
@click.option('--seed', type=int, help='Random seed for reproducible values')
def random_value(data_type: Optional[str], randomizer_type: Optional[str],
                 randomizer_subtype: Optional[str], min_value: Optional[str],
                 max_value: Optional[str], precision: Optional[int],
                 character_string: Optional[str], format_string: Optional[str],
                 separator: Optional[str], symbol: Optional[str], value: Optional[str],
                 locale: str, count: int, seed: Optional[int]):
    """Print random values for a data type or a randomizer."""
    try:
        generator = ValueGenerator(GeneratorContext(locale=locale, seed=seed))
        for _ in range(count):
            result = generator.random_value(
                data_type=data_type,
                randomizer_type=randomizer_type,
                randomizer_subtype=randomizer_subtype,
                min_value=_parse_bound(min_value),
                max_value=_parse_bound(max_value),
                precision=precision,
                character_set=character_string,
                format_string=format_string,
                separator=separator,
                symbol=symbol,
                value=value,
            )
            click.echo(str(result))
    except Exception as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)


@cli.command('new-config')
@connection_options()
@click.option('--table', 'tables', multiple=True, help='Only describe these tables')
@click.option('--rows', '-r', type=int, default=1000, help='Rows to generate per table')
@click.option('--output', '-o', type=click.Path(), help='Output file (default: <database>.json)')
def new_config(host: str, port: int, database: str, username: Optional[str], password: Optional[str],
               driver: str, trust_server_certificate: bool, tables: Tuple[str, ...], rows: int,
               output: Optional[str]):
    """Describe an existing database as a generation document."""
    try:
        db_config = _database_config(host, port, database, username, password, driver,
                                     trust_server_certificate)
        with DatabaseConnection(db_config) as db_conn:
            document = SchemaIntrospector(db_conn).build_config(list(tables) or None, rows=rows)

        output_path = Path(output or f"{database}.json")
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(document.model_dump(by_alias=True, exclude_none=True), f, indent=4, default=str)

        click.echo(f"✅ Generation document for {len(document.tables)} tables written to {output_path}")
    except Exception as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)


@cli.command('init-config')
@click.option('--output', '-o', type=click.Path(), default='dbsynth_config.yaml',
              help='Output configuration file path')
def init_config(output: str):
    """Create a sample generation document."""
    config_template = {
        'Name': 'SalesDb',
        'Type': 'DataGeneratorConfiguration',
        'Tables': [
            {
                'Name': 'Customer',
                'Schema': 'dbo',
                'Rows': 1000,
                'TruncateTable': False,
                'HasUniqueIndex': True,
                'UniqueIndexes': [{'Name': 'UQ_Customer_Email', 'Columns': ['Email']}],
                'Columns': [
                    {'Name': 'CustomerId', 'ColumnType': 'int', 'Identity': True},
                    {'Name': 'FirstName', 'ColumnType': 'nvarchar', 'MaskingType': 'Name',
                     'SubType': 'FirstName', 'MaxValue': 50},
                    {'Name': 'LastName', 'ColumnType': 'nvarchar', 'MaskingType': 'Name',
                     'SubType': 'LastName', 'MaxValue': 50},
                    {'Name': 'Email', 'ColumnType': 'varchar', 'MaskingType': 'Internet',
                     'SubType': 'Email', 'MaxValue': 100},
                    {'Name': 'ZipCode', 'ColumnType': 'varchar', 'MaskingType': 'Address',
                     'SubType': 'ZipCode', 'Format': '#####', 'Nullable': True},
                    {'Name': 'CreditLimit', 'ColumnType': 'decimal', 'MinValue': 100,
                     'MaxValue': 5000, 'Precision': 2},
                    {'Name': 'Birthdate', 'ColumnType': 'date', 'MinValue': '1950-01-01',
                     'MaxValue': '2005-12-31'},
                ],
            },
        ],
    }

    output_path = Path(output)
    with open(output_path, 'w') as f:
        yaml.dump(config_template, f, default_flow_style=False, indent=2, sort_keys=False)

    click.echo(f"✅ Configuration template created: {output_path}")
    click.echo("Edit this file to customize your data generation settings.")


def main():
    """Main entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
