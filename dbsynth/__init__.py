"""
DBSynth - Random data generation for SQL Server tables.

This package provides tools to:
- Generate single random values for SQL data types and named randomizers
- Generate rows that respect identity columns, unique indexes and foreign keys
- Render and execute batched INSERT statements per table
- Describe an existing database as a generation document
"""

__version__ = "1.0.0"

from dbsynth.core.database import DatabaseConnection
from dbsynth.core.generator import GeneratorContext, ValueGenerator
from dbsynth.core.runner import DataGeneratorRunner

__all__ = [
    "DatabaseConnection",
    "GeneratorContext",
    "ValueGenerator",
    "DataGeneratorRunner",
]
