"""Unique-index aware tuple generation."""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .exceptions import ConfigurationError, ConstraintUnsatisfiable
from .generator import ValueGenerator
from .models import GenerationRule, UniqueIndex
from .primitives import truncate_text


logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 1000


def collation_key(key: Iterable[Any]) -> Tuple[Any, ...]:
    """Key tuple as SQL Server's default collation compares it.

    Strings are matched case-insensitively and without trailing spaces.
    """
    return tuple(
        value.casefold().rstrip(" ") if isinstance(value, str) else value
        for value in key
    )


class UniquenessEnforcer:
    """Generates values for unique-index columns that collide with no earlier row.

    Every index owns a set of key tuples already produced for the table. A
    candidate row is accepted only when its key is new in every index, so
    overlapping indexes stay consistent. The seen sets live as long as the
    enforcer, which the assembler creates once per table.

    ``length_limits`` maps column names to the longest string the column
    holds. Candidates are cut to that length before they are compared, so
    the seen sets hold exactly what will be inserted.
    """

    def __init__(self, generator: ValueGenerator, indexes: Sequence[UniqueIndex],
                 rules: Dict[str, GenerationRule],
                 max_attempts: int = DEFAULT_MAX_ATTEMPTS,
                 length_limits: Optional[Dict[str, int]] = None):
        if max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")

        self.generator = generator
        self.indexes = list(indexes)
        self.rules = rules
        self.max_attempts = max_attempts
        self.length_limits = length_limits or {}
        self.seen: Dict[str, Set[Tuple[Any, ...]]] = {index.name: set() for index in self.indexes}

        self.columns: List[str] = []
        for index in self.indexes:
            for column in index.columns:
                if column not in rules:
                    raise ConfigurationError(
                        f"Unique index {index.name} column {column} has no generation rule",
                        context={"index": index.name, "column": column},
                    )
                if column not in self.columns:
                    self.columns.append(column)

    @property
    def generated(self) -> int:
        if not self.seen:
            return 0
        return min(len(keys) for keys in self.seen.values())

    def add_existing(self, index_name: str, keys: Iterable[Tuple[Any, ...]]) -> None:
        """Register key tuples already present in the table."""
        self.seen[index_name].update(collation_key(key) for key in keys)

    def candidate(self) -> Dict[str, Any]:
        """One value per index column, cut to the column length."""
        return {
            column: truncate_text(self.generator.generate(self.rules[column]),
                                  self.length_limits.get(column))
            for column in self.columns
        }

    def generate_unique_row(self) -> Dict[str, Any]:
        """Generate one value per index column, retrying on any key collision."""
        for attempt in range(1, self.max_attempts + 1):
            values = self.candidate()
            keys = {
                index.name: collation_key(values[column] for column in index.columns)
                for index in self.indexes
            }
            if all(key not in self.seen[name] for name, key in keys.items()):
                for name, key in keys.items():
                    self.seen[name].add(key)
                if attempt > 1:
                    logger.debug(f"Unique tuple found after {attempt} attempts")
                return values

        logger.error(f"Exhausted {self.max_attempts} attempts generating unique values "
                     f"for {', '.join(self.columns)}")
        raise ConstraintUnsatisfiable(self.columns, self.max_attempts, self.generated)

    def precompute(self, count: int) -> List[Dict[str, Any]]:
        """Generate ``count`` unique rows up front, one per requested table row."""
        return [self.generate_unique_row() for _ in range(count)]
