"""Exception hierarchy for DBSynth."""

from typing import Any, Dict, Optional, Sequence


class DBSynthError(Exception):
    """Base exception for all DBSynth errors.

    Carries an optional context dictionary so callers can log which table or
    column the failure belongs to.
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        result = self.message
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            result += f" (context: {context_str})"
        return result


class ConfigurationError(DBSynthError):
    """Invalid or incomplete generation configuration."""

    pass


class UnsupportedDataTypeError(ConfigurationError):
    """Raised when a SQL data type has no generation rule."""

    def __init__(self, data_type: str, supported: Sequence[str]) -> None:
        super().__init__(
            f"Unsupported data type: {data_type}. Supported: {', '.join(supported)}",
            context={"data_type": data_type},
        )
        self.data_type = data_type


class UnsupportedRandomizerError(ConfigurationError):
    """Raised when a randomizer category/subtype combination is unknown."""

    def __init__(self, category: Optional[str], subtype: Optional[str]) -> None:
        super().__init__(
            f"Unsupported randomizer: {category}.{subtype}",
            context={"category": category, "subtype": subtype},
        )
        self.category = category
        self.subtype = subtype


class ConstraintUnsatisfiable(DBSynthError):
    """Raised when no unused unique tuple is found within the retry ceiling."""

    def __init__(self, columns: Sequence[str], attempts: int, generated: int) -> None:
        super().__init__(
            f"Could not generate a unique value for ({', '.join(columns)}) "
            f"after {attempts} attempts; {generated} unique tuples produced so far",
            context={"columns": list(columns), "attempts": attempts},
        )
        self.columns = list(columns)
        self.attempts = attempts
        self.generated = generated
