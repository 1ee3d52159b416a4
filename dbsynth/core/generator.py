"""Value generation for SQL data types and randomizer categories."""

import logging
from typing import Any, Callable, Dict, Optional

from faker import Faker

from .exceptions import ConfigurationError, UnsupportedRandomizerError
from .models import GenerationRule
from .primitives import (
    format_temporal, random_amount, random_datetime, random_int, random_string,
    temporal_window,
)
from .randomizers import build_randomizer_table, lookup_randomizer
from .rules import (
    BOOLEAN_TYPES, DATE_TYPES, DECIMAL_TYPES, GUID_TYPES, INTEGER_RANGES,
    INTEGER_TYPES, STRING_TYPES, SqlType,
    DEFAULT_AMOUNT_RANGE, DEFAULT_CHARACTER_SET, DEFAULT_LOOKBACK_DAYS,
    DEFAULT_PRECISION, DEFAULT_STRING_LENGTH,
)


logger = logging.getLogger(__name__)


class GeneratorContext:
    """Faker instance, random source and dispatch tables for one run.

    Everything random in a run goes through ``self.random`` so a seed makes
    the whole run reproducible.
    """

    def __init__(self, locale: str = "en_US", seed: Optional[int] = None):
        self.locale = locale
        self.seed = seed
        self.faker = Faker(locale)
        if seed is not None:
            self.faker.seed_instance(seed)
        self.random = self.faker.random
        self.randomizers = build_randomizer_table(self.faker)


class ValueGenerator:
    """Produces one random value for a :class:`GenerationRule`."""

    def __init__(self, context: Optional[GeneratorContext] = None):
        self.context = context or GeneratorContext()
        self.random = self.context.random
        self._type_handlers = self._build_type_handlers()

    def generate(self, rule: GenerationRule, min_value: Any = None, max_value: Any = None,
                 precision: Optional[int] = None, character_set: Optional[str] = None,
                 format_string: Optional[str] = None) -> Any:
        """Generate a value; explicit arguments override the rule's parameters."""
        overrides = {
            "min_value": min_value,
            "max_value": max_value,
            "precision": precision,
            "character_set": character_set,
            "format_string": format_string,
        }
        overrides = {k: v for k, v in overrides.items() if v is not None}
        if overrides:
            rule = rule.with_params(**overrides)

        if rule.is_randomizer:
            handler = lookup_randomizer(self.context.randomizers, rule.category, rule.subtype)
            if handler is None:
                raise UnsupportedRandomizerError(rule.category.value, rule.subtype)
            return handler(rule)

        return self._type_handlers[rule.sql_type](rule)

    def random_value(self, data_type: Optional[str] = None,
                     randomizer_type: Optional[str] = None,
                     randomizer_subtype: Optional[str] = None, **params) -> Any:
        """Generate a value from loose names, as typed on the command line."""
        if data_type and randomizer_subtype:
            raise ConfigurationError("You cannot use both a data type and a randomizer subtype")
        if not data_type and not randomizer_subtype:
            raise ConfigurationError("Please use either a data type or a randomizer subtype")

        if data_type:
            rule = GenerationRule.for_sql_type(data_type, **params)
        else:
            rule = GenerationRule.for_randomizer(randomizer_type, randomizer_subtype, **params)
        return self.generate(rule)

    def _build_type_handlers(self) -> Dict[SqlType, Callable[[GenerationRule], Any]]:
        handlers: Dict[SqlType, Callable[[GenerationRule], Any]] = {}
        for sql_type in INTEGER_TYPES:
            handlers[sql_type] = self._generate_integer
        for sql_type in BOOLEAN_TYPES:
            handlers[sql_type] = self._generate_boolean
        for sql_type in DATE_TYPES:
            handlers[sql_type] = self._generate_temporal
        for sql_type in DECIMAL_TYPES:
            handlers[sql_type] = self._generate_decimal
        for sql_type in STRING_TYPES:
            handlers[sql_type] = self._generate_string
        for sql_type in GUID_TYPES:
            handlers[sql_type] = self._generate_guid

        missing = set(SqlType) - set(handlers)
        if missing:
            raise ConfigurationError(
                f"No generation rule for data types: {', '.join(sorted(t.value for t in missing))}"
            )
        return handlers

    def _generate_integer(self, rule: GenerationRule) -> int:
        """Uniform integer, clamping bounds to the type's native range."""
        type_min, type_max = INTEGER_RANGES[rule.sql_type]
        min_val, max_val = rule.min_value, rule.max_value

        if min_val in (None, "") or not type_min <= int(min_val) <= type_max:
            logger.debug(f"Min value for data type {rule.sql_type.value} is empty or out of range. "
                         f"Reset to {type_min}")
            min_val = type_min
        if max_val in (None, "") or not type_min <= int(max_val) <= type_max:
            logger.debug(f"Max value for data type {rule.sql_type.value} is empty or out of range. "
                         f"Reset to {type_max}")
            max_val = type_max

        return random_int(self.random, min_val, max_val)

    def _generate_boolean(self, rule: GenerationRule) -> int:
        return self.random.randint(0, 1)

    def _generate_temporal(self, rule: GenerationRule) -> str:
        start, end = temporal_window(rule.min_value, rule.max_value, DEFAULT_LOOKBACK_DAYS)
        value = random_datetime(self.random, start, end)
        if rule.format_string:
            return value.strftime(rule.format_string)
        return format_temporal(value, rule.sql_type)

    def _generate_decimal(self, rule: GenerationRule):
        low, high = DEFAULT_AMOUNT_RANGE
        min_val = low if rule.min_value in (None, "") else rule.min_value
        max_val = high if rule.max_value in (None, "") else rule.max_value
        precision = DEFAULT_PRECISION if rule.precision is None else rule.precision
        return random_amount(self.random, min_val, max_val, precision)

    def _generate_string(self, rule: GenerationRule) -> str:
        default_min, default_max = DEFAULT_STRING_LENGTH
        max_len = default_max if rule.max_value in (None, "") else int(rule.max_value)
        if rule.min_value in (None, ""):
            min_len = min(default_min, max_len)
        else:
            min_len = int(rule.min_value)
            if rule.max_value in (None, ""):
                max_len = max(min_len, max_len)
        return random_string(self.random, min_len, max_len,
                             rule.character_set or DEFAULT_CHARACTER_SET)

    def _generate_guid(self, rule: GenerationRule) -> str:
        return self.context.faker.uuid4()
