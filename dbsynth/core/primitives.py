"""Low-level random value helpers shared by the SQL type and randomizer rules."""

import random
import string
from datetime import date, datetime, time, timedelta
from decimal import Decimal, ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP
from typing import Any, Optional, Tuple

from .exceptions import ConfigurationError
from .rules import DATE_FORMATS, SqlType


HEX_DIGITS = "0123456789abcdef"
SHUFFLE_ANCHORS = ",."

_MICROSECOND = timedelta(microseconds=1)
# Date used to anchor bare time-of-day bounds
_TIME_ANCHOR = date(1900, 1, 1)


def random_int(rng: random.Random, min_value: Any, max_value: Any) -> int:
    """Uniform integer in ``[min_value, max_value]``."""
    low, high = int(min_value), int(max_value)
    if low > high:
        raise ConfigurationError(f"Minimum {low} is greater than maximum {high}")
    return rng.randint(low, high)


def random_amount(rng: random.Random, min_value: Any, max_value: Any, precision: int) -> Decimal:
    """Uniform amount in ``[min_value, max_value]`` with ``precision`` fractional digits."""
    low, high = Decimal(str(min_value)), Decimal(str(max_value))
    if low > high:
        raise ConfigurationError(f"Minimum {low} is greater than maximum {high}")

    quantum = Decimal(1).scaleb(-int(precision))
    amount = Decimal(str(rng.uniform(float(low), float(high)))).quantize(quantum, rounding=ROUND_HALF_UP)

    # Keep the rounded amount inside the requested bounds
    floor_low = low.quantize(quantum, rounding=ROUND_CEILING)
    ceil_high = high.quantize(quantum, rounding=ROUND_FLOOR)
    if floor_low <= ceil_high:
        amount = min(max(amount, floor_low), ceil_high)
    return amount


def random_string(rng: random.Random, min_length: Any, max_length: Any,
                  character_set: str) -> str:
    """String of uniform length in ``[min_length, max_length]`` drawn from ``character_set``."""
    if not character_set:
        raise ConfigurationError("Character set for string generation is empty")
    length = random_int(rng, max(0, int(min_length)), int(max_length))
    return "".join(rng.choice(character_set) for _ in range(length))


def truncate_text(value: Any, max_length: Optional[int]) -> Any:
    """Cut string values to ``max_length`` characters; other values pass through."""
    if max_length is None or not isinstance(value, str):
        return value
    return value[:max_length]


def parse_temporal(value: Any) -> datetime:
    """Convert a bound from the configuration into a ``datetime``."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, time):
        return datetime.combine(_TIME_ANCHOR, value)

    text = str(value).strip()
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.combine(_TIME_ANCHOR, time.fromisoformat(text))
    except ValueError:
        raise ConfigurationError(f"Cannot interpret '{value}' as a date or time")


def random_datetime(rng: random.Random, start: datetime, end: datetime) -> datetime:
    """Uniform instant in ``[start, end]`` at microsecond resolution."""
    if start > end:
        raise ConfigurationError(f"Start date {start} is after end date {end}")
    span = (end - start) // _MICROSECOND
    return start + timedelta(microseconds=rng.randint(0, span))


def temporal_window(min_value: Any, max_value: Any, lookback_days: int,
                    now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """Resolve optional bounds into a concrete ``(start, end)`` window.

    Both bounds given: that window. One bound given: a ``lookback_days`` window
    anchored on it. No bounds: the past ``lookback_days`` ending now.
    """
    window = timedelta(days=lookback_days)
    has_min = min_value not in (None, "")
    has_max = max_value not in (None, "")
    if has_min and has_max:
        return parse_temporal(min_value), parse_temporal(max_value)
    if has_min:
        start = parse_temporal(min_value)
        return start, start + window
    end = parse_temporal(max_value) if has_max else (now or datetime.now())
    return end - window, end


def format_temporal(value: datetime, sql_type: SqlType) -> str:
    """Render ``value`` in the canonical text layout of a SQL date/time type."""
    pattern, digits = DATE_FORMATS[sql_type]
    text = value.strftime(pattern)
    if not digits:
        return text
    # datetime carries microseconds; datetime2/time expose seven digits
    fraction = f"{value.microsecond:06d}".ljust(digits, "0")[:digits]
    return f"{text}.{fraction}"


def shuffle_value(rng: random.Random, value: Any) -> str:
    """Permute the characters of ``value`` keeping commas and periods in place.

    Every comma and period is anchored, not only the first of each, so
    grouped numbers such as ``1,234,567.89`` keep their layout.
    """
    chars = list(str(value))
    movable = [i for i, ch in enumerate(chars) if ch not in SHUFFLE_ANCHORS]
    picked = [chars[i] for i in movable]
    rng.shuffle(picked)
    for position, ch in zip(movable, picked):
        chars[position] = ch
    return "".join(chars)


def mac_address(rng: random.Random, separator: Optional[str] = None,
                pattern: Optional[str] = None) -> str:
    """MAC address with an optional separator or ``#`` substitution pattern.

    ``pattern`` wins over ``separator``: every ``#`` becomes one hex digit,
    every ``X`` one upper-case hex digit, anything else is copied.
    """
    if pattern:
        out = []
        for ch in pattern:
            if ch == "#":
                out.append(rng.choice(HEX_DIGITS))
            elif ch == "X":
                out.append(rng.choice(HEX_DIGITS).upper())
            else:
                out.append(ch)
        return "".join(out)

    sep = ":" if separator is None else separator
    return sep.join(f"{rng.randint(0, 255):02x}" for _ in range(6))


def hex_string(rng: random.Random, length: int) -> str:
    return "".join(rng.choice(HEX_DIGITS) for _ in range(length))


def digit_string(rng: random.Random, length: int) -> str:
    return "".join(rng.choice(string.digits) for _ in range(length))
