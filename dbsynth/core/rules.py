"""Static rule table: supported SQL data types and randomizer categories."""

import re
import string
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from .exceptions import ConfigurationError, UnsupportedDataTypeError, UnsupportedRandomizerError


class SqlType(Enum):
    """Enumeration of SQL Server data types with a generation rule."""
    BIGINT = "bigint"
    BIT = "bit"
    BOOL = "bool"
    CHAR = "char"
    DATE = "date"
    DATETIME = "datetime"
    DATETIME2 = "datetime2"
    DECIMAL = "decimal"
    FLOAT = "float"
    INT = "int"
    MONEY = "money"
    NCHAR = "nchar"
    NTEXT = "ntext"
    NUMERIC = "numeric"
    NVARCHAR = "nvarchar"
    REAL = "real"
    SMALLDATETIME = "smalldatetime"
    SMALLINT = "smallint"
    TEXT = "text"
    TIME = "time"
    TINYINT = "tinyint"
    UNIQUEIDENTIFIER = "uniqueidentifier"
    VARCHAR = "varchar"

    @classmethod
    def from_name(cls, name: str) -> "SqlType":
        """Parse a type name such as ``nvarchar(50)`` or ``GUID``."""
        normalized = re.sub(r"\(.*\)$", "", str(name).strip()).strip().lower()
        normalized = SQL_TYPE_ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            raise UnsupportedDataTypeError(name, [t.value for t in cls])


SQL_TYPE_ALIASES: Dict[str, str] = {
    "guid": "uniqueidentifier",
    "integer": "int",
    "boolean": "bool",
}

INTEGER_TYPES: FrozenSet[SqlType] = frozenset({
    SqlType.BIGINT, SqlType.INT, SqlType.SMALLINT, SqlType.TINYINT,
})
BOOLEAN_TYPES: FrozenSet[SqlType] = frozenset({SqlType.BIT, SqlType.BOOL})
DATE_TYPES: FrozenSet[SqlType] = frozenset({
    SqlType.DATE, SqlType.DATETIME, SqlType.DATETIME2,
    SqlType.SMALLDATETIME, SqlType.TIME,
})
DECIMAL_TYPES: FrozenSet[SqlType] = frozenset({
    SqlType.DECIMAL, SqlType.NUMERIC, SqlType.MONEY, SqlType.FLOAT, SqlType.REAL,
})
STRING_TYPES: FrozenSet[SqlType] = frozenset({
    SqlType.CHAR, SqlType.NCHAR, SqlType.VARCHAR, SqlType.NVARCHAR,
    SqlType.TEXT, SqlType.NTEXT,
})
GUID_TYPES: FrozenSet[SqlType] = frozenset({SqlType.UNIQUEIDENTIFIER})

# Native ranges of the integer types
INTEGER_RANGES: Dict[SqlType, Tuple[int, int]] = {
    SqlType.BIGINT: (-9223372036854775808, 9223372036854775807),
    SqlType.INT: (-2147483648, 2147483647),
    SqlType.SMALLINT: (-32768, 32767),
    SqlType.TINYINT: (0, 255),
}

# strftime pattern and number of fractional-second digits per date type
DATE_FORMATS: Dict[SqlType, Tuple[str, int]] = {
    SqlType.DATE: ("%Y-%m-%d", 0),
    SqlType.DATETIME: ("%Y-%m-%d %H:%M:%S", 3),
    SqlType.DATETIME2: ("%Y-%m-%d %H:%M:%S", 7),
    SqlType.SMALLDATETIME: ("%Y-%m-%d %H:%M:%S", 0),
    SqlType.TIME: ("%H:%M:%S", 7),
}

DEFAULT_CHARACTER_SET = string.ascii_letters + string.digits
DEFAULT_STRING_LENGTH: Tuple[int, int] = (1, 50)
DEFAULT_AMOUNT_RANGE: Tuple[float, float] = (0, 1000)
DEFAULT_PRECISION = 2
DEFAULT_LOOKBACK_DAYS = 365


class RandomizerCategory(Enum):
    """Named families of synthetic value generators."""
    ADDRESS = "Address"
    COMMERCE = "Commerce"
    COMPANY = "Company"
    DATE = "Date"
    FINANCE = "Finance"
    INTERNET = "Internet"
    LOREM = "Lorem"
    NAME = "Name"
    PERSON = "Person"
    PHONE = "Phone"
    RANDOM = "Random"
    SYSTEM = "System"

    @classmethod
    def from_name(cls, name: str) -> "RandomizerCategory":
        for category in cls:
            if category.value.lower() == str(name).strip().lower():
                return category
        raise UnsupportedRandomizerError(name, None)


RANDOMIZER_SUBTYPES: Dict[RandomizerCategory, Tuple[str, ...]] = {
    RandomizerCategory.ADDRESS: (
        "BuildingNumber", "City", "Country", "CountryCode", "FullAddress",
        "Latitude", "Longitude", "SecondaryAddress", "State", "StateAbbr",
        "StreetAddress", "StreetName", "StreetSuffix", "ZipCode",
    ),
    RandomizerCategory.COMMERCE: (
        "Categories", "Department", "Ean13", "Ean8", "Price", "ProductName",
    ),
    RandomizerCategory.COMPANY: ("Bs", "CatchPhrase", "CompanyName", "CompanySuffix"),
    RandomizerCategory.DATE: ("Between", "Future", "Month", "Past", "Recent", "Soon", "Weekday"),
    RandomizerCategory.FINANCE: (
        "Account", "AccountName", "Amount", "Bic", "CreditCardCvv",
        "CreditCardNumber", "Currency", "Iban", "RoutingNumber",
    ),
    RandomizerCategory.INTERNET: (
        "Color", "DomainName", "DomainSuffix", "DomainWord", "Email", "Ip",
        "Ipv6", "Mac", "Password", "Url", "UserAgent", "UserName",
    ),
    RandomizerCategory.LOREM: (
        "Letter", "Paragraph", "Paragraphs", "Sentence", "Sentences", "Slug",
        "Text", "Word", "Words",
    ),
    RandomizerCategory.NAME: ("FirstName", "FullName", "JobTitle", "LastName", "Prefix", "Suffix"),
    RandomizerCategory.PERSON: ("Email", "FirstName", "FullName", "LastName", "Phone", "UserName"),
    RandomizerCategory.PHONE: ("PhoneNumber",),
    RandomizerCategory.RANDOM: (
        "AlphaNumeric", "Bool", "Decimal", "Double", "Even", "Float", "Guid",
        "Hash", "Hexadecimal", "Int", "Number", "Odd", "Shuffle", "String",
        "String2", "Uuid",
    ),
    RandomizerCategory.SYSTEM: ("FileExt", "FileName", "FilePath", "MimeType", "Semver"),
}


def canonical_subtype(category: RandomizerCategory, subtype: str) -> str:
    """Return the catalogue spelling of ``subtype`` within ``category``."""
    wanted = str(subtype).strip().lower()
    for candidate in RANDOMIZER_SUBTYPES[category]:
        if candidate.lower() == wanted:
            return candidate
    raise UnsupportedRandomizerError(category.value, subtype)


def resolve_randomizer(category: Optional[str], subtype: str) -> Tuple[RandomizerCategory, str]:
    """Resolve a (category, subtype) pair, looking the category up when absent.

    A subtype that exists in several categories (``Email``, ``FirstName``)
    needs an explicit category.
    """
    if category:
        resolved = RandomizerCategory.from_name(category)
        return resolved, canonical_subtype(resolved, subtype)

    wanted = str(subtype).strip().lower()
    matches = [
        (cat, name)
        for cat, names in RANDOMIZER_SUBTYPES.items()
        for name in names
        if name.lower() == wanted
    ]
    if not matches:
        raise UnsupportedRandomizerError(None, subtype)
    if len(matches) > 1:
        categories = ", ".join(cat.value for cat, _ in matches)
        raise ConfigurationError(
            f"Randomizer subtype {subtype} is ambiguous, specify one of: {categories}",
            context={"subtype": subtype},
        )
    return matches[0]
