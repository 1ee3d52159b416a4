"""Category/subtype randomizers backed by Faker.

Each entry of the dispatch table maps ``(RandomizerCategory, subtype)`` to a
callable taking the column's :class:`GenerationRule`. The table is built once
per generator context and checked against ``RANDOMIZER_SUBTYPES``.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Tuple

from faker import Faker

from .exceptions import ConfigurationError
from .models import GenerationRule
from .primitives import (
    digit_string, hex_string, mac_address, parse_temporal, random_amount,
    random_datetime, random_int, random_string, shuffle_value, temporal_window,
)
from .rules import (
    DEFAULT_AMOUNT_RANGE, DEFAULT_CHARACTER_SET, DEFAULT_LOOKBACK_DAYS,
    DEFAULT_PRECISION, RANDOMIZER_SUBTYPES, RandomizerCategory,
)


logger = logging.getLogger(__name__)

Randomizer = Callable[[GenerationRule], Any]
RandomizerTable = Dict[Tuple[RandomizerCategory, str], Randomizer]

DEPARTMENTS = [
    "Books", "Movies", "Music", "Games", "Electronics", "Computers", "Home",
    "Garden", "Tools", "Grocery", "Health", "Beauty", "Toys", "Kids", "Baby",
    "Clothing", "Shoes", "Jewelery", "Sports", "Outdoors", "Automotive", "Industrial",
]
PRODUCT_ADJECTIVES = [
    "Small", "Ergonomic", "Rustic", "Intelligent", "Gorgeous", "Incredible",
    "Fantastic", "Practical", "Sleek", "Awesome", "Generic", "Handcrafted",
    "Handmade", "Licensed", "Refined", "Unbranded", "Tasty",
]
PRODUCT_MATERIALS = [
    "Steel", "Wooden", "Concrete", "Plastic", "Cotton", "Granite", "Rubber",
    "Metal", "Soft", "Fresh", "Frozen",
]
PRODUCT_NOUNS = [
    "Chair", "Car", "Computer", "Keyboard", "Mouse", "Bike", "Ball", "Gloves",
    "Pants", "Shirt", "Table", "Shoes", "Hat", "Towels", "Soap", "Tuna",
    "Chicken", "Fish", "Cheese", "Bacon", "Pizza", "Salad", "Sausages", "Chips",
]
ACCOUNT_NAMES = [
    "Checking Account", "Savings Account", "Money Market Account",
    "Investment Account", "Home Loan Account", "Credit Card Account",
    "Auto Loan Account", "Personal Loan Account",
]


def _bound(value: Any, default: Any) -> Any:
    return default if value in (None, "") else value


def _count(rule: GenerationRule, default: int) -> int:
    """Size-like parameter from ``max_value`` (falls back to ``min_value``)."""
    value = _bound(rule.max_value, _bound(rule.min_value, default))
    return int(value)


def _render_date(value: datetime, rule: GenerationRule) -> Any:
    return value.strftime(rule.format_string) if rule.format_string else value


def build_randomizer_table(faker: Faker) -> RandomizerTable:
    """Build the dispatch table for every supported randomizer."""
    rng = faker.random

    def amount(rule: GenerationRule):
        low, high = DEFAULT_AMOUNT_RANGE
        return random_amount(
            rng, _bound(rule.min_value, low), _bound(rule.max_value, high),
            _bound(rule.precision, DEFAULT_PRECISION),
        )

    def number(rule: GenerationRule, low: int = 0, high: int = 2147483647) -> int:
        return random_int(rng, _bound(rule.min_value, low), _bound(rule.max_value, high))

    def parity(rule: GenerationRule, remainder: int) -> int:
        low = int(_bound(rule.min_value, 0))
        high = int(_bound(rule.max_value, 100))
        start = low if low % 2 == remainder else low + 1
        if start > high:
            raise ConfigurationError(f"No {'odd' if remainder else 'even'} number between {low} and {high}")
        return start + 2 * rng.randint(0, (high - start) // 2)

    def coordinate(rule: GenerationRule, limit: int) -> float:
        low = float(_bound(rule.min_value, -limit))
        high = float(_bound(rule.max_value, limit))
        if low > high:
            raise ConfigurationError(f"Minimum {low} is greater than maximum {high}")
        return round(rng.uniform(low, high), 6)

    def zip_code(rule: GenerationRule) -> str:
        if rule.format_string:
            return faker.numerify(rule.format_string)
        return faker.postcode()

    def categories(rule: GenerationRule) -> str:
        count = min(_count(rule, 1), len(DEPARTMENTS))
        return ", ".join(rng.sample(DEPARTMENTS, count))

    def price(rule: GenerationRule) -> str:
        value = amount(rule)
        return f"{rule.symbol}{value}" if rule.symbol else str(value)

    def product_name(rule: GenerationRule) -> str:
        return " ".join((rng.choice(PRODUCT_ADJECTIVES), rng.choice(PRODUCT_MATERIALS),
                         rng.choice(PRODUCT_NOUNS)))

    def date_between(rule: GenerationRule):
        if rule.min_value in (None, ""):
            raise ConfigurationError("Please enter a min date for Date.Between")
        if rule.max_value in (None, ""):
            raise ConfigurationError("Please enter a max date for Date.Between")
        value = random_datetime(rng, parse_temporal(rule.min_value), parse_temporal(rule.max_value))
        return _render_date(value, rule)

    def date_past(rule: GenerationRule):
        start, end = temporal_window(None, rule.max_value, DEFAULT_LOOKBACK_DAYS)
        return _render_date(random_datetime(rng, start, end), rule)

    def date_future(rule: GenerationRule):
        start = parse_temporal(rule.min_value) if rule.min_value not in (None, "") else datetime.now()
        end = start + timedelta(days=DEFAULT_LOOKBACK_DAYS)
        return _render_date(random_datetime(rng, start, end), rule)

    def date_recent(rule: GenerationRule):
        end = datetime.now()
        days = int(_bound(rule.max_value, 1))
        return _render_date(random_datetime(rng, end - timedelta(days=days), end), rule)

    def date_soon(rule: GenerationRule):
        start = datetime.now()
        days = int(_bound(rule.max_value, 1))
        return _render_date(random_datetime(rng, start, start + timedelta(days=days)), rule)

    def mac(rule: GenerationRule) -> str:
        return mac_address(rng, separator=rule.separator, pattern=rule.format_string)

    def password(rule: GenerationRule) -> str:
        length = _count(rule, 10)
        # Faker needs room for one character of each required class
        if length < 4:
            return random_string(rng, length, length, DEFAULT_CHARACTER_SET)
        return faker.password(length=length)

    def paragraph(rule: GenerationRule) -> str:
        sentences = int(_bound(rule.min_value, 3))
        if sentences < 1:
            raise ConfigurationError("Min value for paragraph can't be 0 or lower")
        return faker.paragraph(nb_sentences=sentences)

    def paragraphs(rule: GenerationRule) -> str:
        count = int(_bound(rule.min_value, 3))
        if count < 1:
            raise ConfigurationError("Min value for paragraphs can't be 0 or lower")
        return "\n\n".join(faker.paragraphs(nb=count))

    def sentence(rule: GenerationRule) -> str:
        low = int(_bound(rule.min_value, 6))
        high = int(_bound(rule.max_value, low))
        return faker.sentence(nb_words=random_int(rng, low, max(low, high)), variable_nb_words=False)

    def text(rule: GenerationRule) -> str:
        # Faker cannot produce text shorter than five characters
        return faker.text(max_nb_chars=max(5, _count(rule, 200)))

    def phone_number(rule: GenerationRule) -> str:
        if rule.format_string:
            return faker.numerify(rule.format_string)
        return faker.phone_number()

    def shuffle(rule: GenerationRule) -> str:
        if rule.value in (None, ""):
            raise ConfigurationError("Value cannot be empty when using sub type 'Shuffle'")
        return shuffle_value(rng, rule.value)

    def random_text(rule: GenerationRule) -> str:
        low, high = 1, 10
        return random_string(
            rng, _bound(rule.min_value, low), _bound(rule.max_value, high),
            rule.character_set or DEFAULT_CHARACTER_SET,
        )

    def floating(rule: GenerationRule) -> float:
        low = float(_bound(rule.min_value, 0))
        high = float(_bound(rule.max_value, 1))
        if low > high:
            raise ConfigurationError(f"Minimum {low} is greater than maximum {high}")
        return round(rng.uniform(low, high), int(_bound(rule.precision, 7)))

    A = RandomizerCategory
    table: RandomizerTable = {
        (A.ADDRESS, "BuildingNumber"): lambda rule: faker.building_number(),
        (A.ADDRESS, "City"): lambda rule: faker.city(),
        (A.ADDRESS, "Country"): lambda rule: faker.country(),
        (A.ADDRESS, "CountryCode"): lambda rule: faker.country_code(),
        (A.ADDRESS, "FullAddress"): lambda rule: faker.address().replace("\n", ", "),
        (A.ADDRESS, "Latitude"): lambda rule: coordinate(rule, 90),
        (A.ADDRESS, "Longitude"): lambda rule: coordinate(rule, 180),
        (A.ADDRESS, "SecondaryAddress"): lambda rule: faker.secondary_address(),
        (A.ADDRESS, "State"): lambda rule: faker.state(),
        (A.ADDRESS, "StateAbbr"): lambda rule: faker.state_abbr(),
        (A.ADDRESS, "StreetAddress"): lambda rule: faker.street_address(),
        (A.ADDRESS, "StreetName"): lambda rule: faker.street_name(),
        (A.ADDRESS, "StreetSuffix"): lambda rule: faker.street_suffix(),
        (A.ADDRESS, "ZipCode"): zip_code,

        (A.COMMERCE, "Categories"): categories,
        (A.COMMERCE, "Department"): lambda rule: rng.choice(DEPARTMENTS),
        (A.COMMERCE, "Ean13"): lambda rule: faker.ean13(),
        (A.COMMERCE, "Ean8"): lambda rule: faker.ean8(),
        (A.COMMERCE, "Price"): price,
        (A.COMMERCE, "ProductName"): product_name,

        (A.COMPANY, "Bs"): lambda rule: faker.bs(),
        (A.COMPANY, "CatchPhrase"): lambda rule: faker.catch_phrase(),
        (A.COMPANY, "CompanyName"): lambda rule: faker.company(),
        (A.COMPANY, "CompanySuffix"): lambda rule: faker.company_suffix(),

        (A.DATE, "Between"): date_between,
        (A.DATE, "Future"): date_future,
        (A.DATE, "Month"): lambda rule: faker.month_name(),
        (A.DATE, "Past"): date_past,
        (A.DATE, "Recent"): date_recent,
        (A.DATE, "Soon"): date_soon,
        (A.DATE, "Weekday"): lambda rule: faker.day_of_week(),

        (A.FINANCE, "Account"): lambda rule: digit_string(rng, _count(rule, 8)),
        (A.FINANCE, "AccountName"): lambda rule: rng.choice(ACCOUNT_NAMES),
        (A.FINANCE, "Amount"): amount,
        (A.FINANCE, "Bic"): lambda rule: faker.swift8(),
        (A.FINANCE, "CreditCardCvv"): lambda rule: faker.credit_card_security_code(),
        (A.FINANCE, "CreditCardNumber"): lambda rule: faker.credit_card_number(),
        (A.FINANCE, "Currency"): lambda rule: faker.currency_code(),
        (A.FINANCE, "Iban"): lambda rule: faker.iban(),
        (A.FINANCE, "RoutingNumber"): lambda rule: faker.aba(),

        (A.INTERNET, "Color"): lambda rule: faker.hex_color(),
        (A.INTERNET, "DomainName"): lambda rule: faker.domain_name(),
        (A.INTERNET, "DomainSuffix"): lambda rule: faker.tld(),
        (A.INTERNET, "DomainWord"): lambda rule: faker.domain_word(),
        (A.INTERNET, "Email"): lambda rule: faker.email(),
        (A.INTERNET, "Ip"): lambda rule: faker.ipv4(),
        (A.INTERNET, "Ipv6"): lambda rule: faker.ipv6(),
        (A.INTERNET, "Mac"): mac,
        (A.INTERNET, "Password"): password,
        (A.INTERNET, "Url"): lambda rule: faker.url(),
        (A.INTERNET, "UserAgent"): lambda rule: faker.user_agent(),
        (A.INTERNET, "UserName"): lambda rule: faker.user_name(),

        (A.LOREM, "Letter"): lambda rule: "".join(faker.random_letters(length=_count(rule, 1))),
        (A.LOREM, "Paragraph"): paragraph,
        (A.LOREM, "Paragraphs"): paragraphs,
        (A.LOREM, "Sentence"): sentence,
        (A.LOREM, "Sentences"): lambda rule: " ".join(faker.sentences(nb=_count(rule, 3))),
        (A.LOREM, "Slug"): lambda rule: faker.slug(),
        (A.LOREM, "Text"): text,
        (A.LOREM, "Word"): lambda rule: faker.word(),
        (A.LOREM, "Words"): lambda rule: " ".join(faker.words(nb=_count(rule, 3))),

        (A.NAME, "FirstName"): lambda rule: faker.first_name(),
        (A.NAME, "FullName"): lambda rule: faker.name(),
        (A.NAME, "JobTitle"): lambda rule: faker.job(),
        (A.NAME, "LastName"): lambda rule: faker.last_name(),
        (A.NAME, "Prefix"): lambda rule: faker.prefix(),
        (A.NAME, "Suffix"): lambda rule: faker.suffix(),

        (A.PERSON, "Email"): lambda rule: faker.email(),
        (A.PERSON, "FirstName"): lambda rule: faker.first_name(),
        (A.PERSON, "FullName"): lambda rule: faker.name(),
        (A.PERSON, "LastName"): lambda rule: faker.last_name(),
        (A.PERSON, "Phone"): lambda rule: faker.phone_number(),
        (A.PERSON, "UserName"): lambda rule: faker.user_name(),

        (A.PHONE, "PhoneNumber"): phone_number,

        (A.RANDOM, "AlphaNumeric"): lambda rule: random_string(
            rng, _count(rule, 10), _count(rule, 10), DEFAULT_CHARACTER_SET),
        (A.RANDOM, "Bool"): lambda rule: rng.random() < 0.5,
        (A.RANDOM, "Decimal"): amount,
        (A.RANDOM, "Double"): floating,
        (A.RANDOM, "Even"): lambda rule: parity(rule, 0),
        (A.RANDOM, "Float"): floating,
        (A.RANDOM, "Guid"): lambda rule: faker.uuid4(),
        (A.RANDOM, "Hash"): lambda rule: hex_string(rng, _count(rule, 40)),
        (A.RANDOM, "Hexadecimal"): lambda rule: "0x" + hex_string(rng, _count(rule, 1)),
        (A.RANDOM, "Int"): number,
        (A.RANDOM, "Number"): lambda rule: number(rule, 0, 1),
        (A.RANDOM, "Odd"): lambda rule: parity(rule, 1),
        (A.RANDOM, "Shuffle"): shuffle,
        (A.RANDOM, "String"): random_text,
        (A.RANDOM, "String2"): random_text,
        (A.RANDOM, "Uuid"): lambda rule: faker.uuid4(),

        (A.SYSTEM, "FileExt"): lambda rule: faker.file_extension(),
        (A.SYSTEM, "FileName"): lambda rule: faker.file_name(),
        (A.SYSTEM, "FilePath"): lambda rule: faker.file_path(),
        (A.SYSTEM, "MimeType"): lambda rule: faker.mime_type(),
        (A.SYSTEM, "Semver"): lambda rule: f"{rng.randint(0, 9)}.{rng.randint(0, 99)}.{rng.randint(0, 999)}",
    }

    validate_randomizer_table(table)
    logger.debug(f"Built randomizer table with {len(table)} entries")
    return table


def validate_randomizer_table(table: RandomizerTable) -> None:
    """Ensure the dispatch table covers exactly the supported randomizers."""
    expected = {
        (category, subtype)
        for category, subtypes in RANDOMIZER_SUBTYPES.items()
        for subtype in subtypes
    }
    missing = expected - set(table)
    extra = set(table) - expected
    if missing or extra:
        raise ConfigurationError(
            "Randomizer table does not match the supported set",
            context={
                "missing": sorted(f"{c.value}.{s}" for c, s in missing),
                "unexpected": sorted(f"{c.value}.{s}" for c, s in extra),
            },
        )


def lookup_randomizer(table: RandomizerTable, category: RandomizerCategory,
                      subtype: str) -> Optional[Randomizer]:
    return table.get((category, subtype))
