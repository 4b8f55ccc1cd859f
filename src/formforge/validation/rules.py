"""Rule validators for FormForge.

Each rule constructor returns a FieldValidator: a callable taking
(value, all_values) and returning an error message or None.

Shared contract - empty-value bypass: None and "" are valid for every rule
except required, so format rules compose with required() without reporting
"empty" twice:

    compose(required(), email())

Messages are resolved once, when the rule is built: from the message
argument if given, otherwise from the message registry. Changing the
registry later does not affect rules that already exist.

Available rules:
- required, email, url, phone
- min_length / max_length: string or list length
- min_value / max_value: numeric bounds
- pattern: regular expression
- matches: equality with another field
- one_of: membership
- credit_card: digits + Luhn checksum
- postal_code: US ZIP / ZIP+4
- alpha, alphanumeric, numeric, integer
"""

import math
import re
from collections.abc import Iterable, Mapping
from numbers import Real
from typing import Any
from urllib.parse import urlsplit

from formforge.validation.messages import MessageRegistry, resolve_message
from formforge.validation.types import FormValues, MessageOption


# =============================================================================
# Format Patterns
# =============================================================================

# Email: RFC 5322 simplified
EMAIL_PATTERN = re.compile(
    r"[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*"
)

# Phone: US numbers, matched after stripping everything but digits and "+"
# Accepts (123) 456-7890, 123-456-7890, 1234567890, +1 123 456 7890
PHONE_PATTERN = re.compile(r"\+?\(?[0-9]{3}\)?[-\s.]?[0-9]{3}[-\s.]?[0-9]{4,6}")
PHONE_STRIP_PATTERN = re.compile(r"[^\d+]")

# Credit card: separators allowed between digit groups
CARD_STRIP_PATTERN = re.compile(r"[\s-]")
DIGITS_PATTERN = re.compile(r"\d+")

# US ZIP: 12345 or 12345-6789
POSTAL_CODE_PATTERN = re.compile(r"\d{5}(-\d{4})?")

ALPHA_PATTERN = re.compile(r"[a-zA-Z]+")
ALPHANUMERIC_PATTERN = re.compile(r"[a-zA-Z0-9]+")

# Leading numeric literal, as accepted by a lenient float parse ("12px" -> 12)
NUMBER_PREFIX_PATTERN = re.compile(
    r"\s*(?P<number>[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))"
)


# =============================================================================
# Helpers
# =============================================================================


def _is_empty(value: Any) -> bool:
    """None and "" are empty for the bypass contract."""
    return value is None or (isinstance(value, str) and value == "")


def _parse_number(value: Any) -> float:
    """Parse a number leniently; NaN when the value is not numeric.

    Strings are read up to the end of their leading numeric literal, so
    "42 kg" parses as 42. Booleans are not numbers.
    """
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, Real):
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    if isinstance(value, str):
        match = NUMBER_PREFIX_PATTERN.match(value)
        if match:
            return float(match.group("number"))
    return math.nan


def _length(value: Any) -> int:
    """Length of strings and sequences; 0 for anything else."""
    if isinstance(value, (str, list, tuple)):
        return len(value)
    return 0


def luhn_check(digits: str) -> bool:
    """Luhn checksum over a string of digits.

    From the rightmost digit, every second digit is doubled (minus 9 when
    above 9); the total must be divisible by 10.
    """
    total = 0
    double = False
    for char in reversed(digits):
        digit = int(char)
        if double:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
        double = not double
    return total % 10 == 0


# =============================================================================
# Rule Base
# =============================================================================


class Rule:
    """Base class for rule validators.

    Subclasses implement `check`, which returns True for acceptable values.
    Empty values never reach `check` unless `skip_empty` is False.
    """

    key = ""
    skip_empty = True

    def __init__(self, message: str):
        self.message = message

    def __call__(self, value: Any, all_values: FormValues | None = None) -> str | None:
        if self.skip_empty and _is_empty(value):
            return None
        if self.check(value, all_values if all_values is not None else {}):
            return None
        return self.message

    def check(self, value: Any, all_values: FormValues) -> bool:
        raise NotImplementedError("Subclasses must implement check()")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r})"


class RequiredRule(Rule):
    """Value must be present and non-empty."""

    key = "required"
    skip_empty = False

    def check(self, value: Any, all_values: FormValues) -> bool:
        if _is_empty(value):
            return False
        if isinstance(value, (list, tuple, set, frozenset, Mapping)) and len(value) == 0:
            return False
        return True


class EmailRule(Rule):
    key = "email"

    def check(self, value: Any, all_values: FormValues) -> bool:
        return isinstance(value, str) and EMAIL_PATTERN.fullmatch(value) is not None


class UrlRule(Rule):
    """Value must parse as an absolute URL."""

    key = "url"

    def check(self, value: Any, all_values: FormValues) -> bool:
        if not isinstance(value, str):
            return False
        try:
            parts = urlsplit(value.strip())
        except ValueError:
            return False
        if not parts.scheme or not (parts.netloc or parts.path):
            return False
        return not any(char.isspace() for char in parts.netloc)


class PhoneRule(Rule):
    key = "phone"

    def check(self, value: Any, all_values: FormValues) -> bool:
        if not isinstance(value, str):
            return False
        cleaned = PHONE_STRIP_PATTERN.sub("", value)
        return PHONE_PATTERN.fullmatch(cleaned) is not None


class MinLengthRule(Rule):
    key = "minLength"

    def __init__(self, length: int, message: str):
        super().__init__(message)
        self.length = length

    def check(self, value: Any, all_values: FormValues) -> bool:
        return _length(value) >= self.length


class MaxLengthRule(Rule):
    key = "maxLength"

    def __init__(self, length: int, message: str):
        super().__init__(message)
        self.length = length

    def check(self, value: Any, all_values: FormValues) -> bool:
        return _length(value) <= self.length


class MinValueRule(Rule):
    """Parsed number must be at least the bound; NaN fails."""

    key = "min"

    def __init__(self, minimum: float, message: str):
        super().__init__(message)
        self.minimum = minimum

    def check(self, value: Any, all_values: FormValues) -> bool:
        number = _parse_number(value)
        return not math.isnan(number) and number >= self.minimum


class MaxValueRule(Rule):
    """Parsed number must be at most the bound; NaN fails."""

    key = "max"

    def __init__(self, maximum: float, message: str):
        super().__init__(message)
        self.maximum = maximum

    def check(self, value: Any, all_values: FormValues) -> bool:
        number = _parse_number(value)
        return not math.isnan(number) and number <= self.maximum


class PatternRule(Rule):
    """String must contain a match for the regex (search semantics)."""

    key = "pattern"

    def __init__(self, regex: re.Pattern[str], message: str):
        super().__init__(message)
        self.regex = regex

    def check(self, value: Any, all_values: FormValues) -> bool:
        return isinstance(value, str) and self.regex.search(value) is not None


class MatchesRule(Rule):
    """Value must equal another field's value, without coercion."""

    key = "matches"

    def __init__(self, field_name: str, message: str):
        super().__init__(message)
        self.field_name = field_name

    def check(self, value: Any, all_values: FormValues) -> bool:
        other = all_values.get(self.field_name)
        # No coercion: True must not match 1, nor 1 match 1.0
        return type(value) is type(other) and value == other


class OneOfRule(Rule):
    key = "oneOf"

    def __init__(self, allowed_values: Iterable[Any], message: str):
        super().__init__(message)
        self.allowed_values = tuple(allowed_values)

    def check(self, value: Any, all_values: FormValues) -> bool:
        return value in self.allowed_values


class CreditCardRule(Rule):
    """13-19 digits (spaces and dashes allowed) passing the Luhn checksum."""

    key = "creditCard"

    def check(self, value: Any, all_values: FormValues) -> bool:
        if not isinstance(value, str):
            return False
        cleaned = CARD_STRIP_PATTERN.sub("", value)
        if DIGITS_PATTERN.fullmatch(cleaned) is None:
            return False
        if len(cleaned) < 13 or len(cleaned) > 19:
            return False
        return luhn_check(cleaned)


class PostalCodeRule(Rule):
    key = "postalCode"

    def check(self, value: Any, all_values: FormValues) -> bool:
        return isinstance(value, str) and POSTAL_CODE_PATTERN.fullmatch(value) is not None


class AlphaRule(Rule):
    key = "alpha"

    def check(self, value: Any, all_values: FormValues) -> bool:
        return isinstance(value, str) and ALPHA_PATTERN.fullmatch(value) is not None


class AlphanumericRule(Rule):
    key = "alphanumeric"

    def check(self, value: Any, all_values: FormValues) -> bool:
        return isinstance(value, str) and ALPHANUMERIC_PATTERN.fullmatch(value) is not None


class NumericRule(Rule):
    key = "numeric"

    def check(self, value: Any, all_values: FormValues) -> bool:
        return not math.isnan(_parse_number(value))


class IntegerRule(Rule):
    key = "integer"

    def check(self, value: Any, all_values: FormValues) -> bool:
        number = _parse_number(value)
        return not math.isnan(number) and number.is_integer()


# =============================================================================
# Rule Constructors
# =============================================================================


def required(message: MessageOption = None, *, registry: MessageRegistry | None = None) -> Rule:
    """Field must have a value: not None, "", or an empty list/dict."""
    return RequiredRule(resolve_message(message, "required", registry=registry))


def email(message: MessageOption = None, *, registry: MessageRegistry | None = None) -> Rule:
    """Field must be a valid email address."""
    return EmailRule(resolve_message(message, "email", registry=registry))


def url(message: MessageOption = None, *, registry: MessageRegistry | None = None) -> Rule:
    """Field must be an absolute URL."""
    return UrlRule(resolve_message(message, "url", registry=registry))


def phone(message: MessageOption = None, *, registry: MessageRegistry | None = None) -> Rule:
    """Field must be a US phone number (flexible formatting)."""
    return PhoneRule(resolve_message(message, "phone", registry=registry))


def min_length(
    length: int, message: MessageOption = None, *, registry: MessageRegistry | None = None
) -> Rule:
    """String or list must have at least `length` items."""
    return MinLengthRule(
        length, resolve_message(message, "minLength", {"min": length}, registry)
    )


def max_length(
    length: int, message: MessageOption = None, *, registry: MessageRegistry | None = None
) -> Rule:
    """String or list must have at most `length` items."""
    return MaxLengthRule(
        length, resolve_message(message, "maxLength", {"max": length}, registry)
    )


def min_value(
    minimum: float, message: MessageOption = None, *, registry: MessageRegistry | None = None
) -> Rule:
    """Number (or numeric string) must be at least `minimum`."""
    return MinValueRule(
        minimum, resolve_message(message, "min", {"min": minimum}, registry)
    )


def max_value(
    maximum: float, message: MessageOption = None, *, registry: MessageRegistry | None = None
) -> Rule:
    """Number (or numeric string) must be at most `maximum`."""
    return MaxValueRule(
        maximum, resolve_message(message, "max", {"max": maximum}, registry)
    )


def pattern(
    regex: str | re.Pattern[str],
    message: MessageOption = None,
    *,
    registry: MessageRegistry | None = None,
) -> Rule:
    """String must match the regular expression."""
    compiled = re.compile(regex) if isinstance(regex, str) else regex
    return PatternRule(
        compiled,
        resolve_message(message, "pattern", {"pattern": compiled.pattern}, registry),
    )


def matches(
    field_name: str, message: MessageOption = None, *, registry: MessageRegistry | None = None
) -> Rule:
    """Value must equal all_values[field_name] (e.g. password confirmation)."""
    return MatchesRule(
        field_name, resolve_message(message, "matches", {"field": field_name}, registry)
    )


def one_of(
    allowed_values: Iterable[Any],
    message: MessageOption = None,
    *,
    registry: MessageRegistry | None = None,
) -> Rule:
    """Value must be one of the allowed values."""
    allowed = tuple(allowed_values)
    return OneOfRule(
        allowed, resolve_message(message, "oneOf", {"values": allowed}, registry)
    )


def credit_card(message: MessageOption = None, *, registry: MessageRegistry | None = None) -> Rule:
    """Field must be a card number passing the Luhn checksum."""
    return CreditCardRule(resolve_message(message, "creditCard", registry=registry))


def postal_code(message: MessageOption = None, *, registry: MessageRegistry | None = None) -> Rule:
    """Field must be a US ZIP code (12345 or 12345-6789)."""
    return PostalCodeRule(resolve_message(message, "postalCode", registry=registry))


def alpha(message: MessageOption = None, *, registry: MessageRegistry | None = None) -> Rule:
    """Field must contain only letters."""
    return AlphaRule(resolve_message(message, "alpha", registry=registry))


def alphanumeric(message: MessageOption = None, *, registry: MessageRegistry | None = None) -> Rule:
    """Field must contain only letters and numbers."""
    return AlphanumericRule(resolve_message(message, "alphanumeric", registry=registry))


def numeric(message: MessageOption = None, *, registry: MessageRegistry | None = None) -> Rule:
    """Field must parse as a number."""
    return NumericRule(resolve_message(message, "numeric", registry=registry))


def integer(message: MessageOption = None, *, registry: MessageRegistry | None = None) -> Rule:
    """Field must parse as a whole number."""
    return IntegerRule(resolve_message(message, "integer", registry=registry))
