"""
Value coercion: raw command-line strings to typed field values.

Rules by kind
- BOOLEAN: case-insensitive vocabulary (see parse_boolean).
- ENUM / NULLABLE_ENUM: member lookup by exact name (Color["RED"]).
- NULLABLE: the wrapped type's rule.
- COLLECTION: the element type's rule, one element per occurrence (the parser
  accumulates occurrences).
- SCALAR: the field converter when given, the runtime parsers below for
  date/time/duration/pattern/URI types, the raw string for str/object/Any, and
  the type's own constructor for everything else (int, float, Decimal, Path, ...).

Every failure surfaces as InvalidValueError carrying the field name, the raw
string and the original exception as __cause__.
"""
import datetime
import enum
import re
import typing
import urllib.parse

from .descriptors import Kind
from .faults import *

_TRUTHY = frozenset(("1", "yes", "y", "on", "t", "true"))
_FALSY = frozenset(("0", "no", "n", "off", "f", "false"))


def parse_boolean(value, /):
    """
    parse a boolean token.

    vocabulary (case-insensitive)
    - truthy: 1, yes, y, on, t, true
    - falsy:  0, no, n, off, f, false

    raises
    - ValueError naming the offending string for anything else.
    """
    folded = value.lower()
    if folded in _TRUTHY:
        return True
    if folded in _FALSY:
        return False
    raise ValueError("invalid boolean value: %r" % value)


def parse_timedelta(value, /):
    """
    parse a duration written as "[-][d.]hh:mm[:ss[.fraction]]" or as a whole number of days.

    examples
    - "1.02:03:04" → 1 day, 2 hours, 3 minutes, 4 seconds
    - "00:30"      → 30 minutes
    - "3"          → 3 days
    """
    match = re.fullmatch(
        r"\s*(?P<sign>-)?(?:(?P<days>\d+)\.)?(?P<hours>\d{1,2}):(?P<minutes>\d{1,2})"
        r"(?::(?P<seconds>\d{1,2})(?:\.(?P<fraction>\d{1,7}))?)?\s*",
        value,
    )
    if match:
        hours, minutes = int(match["hours"]), int(match["minutes"])
        seconds = int(match["seconds"] or 0)
        if hours > 23 or minutes > 59 or seconds > 59:
            raise ValueError("invalid duration value: %r" % value)
        delta = datetime.timedelta(
            days=int(match["days"] or 0),
            hours=hours,
            minutes=minutes,
            seconds=seconds,
            microseconds=round(int((match["fraction"] or "0").ljust(7, "0")) / 10),
        )
        return -delta if match["sign"] else delta
    if match := re.fullmatch(r"\s*(?P<sign>-)?(?P<days>\d+)\s*", value):
        delta = datetime.timedelta(days=int(match["days"]))
        return -delta if match["sign"] else delta
    raise ValueError("invalid duration value: %r" % value)


def parse_uri(value, /):
    """
    parse an absolute or relative URI; an empty string is rejected.
    """
    if not value.strip():
        raise ValueError("empty URI")
    return urllib.parse.urlsplit(value)


_PARSERS = {
    bool: parse_boolean,
    datetime.datetime: datetime.datetime.fromisoformat,
    datetime.date: datetime.date.fromisoformat,
    datetime.time: datetime.time.fromisoformat,
    datetime.timedelta: parse_timedelta,
    re.Pattern: re.compile,
    urllib.parse.SplitResult: parse_uri,
}


def convert(type, value, /, converter=None):
    """
    convert one raw string to 'type' with the per-type rule (without kind dispatch).

    used directly for scalar and nullable fields and for collection elements.
    """
    if converter is not None:
        return converter(value)
    if isinstance(type, enum.EnumType):
        return type[value]
    if type in (str, object, typing.Any):
        return value
    if (parser := _PARSERS.get(typing.get_origin(type) or type)) is not None:
        return parser(value)
    if not callable(type):
        raise TypeError("%r cannot be built from a string" % (type,))
    return type(value)


def coerce(descriptor, value, /):
    """
    convert a raw token into the value of 'descriptor'.

    returns
    - the typed value (for collections: a single element).

    raises
    - InvalidValueError with options field/value/type, chaining the converter failure.
    """
    try:
        match descriptor.kind:
            case Kind.BOOLEAN:
                return convert(bool, value, descriptor.converter)
            case Kind.ENUM | Kind.NULLABLE_ENUM:
                return convert(descriptor.enum_type, value, descriptor.converter)
            case Kind.NULLABLE | Kind.SCALAR | Kind.COLLECTION:
                return convert(descriptor.value_type, value, descriptor.converter)
    except Exception as exception:
        if isinstance(descriptor.value_type, enum.EnumType):
            hint = "use one of: %s" % ", ".join(descriptor.value_type.__members__)
        else:
            hint = "expected %s (%s)" % (getattr(descriptor.value_type, "__name__", descriptor.value_type), exception)
        raise InvalidValueError(
            "invalid value %r for argument %s" % (value, descriptor.describe()),
            title="invalid value",
            code=FaultCode.INVALID_VALUE,
            hint=hint,
            field=descriptor.name,
            value=value,
            type=descriptor.value_type,
        ) from exception
    raise AssertionError("unexpected kind %r" % descriptor.kind)


__all__ = (
    "parse_boolean",
    "parse_timedelta",
    "parse_uri",
    "convert",
    "coerce",
)
