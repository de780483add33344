"""JSON literal writers for loosely typed property values.

Purpose
-------
Turn arbitrary property values into JSON scalars without a general-purpose
JSON library. Values arrive with unknown types and string values that often
carry numbers or dates; both are written as proper JSON literals.

Contents
--------
* :func:`escape` / :func:`write_string` - JSON string escaping.
* :func:`parse_number` / :func:`parse_instant` / :func:`infer` - string
  inference (decimal first, then date-time).
* :class:`LiteralKind` and :func:`classify` - the closed set of literal kinds.
* :func:`write_literal` - inference followed by dispatch through
  :data:`_WRITERS`.
* :func:`format_instant` - round-trip date-time text (seven fractional digits).

System Role
-----------
Leaf helpers of the event encoder (:mod:`lib_log_seq.domain.encoder`). The
dispatch table and escape table are module constants, read-only after import,
and safe to share between threads.

Alignment Notes
---------------
Inference is a heuristic, not a schema: a property that happens to look like a
number or a date loses its string type on the wire. Seq clients depend on
that behaviour, so it is preserved.

Date strings ending in ``Z`` stay in UTC and are written with ``+00:00``.
They are not converted to the local zone first, so the instant is the same but
the offset text differs from a local-time rendering.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping, Protocol


class TextSink(Protocol):
    """Anything accepting text chunks, e.g. :class:`io.StringIO`."""

    def write(self, text: str, /) -> Any: ...


class LiteralKind(Enum):
    """Closed set of literal shapes the encoder knows how to write."""

    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    TEXT = "text"
    INSTANT = "instant"
    OTHER = "other"


_ESCAPE_RE = re.compile(r'[\x00-\x1f\\"]')

_SHORT_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\f": "\\f",
    "\t": "\\t",
}

# Whitespace and digits are ASCII-only; unicode digits stay text.
_NUMBER_RE = re.compile(r"[ \t\n\v\f\r]*([+-]?)([0-9][0-9,]*)?(?:\.([0-9]*))?[ \t\n\v\f\r]*")


def _escape_match(match: re.Match[str]) -> str:
    char = match.group()
    short = _SHORT_ESCAPES.get(char)
    if short is not None:
        return short
    return f"\\u{ord(char):04X}"


def escape(text: str) -> str:
    """Return ``text`` escaped for use inside a JSON string.

    The input object itself is returned when nothing needs escaping.

    Examples
    --------
    >>> escape('say "hi"\\n')
    'say \\\\"hi\\\\"\\\\n'
    >>> escape("\\x01")
    '\\\\u0001'
    >>> plain = "nothing to do"
    >>> escape(plain) is plain
    True
    """

    if _ESCAPE_RE.search(text) is None:
        return text
    return _ESCAPE_RE.sub(_escape_match, text)


def write_string(text: str, out: TextSink) -> None:
    """Write ``text`` as a quoted, escaped JSON string."""

    out.write('"')
    out.write(escape(text))
    out.write('"')


def parse_number(text: str) -> Decimal | None:
    """Parse ``text`` as a plain decimal number or return ``None``.

    Accepts surrounding whitespace, a leading sign, ``,`` group separators and
    a ``.`` fraction. Exponents, ``NaN`` and ``Infinity`` are rejected. The
    scale of the input is kept.

    Examples
    --------
    >>> parse_number("42.50")
    Decimal('42.50')
    >>> parse_number(" 1,000 ")
    Decimal('1000')
    >>> parse_number(".5")
    Decimal('0.5')
    >>> parse_number("1e5") is None
    True
    """

    match = _NUMBER_RE.fullmatch(text)
    if match is None:
        return None
    sign, whole, fraction = match.groups()
    whole = (whole or "").replace(",", "")
    if not whole and not fraction:
        return None
    literal = sign + (whole or "0")
    if fraction:
        literal = f"{literal}.{fraction}"
    number = Decimal(literal)
    if number.is_zero():
        return abs(number)
    return number


def parse_instant(text: str) -> datetime | None:
    """Parse ``text`` as an ISO-8601 date or date-time or return ``None``.

    A trailing ``Z`` is read as UTC.

    Examples
    --------
    >>> parse_instant("2024-01-15T10:00:00")
    datetime.datetime(2024, 1, 15, 10, 0)
    >>> parse_instant("tomorrow") is None
    True
    """

    candidate = text.strip()
    if not candidate:
        return None
    if candidate[-1] in "Zz":
        candidate = candidate[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        return None


def infer(value: Any) -> Any:
    """Upgrade string values to :class:`~decimal.Decimal` or :class:`datetime` when they parse."""

    if not isinstance(value, str):
        return value
    number = parse_number(value)
    if number is not None:
        return number
    instant = parse_instant(value)
    if instant is not None:
        return instant
    return value


def classify(value: Any) -> LiteralKind:
    """Return the :class:`LiteralKind` of an already-inferred ``value``.

    ``bool`` is tested before the numeric types because it subclasses ``int``.
    """

    if value is None:
        return LiteralKind.NULL
    if isinstance(value, bool):
        return LiteralKind.BOOL
    if isinstance(value, (int, float, Decimal)):
        return LiteralKind.NUMBER
    if isinstance(value, str):
        return LiteralKind.TEXT
    if isinstance(value, (datetime, date)):
        return LiteralKind.INSTANT
    return LiteralKind.OTHER


def format_instant(value: datetime | date) -> str:
    """Return the round-trip text of ``value`` with seven fractional digits.

    Aware values carry a ``+HH:MM``/``-HH:MM`` suffix, naive values none.
    Plain dates are promoted to midnight.

    Examples
    --------
    >>> from datetime import timedelta, timezone
    >>> format_instant(datetime(2024, 1, 15, 10, 0, 0, 123456, tzinfo=timezone(timedelta(hours=2))))
    '2024-01-15T10:00:00.1234560+02:00'
    >>> format_instant(date(2024, 1, 15))
    '2024-01-15T00:00:00.0000000'
    """

    if not isinstance(value, datetime):
        value = datetime.combine(value, time())
    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}.{value.microsecond:06d}0"
    )
    offset = value.utcoffset()
    if offset is None:
        return text
    minutes = int(offset.total_seconds()) // 60
    sign = "-" if minutes < 0 else "+"
    hours, minutes = divmod(abs(minutes), 60)
    return f"{text}{sign}{hours:02d}:{minutes:02d}"


def _number_text(value: int | float | Decimal) -> str | None:
    """Return the JSON text of ``value`` or ``None`` when it is not finite."""

    if isinstance(value, Decimal):
        return format(value, "f") if value.is_finite() else None
    if isinstance(value, int):
        try:
            return str(int(value))
        except ValueError:
            # Past sys.get_int_max_str_digits(); Decimal conversion has no limit.
            return format(Decimal(int(value)), "f")
    number = float(value)
    if not math.isfinite(number):
        return None
    return repr(number)


def _write_null(_value: Any, out: TextSink) -> None:
    out.write("null")


def _write_bool(value: bool, out: TextSink) -> None:
    out.write("true" if value else "false")


def _non_finite_name(value: float | Decimal) -> str:
    if isinstance(value, Decimal):
        is_nan, negative = value.is_nan(), value.is_signed()
    else:
        is_nan, negative = math.isnan(value), value < 0
    if is_nan:
        return "NaN"
    return "-Infinity" if negative else "Infinity"


def _write_number(value: int | float | Decimal, out: TextSink) -> None:
    text = _number_text(value)
    if text is None:
        # JSON has no NaN/Infinity; the .NET names are sent as strings.
        write_string(_non_finite_name(value), out)
        return
    out.write(text)


def _write_text(value: str, out: TextSink) -> None:
    write_string(value, out)


def _write_instant(value: datetime | date, out: TextSink) -> None:
    out.write('"')
    out.write(format_instant(value))
    out.write('"')


def _write_other(value: Any, out: TextSink) -> None:
    write_string(str(value), out)


_WRITERS: Mapping[LiteralKind, Callable[[Any, TextSink], None]] = MappingProxyType(
    {
        LiteralKind.NULL: _write_null,
        LiteralKind.BOOL: _write_bool,
        LiteralKind.NUMBER: _write_number,
        LiteralKind.TEXT: _write_text,
        LiteralKind.INSTANT: _write_instant,
        LiteralKind.OTHER: _write_other,
    }
)


def write_literal(value: Any, out: TextSink) -> None:
    """Infer, classify, and write ``value`` as a JSON literal.

    Examples
    --------
    >>> from io import StringIO
    >>> buffer = StringIO()
    >>> for item in ("42.5", True, None, "text"):
    ...     write_literal(item, buffer)
    ...     _ = buffer.write(" ")
    >>> buffer.getvalue()
    '42.5 true null "text" '
    """

    value = infer(value)
    _WRITERS[classify(value)](value, out)


__all__ = [
    "LiteralKind",
    "TextSink",
    "classify",
    "escape",
    "format_instant",
    "infer",
    "parse_instant",
    "parse_number",
    "write_literal",
    "write_string",
]
