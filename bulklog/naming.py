"""Index naming with optional daily rotation.

Date patterns use the letter convention most users know from Java and
Unicode date formats ("yyyyMMdd", "yyyy.MM.dd", "yyyy-MM-dd'T'HH"), not
strftime directives.

Supported letters:
    y  year ("yy" gives two digits, other widths are zero padded)
    M  month (1-2 letters numeric, 3 abbreviated name, 4+ full name)
    d  day of month
    H  hour of day (0-23)
    h  hour of am/pm (1-12)
    m  minute
    s  second
    S  fraction of second, truncated to the number of letters
    E  day of week (1-3 letters abbreviated, 4+ full name)
    a  AM/PM marker

Text inside single quotes is copied literally; two single quotes produce
one quote. Any other non-letter character is copied as is.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from functools import lru_cache

from bulklog.errors import ConfigError

_MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

# Upper-case day and year letters are accepted for backward compatibility.
_NORMALIZED_LETTERS = {"D": "d", "Y": "y"}

_Part = Callable[[datetime], str]


def normalize_date_format(pattern: str) -> str:
    """Lower-case the D and Y letters outside quoted literals.

    Older configurations use "YYYYMMDD" to mean "yyyyMMdd".
    """
    result: list[str] = []
    quoted = False
    for char in pattern:
        if char == "'":
            quoted = not quoted
            result.append(char)
        elif not quoted:
            result.append(_NORMALIZED_LETTERS.get(char, char))
        else:
            result.append(char)
    return "".join(result)


def _literal(text: str) -> _Part:
    return lambda _now: text


def _field(letter: str, width: int) -> _Part:
    """Build the formatter for a run of `width` identical pattern letters."""
    if letter == "y":
        if width == 2:
            return lambda now: f"{now.year % 100:02d}"
        return lambda now: f"{now.year:0{width}d}"
    if letter == "M":
        if width == 3:
            return lambda now: _MONTHS[now.month - 1][:3]
        if width >= 4:
            return lambda now: _MONTHS[now.month - 1]
        return lambda now: f"{now.month:0{width}d}"
    if letter == "d":
        return lambda now: f"{now.day:0{width}d}"
    if letter == "H":
        return lambda now: f"{now.hour:0{width}d}"
    if letter == "h":
        return lambda now: f"{(now.hour % 12) or 12:0{width}d}"
    if letter == "m":
        return lambda now: f"{now.minute:0{width}d}"
    if letter == "s":
        return lambda now: f"{now.second:0{width}d}"
    if letter == "S":
        return lambda now: f"{now.microsecond:06d}"[:width].ljust(width, "0")
    if letter == "E":
        if width >= 4:
            return lambda now: _WEEKDAYS[now.weekday()]
        return lambda now: _WEEKDAYS[now.weekday()][:3]
    if letter == "a":
        return lambda now: "AM" if now.hour < 12 else "PM"
    raise ConfigError(
        f"Unsupported date format letter '{letter}'",
        code="INVALID_DATE_FORMAT",
        details={"letter": letter},
    )


def _parse(pattern: str) -> list[_Part]:
    parts: list[_Part] = []
    i = 0
    length = len(pattern)

    while i < length:
        char = pattern[i]

        if char == "'":
            if i + 1 < length and pattern[i + 1] == "'":
                parts.append(_literal("'"))
                i += 2
                continue
            end = i + 1
            text: list[str] = []
            while True:
                if end >= length:
                    raise ConfigError(
                        f"Unterminated quote in date format '{pattern}'",
                        code="INVALID_DATE_FORMAT",
                        details={"date_format": pattern},
                    )
                if pattern[end] == "'":
                    if end + 1 < length and pattern[end + 1] == "'":
                        text.append("'")
                        end += 2
                        continue
                    break
                text.append(pattern[end])
                end += 1
            parts.append(_literal("".join(text)))
            i = end + 1
            continue

        if char.isascii() and char.isalpha():
            end = i
            while end < length and pattern[end] == char:
                end += 1
            parts.append(_field(char, end - i))
            i = end
            continue

        parts.append(_literal(char))
        i += 1

    return parts


@lru_cache(maxsize=32)
def compile_date_format(pattern: str) -> Callable[[datetime], str]:
    """Validate and compile a date pattern into a formatting function.

    The pattern is normalized first (see `normalize_date_format`).

    Raises:
        ConfigError: If the pattern is empty, contains an unsupported
            letter or has an unterminated quote.
    """
    if not pattern:
        raise ConfigError("Date format must not be empty", code="INVALID_DATE_FORMAT")

    parts = _parse(normalize_date_format(pattern))

    def format_date(now: datetime) -> str:
        return "".join(part(now) for part in parts)

    return format_date


def format_date(now: datetime, pattern: str) -> str:
    """Format `now` using a date pattern."""
    return compile_date_format(pattern)(now)


def current_index_name(base_name: str, daily: bool, date_format: str, now: datetime) -> str:
    """Compute the index logs are written to at the time `now`.

    Example:
        current_index_name("log", False, "yyyyMMdd", now)  # "log"
        current_index_name("log", True, "yyyyMMdd", datetime(2024, 3, 5))
        # "log-20240305"
    """
    if not daily:
        return base_name
    return f"{base_name}-{format_date(now, date_format)}"
