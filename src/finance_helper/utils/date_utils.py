"""Date parsing and month-key utilities.

Statement exports spell dates in many ways. Two modes are supported:

- an explicit format such as ``DD/MM/YYYY`` (tokens in the style used by
  statement templates), parsed strictly with no fallback;
- ISO-like auto-detection (``2024-03-15``, ``2024/03/15``, ``20240315``,
  optionally followed by a time part) when no format is given.

Impossible calendar dates (``31/02/2024``) are always rejected rather than
rolled over into the next month.
"""

import re
import time
from datetime import date
from functools import lru_cache

# Format tokens, longest first so "YYYY" wins over "YY" and "MMM" over "MM"
FORMAT_TOKENS: list[tuple[str, str]] = [
    ("YYYY", r"(?P<year>\d{4})"),
    ("YY", r"(?P<year2>\d{2})"),
    ("MMM", r"(?P<month_name>[A-Za-z]{3})"),
    ("MM", r"(?P<month>\d{2})"),
    ("M", r"(?P<month>\d{1,2})"),
    ("DD", r"(?P<day>\d{2})"),
    ("D", r"(?P<day>\d{1,2})"),
]

MONTH_ABBREVIATIONS = {
    name: index
    for index, name in enumerate(
        ["jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"],
        start=1,
    )
}

# Two-digit years pivot like strptime: 00-68 -> 2000s, 69-99 -> 1900s
TWO_DIGIT_YEAR_PIVOT = 69

ISO_DATE_PATTERN = re.compile(
    r"^(?P<year>\d{4})(?P<sep>[-/]?)(?P<month>\d{1,2})(?P=sep)(?P<day>\d{1,2})"
    r"(?:[Tt\s]+\d{1,2}(?::\d{1,2}){0,2}(?:\.\d+)?(?:Z|[+-]\d{2}:?\d{2})?)?$"
)


@lru_cache(maxsize=32)
def compile_date_format(fmt: str) -> re.Pattern[str]:
    """Translate a token date format into an anchored regex.

    Args:
        fmt: Format such as ``DD/MM/YYYY`` or ``YYYY-MM-DD``.

    Returns:
        Compiled pattern with named groups for the date parts.

    Raises:
        ValueError: If the format lacks a year, month, or day token.
    """
    parts: list[str] = []
    seen: set[str] = set()
    i = 0
    while i < len(fmt):
        for token, group in FORMAT_TOKENS:
            if fmt.startswith(token, i):
                name = token[0]
                if name in seen:
                    raise ValueError(f"Date format {fmt!r} repeats the {token} field")
                seen.add(name)
                parts.append(group)
                i += len(token)
                break
        else:
            parts.append(re.escape(fmt[i]))
            i += 1

    if seen != {"Y", "M", "D"}:
        raise ValueError(f"Date format {fmt!r} must contain year, month and day")
    return re.compile("".join(parts))


def parse_date_with_format(raw_date: str, fmt: str) -> date:
    """Parse a date strictly against an explicit format.

    Args:
        raw_date: Date text from the statement.
        fmt: Token format, e.g. ``DD/MM/YYYY``.

    Returns:
        Parsed date.

    Raises:
        ValueError: If the text does not match exactly or is not a real date.
    """
    text = raw_date.strip()
    match = compile_date_format(fmt).fullmatch(text)
    if match is None:
        raise ValueError(f"Date {raw_date!r} does not match format {fmt}")

    parts = match.groupdict()
    if parts.get("year") is not None:
        year = int(parts["year"])
    else:
        short_year = int(parts["year2"])
        year = short_year + (1900 if short_year >= TWO_DIGIT_YEAR_PIVOT else 2000)

    if parts.get("month_name") is not None:
        month = MONTH_ABBREVIATIONS.get(parts["month_name"].lower())
        if month is None:
            raise ValueError(f"Unknown month name in {raw_date!r}")
    else:
        month = int(parts["month"])

    # date() raises ValueError for impossible dates like 31/02
    return date(year, month, int(parts["day"]))


def parse_iso_date(raw_date: str) -> date:
    """Parse an ISO-like date, ignoring any trailing time component.

    Args:
        raw_date: Date text such as ``2024-03-15`` or ``2024-03-15T09:30:00``.

    Returns:
        Parsed date.

    Raises:
        ValueError: If the text is not ISO-like or not a real date.
    """
    match = ISO_DATE_PATTERN.match(raw_date.strip())
    if match is None:
        raise ValueError(f"Cannot parse date: {raw_date!r}")
    return date(int(match["year"]), int(match["month"]), int(match["day"]))


def parse_date(raw_date: str, fmt: str | None = None) -> date:
    """Parse a statement date.

    Args:
        raw_date: The raw date string.
        fmt: Explicit format; when given there is no fallback to auto-detection.

    Returns:
        Parsed date.

    Raises:
        ValueError: If the date cannot be parsed.
    """
    if not raw_date or not raw_date.strip():
        raise ValueError("Empty date string")
    if fmt:
        return parse_date_with_format(raw_date, fmt)
    return parse_iso_date(raw_date)


def month_key(d: date) -> str:
    """Return the ``YYYY-MM`` key used for monthly rollups."""
    return f"{d.year:04d}-{d.month:02d}"


def shift_month_key(key: str, months: int) -> str:
    """Shift a ``YYYY-MM`` key by a number of months.

    Args:
        key: Month key.
        months: Months to add (negative to go back).

    Returns:
        The shifted month key.
    """
    year, month = (int(part) for part in key.split("-"))
    index = year * 12 + (month - 1) + months
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def epoch_millis() -> int:
    """Current time as milliseconds since the epoch (``createdAt`` stamps)."""
    return time.time_ns() // 1_000_000
