from __future__ import annotations

from datetime import date, datetime, timezone
from functools import cmp_to_key
from string import ascii_lowercase, ascii_uppercase
from typing import Callable, List

from .errors import DateFormatError

DATE_LENGTH = 10
_ASCII_UPPER = str.maketrans(ascii_lowercase, ascii_uppercase)


def split_string(text: str, separator: str) -> List[str]:
    """
    Split *text* on *separator*.

    Unlike ``str.split`` a separator at the very end of the text does not
    produce a trailing empty piece, and empty text yields no pieces at all.
    """

    if not separator:
        raise ValueError("separator must not be empty")

    pieces = text.split(separator)
    if pieces and pieces[-1] == "":
        pieces.pop()
    return pieces


def to_lines(text: str) -> List[str]:
    """Physical lines of *text*; a final newline does not add an empty line."""

    return split_string(text, "\n")


def remove_char(text: str, char: str) -> str:
    return text.replace(char, "")


def to_upper(text: str) -> str:
    """Upper-case ASCII letters only; other Latin-1 characters pass through."""

    return text.translate(_ASCII_UPPER)


def remove_peripheral_spaces(text: str) -> str:
    return text.strip()


def transform_date(us_date: str) -> str:
    """
    Rewrite an MM/DD/YYYY date as YYYY-MM-DD.

    Only the length is checked; the components are reordered by position and
    never validated against the calendar.
    """

    if len(us_date) != DATE_LENGTH:
        raise DateFormatError(f"Error in date: *{us_date}*; expected {DATE_LENGTH} characters (MM/DD/YYYY)")
    return f"{us_date[6:10]}-{us_date[0:2]}-{us_date[3:5]}"


def date_string(today: date | None = None) -> str:
    """Return *today* (default: the current UTC date) as YYYY-MM-DD."""

    if today is None:
        today = datetime.now(timezone.utc).date()
    return today.isoformat()


def _is_letter(char: str) -> bool:
    return char.isascii() and char.isalpha()


def _is_digit(char: str) -> bool:
    return char.isascii() and char.isdigit()


def _char_precedes(c1: str, c2: str) -> bool:
    if c1 == c2:
        return False
    if c2 == "/":
        return True
    if c1 == "/":
        return False
    if _is_letter(c1) and _is_digit(c2):
        return True
    if _is_digit(c1) and _is_letter(c2):
        return False
    if _is_digit(c1) and _is_digit(c2):
        if c1 == "0":
            return False
        if c2 == "0":
            return True
    return c1 < c2


def compare_calls(call1: str, call2: str) -> bool:
    """
    Whether *call1* sorts before *call2* in classical callsign order.

    Differences from plain lexical order, first match wins:
      - '/' sorts after every other character
      - letters sort before digits
      - '0' is the highest digit
    A call that is a prefix of another sorts first.
    """

    for c1, c2 in zip(call1, call2):
        if c1 != c2:
            return _char_precedes(c1, c2)
    return len(call1) < len(call2)


def callsign_cmp(call1: str, call2: str) -> int:
    """Three-way form of :func:`compare_calls` for ``functools.cmp_to_key``."""

    if compare_calls(call1, call2):
        return -1
    if compare_calls(call2, call1):
        return 1
    return 0


callsign_sort_key: Callable[[str], object] = cmp_to_key(callsign_cmp)
