"""
International Designator Decoder

Decodes the international designator stored in columns 10-17 of TLE line 1
(for example ``98067A`` for the first piece of the 67th launch of 1998).
See https://www.space-track.org/documentation#/tle for the field layout.
"""

from pydantic import BaseModel

from config import LAUNCH_YEAR_PIVOT
from globe_service.errors import ParseError


class Designator(BaseModel):
    """Launch year, launch number of the year and piece letters."""
    launch_year: int
    launch_number: int
    piece: str = ""


def resolve_launch_year(two_digit_year: int) -> int:
    """Map a two-digit year onto 1957-2056."""
    if two_digit_year >= LAUNCH_YEAR_PIVOT:
        return 1900 + two_digit_year
    return 2000 + two_digit_year


def is_ascii_number(text: str) -> bool:
    """True for ASCII digits only; str.isdigit also accepts superscripts."""
    return text.isascii() and text.isdigit()


def decode_designator(line1: str) -> Designator:
    """
    Decode the international designator of a TLE line 1.

    Args:
        line1: Trimmed first line of the element set

    Returns:
        Designator with a 4-digit launch year

    Raises:
        ParseError: If the designator field is too short or not numeric
    """
    designator = line1[9:16]
    if len(designator) < 5:
        raise ParseError(f"Designator field too short: {designator!r}")

    year_digits = designator[0:2]
    number_digits = designator[2:5]
    if not (is_ascii_number(year_digits) and is_ascii_number(number_digits)):
        raise ParseError(f"Designator is not numeric: {designator!r}")

    return Designator(
        launch_year=resolve_launch_year(int(year_digits)),
        launch_number=int(number_digits),
        piece=designator[5:].strip(),
    )
