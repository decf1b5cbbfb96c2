"""
Element Set Parser

Splits three-line element (3LE) text into records of a common name followed
by the two TLE lines. Checksum digits are not verified; the propagator is
the final judge of the orbital elements.
"""

from typing import List, Tuple

from pydantic import BaseModel, ValidationError, field_validator

from globe_service.errors import ParseError
from logging_config import get_logger

logger = get_logger(__name__)


class ElementSet(BaseModel):
    """One satellite record of a 3LE file."""
    common_name: str
    line1: str
    line2: str

    @field_validator("line1")
    @classmethod
    def validate_line1(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith("1"):
            raise ValueError('TLE line1 must start with "1"')
        return v

    @field_validator("line2")
    @classmethod
    def validate_line2(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith("2"):
            raise ValueError('TLE line2 must start with "2"')
        return v

    def as_text(self) -> str:
        return f"{self.common_name}\n{self.line1}\n{self.line2}\n"


def split_records(text: str) -> List[Tuple[str, str, str]]:
    """
    Split raw text into (name, line1, line2) triples.

    The record count is floor(line_count / 3); a trailing partial record is
    dropped. Every line is trimmed of surrounding whitespace.
    """
    lines = text.split("\n")
    count = len(lines) // 3
    return [
        (lines[i * 3].strip(), lines[i * 3 + 1].strip(), lines[i * 3 + 2].strip())
        for i in range(count)
    ]


def make_element_set(name: str, line1: str, line2: str) -> ElementSet:
    """
    Validate one record.

    Raises:
        ParseError: If either TLE line does not start with its line number
    """
    try:
        return ElementSet(common_name=name, line1=line1, line2=line2)
    except ValidationError as e:
        raise ParseError(f"Malformed element set {name!r}: {e}") from e


def parse_element_sets(text: str) -> List[ElementSet]:
    """
    Parse 3LE text into element sets, preserving input order.

    Malformed records are skipped; empty input yields an empty list.
    """
    element_sets = []
    for name, line1, line2 in split_records(text):
        try:
            element_sets.append(make_element_set(name, line1, line2))
        except ParseError as e:
            logger.warning(f"Skipping record: {e}")
    return element_sets
