"""Exceptions raised by bhdist."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


def _expected_chars(na_char: str) -> str:
    return f"'0', '1' or '{na_char}'"


class InvalidCharacterError(ValueError):
    """A character in a bit string is neither '0', '1' nor the missing marker."""

    def __init__(self, position: int, char: str, na_char: str):
        self.position = position
        self.char = char
        self.na_char = na_char
        super().__init__(
            f"Char at position {position} was '{char}'; expected {_expected_chars(na_char)}."
        )


class InputFormatError(ValueError):
    """Invalid character in an input file, located by file, line and position."""

    def __init__(
        self,
        path: Union[str, Path],
        line: int,
        position: int,
        char: str,
        na_char: str,
    ):
        self.path = str(path)
        self.line = line
        self.position = position
        self.char = char
        self.na_char = na_char
        super().__init__(
            f"Error parsing {self.path} at line {line}: char at position {position} "
            f"was '{char}'; expected {_expected_chars(na_char)}."
        )


class SampleShapeError(ValueError):
    """Samples do not share one length, or there are no samples at all."""


class MatrixWriteError(OSError):
    """Writing the distance matrix to its destination failed."""

    def __init__(self, line: int, cause: Optional[BaseException] = None):
        self.line = line
        reason = f": {cause}" if cause is not None else ""
        super().__init__(f"Error writing result at line {line}{reason}")
