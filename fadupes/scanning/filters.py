#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Size filter expressions for --ignore-size.

Three forms are accepted, units are binary (1 MB = 1,048,576 bytes):

    <N[unit]          keep files smaller than N
    >N[unit]          keep files larger than N
    A[unit]..B[unit]  keep files between A and B, inclusive
"""

import re
from dataclasses import dataclass
from typing import Optional

from ..errors import InvalidFilterExpression

UNIT_MULTIPLIERS = {
    "": 1,
    "B": 1,
    "K": 1024, "KB": 1024, "KIB": 1024,
    "M": 1024 ** 2, "MB": 1024 ** 2, "MIB": 1024 ** 2,
    "G": 1024 ** 3, "GB": 1024 ** 3, "GIB": 1024 ** 3,
    "T": 1024 ** 4, "TB": 1024 ** 4, "TIB": 1024 ** 4,
}

_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([A-Za-z]*)\s*$")


def parse_size(text: str) -> int:
    """Parse ``"3MB"`` style sizes into bytes (floored)."""
    match = _SIZE_RE.match(text)
    if not match:
        raise InvalidFilterExpression(f"invalid size: {text!r}")
    number, unit = match.groups()
    multiplier = UNIT_MULTIPLIERS.get(unit.upper())
    if multiplier is None:
        raise InvalidFilterExpression(f"unknown size unit {unit!r} in {text!r}")
    return int(float(number) * multiplier)


@dataclass(frozen=True)
class SizeFilter:
    """Pass range for file sizes; ``None`` bounds are open."""
    expression: str
    min_bytes: Optional[int] = None
    max_bytes: Optional[int] = None

    def passes(self, size: int) -> bool:
        if self.min_bytes is not None and size < self.min_bytes:
            return False
        if self.max_bytes is not None and size > self.max_bytes:
            return False
        return True

    def describe(self) -> str:
        if self.min_bytes is None:
            return f"keep files <= {self.max_bytes:,} bytes"
        if self.max_bytes is None:
            return f"keep files >= {self.min_bytes:,} bytes"
        return f"keep files within {self.min_bytes:,}..{self.max_bytes:,} bytes"


def parse_size_filter(expression: str) -> SizeFilter:
    """Parse an --ignore-size expression, raising InvalidFilterExpression."""
    if expression is None or not expression.strip():
        raise InvalidFilterExpression("empty size filter expression")

    expr = expression.strip()
    if expr.startswith("<"):
        limit = parse_size(expr[1:])
        if limit == 0:
            raise InvalidFilterExpression(f"{expression!r} would exclude every file")
        return SizeFilter(expression, max_bytes=limit - 1)
    if expr.startswith(">"):
        return SizeFilter(expression, min_bytes=parse_size(expr[1:]) + 1)
    if ".." in expr:
        low_text, _, high_text = expr.partition("..")
        low, high = parse_size(low_text), parse_size(high_text)
        if low > high:
            raise InvalidFilterExpression(f"empty range in {expression!r}: {low} > {high}")
        return SizeFilter(expression, min_bytes=low, max_bytes=high)

    raise InvalidFilterExpression(
        f"invalid size filter {expression!r}; expected '<N', '>N' or 'A..B' (e.g. '<3MB', '3MB..800MB')"
    )
