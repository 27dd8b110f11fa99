"""Lenient parsing of string request parameters.

Form fields arrive as strings. Numbers are read from the leading part of the
value (``"50px"`` -> 50, ``"1.5x"`` -> 1.5); anything without a leading number
parses to ``None``.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

_INT_RE = re.compile(r"\s*([+-]?\d+)")
_FLOAT_RE = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    match = _INT_RE.match(value)
    return int(match.group(1)) if match else None


def parse_float(value: str | None) -> float | None:
    if value is None:
        return None
    match = _FLOAT_RE.match(value)
    return float(match.group(1)) if match else None


def int_or_default(params: Mapping[str, str], name: str, default: int) -> int:
    """Parse ``params[name]`` as an int; absent, unparsable or zero yields ``default``."""
    return parse_int(params.get(name)) or default


def float_or_default(params: Mapping[str, str], name: str, default: float) -> float:
    """Parse ``params[name]`` as a float; absent, unparsable or zero yields ``default``."""
    return parse_float(params.get(name)) or default


def text_or_default(params: Mapping[str, str], name: str, default: str) -> str:
    value = params.get(name)
    if value is None or not value.strip():
        return default
    return value.strip()
