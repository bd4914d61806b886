"""
Shared utility functions for the TeamForge roster analyzer.
Common operations used across multiple modules.
"""
from __future__ import annotations

import math
import sys
from typing import Iterable, Optional, Set

FLOAT_MAX = sys.float_info.max


def normalize_type_name(name: str) -> str:
    """
    Normalize a type name for case-insensitive matching.

    Args:
        name: Type name as written in a tag or a type roster

    Returns:
        Lowercased, stripped string

    Examples:
        >>> normalize_type_name(" Fire")
        'fire'
    """
    return name.strip().lower() if isinstance(name, str) else ""


def type_name_set(names: Iterable[Optional[str]]) -> Set[str]:
    """Normalize a collection of type names, dropping blanks."""
    out: Set[str] = set()
    for name in names:
        normalized = normalize_type_name(name) if name else ""
        if normalized:
            out.add(normalized)
    return out


def parse_number(text: str) -> Optional[float]:
    """
    Parse a numeric tag payload.

    Args:
        text: Raw payload such as "1.5", "+0.1" or "2"

    Returns:
        The finite float value, or None if the payload is blank or not a number
    """
    if not isinstance(text, str):
        return None
    text = text.strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def parse_factor(text: str) -> Optional[float]:
    """Parse a multiplicative factor; negative factors are rejected."""
    value = parse_number(text)
    if value is None or value < 0:
        return None
    return value


def strip_prefix(text: str, prefixes: Iterable[str]) -> str:
    """Remove one leading marker like '+' or 'x' from a payload."""
    for prefix in prefixes:
        if text.startswith(prefix):
            return text[len(prefix):]
    return text


def clamp(value: float, low: float, high: float) -> float:
    """Clamp a value into [low, high]."""
    return max(low, min(high, value))


def bounded(value: float) -> float:
    """
    Keep a computed value finite.

    Overflow saturates at the largest float (keeping its sign); NaN, which only
    comes from 0 * inf, collapses to 0.

    Examples:
        >>> bounded(float("inf")) == FLOAT_MAX
        True
    """
    if math.isnan(value):
        return 0.0
    if math.isinf(value):
        return math.copysign(FLOAT_MAX, value)
    return value
