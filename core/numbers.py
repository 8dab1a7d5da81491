"""Utility helpers for parsing and formatting the numbers stored per socio."""

from __future__ import annotations

import math
import re
from typing import Any

import pandas as pd

# Precompile regexes so they can be reused across calls without extra overhead.
THIN_SPACE_PATTERN = re.compile(r"\s+")
THOUSANDS_PATTERN = re.compile(r"[.,\u00A0\u202F](?=\d{3}(?:\D|$))")
APOSTROPHE_PATTERN = re.compile(r"[\'\u2018\u2019]")


def _clean_text_number(value: str) -> str:
    work = value.strip()
    work = THIN_SPACE_PATTERN.sub("", work)
    work = APOSTROPHE_PATTERN.sub("", work)
    work = THOUSANDS_PATTERN.sub("", work)
    return work.replace(",", ".")


def coerce_number(value: Any, default: float = 0.0) -> float:
    """Return ``value`` as a float, falling back to ``default``.

    The store hands back real numbers for numeric columns, but rows loaded
    from spreadsheets sometimes keep text such as ``'1.200`` or ``1 250``.
    Only text goes through the separator cleanup; actual numbers are kept
    as they are so that ``4.125`` is never read as ``4125``.
    """

    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
        return default if math.isnan(number) else number
    text = _clean_text_number(str(value))
    if not text:
        return default
    try:
        number = float(text)
    except ValueError:
        return default
    return default if math.isnan(number) else number


def normalize_numeric(series: pd.Series | Any, *, index: pd.Index | None = None) -> pd.Series:
    """Vectorised :func:`coerce_number` for a whole column."""

    if series is None:
        if index is not None:
            return pd.Series(0.0, index=index, dtype=float)
        return pd.Series(dtype=float)

    if not isinstance(series, pd.Series):
        series = pd.Series(series, index=index)

    if series.empty:
        return pd.Series(dtype=float, index=series.index)

    return series.map(coerce_number).astype(float)


def format_plain(value: float) -> str:
    """Integer-valued numbers without decimals, the rest as-is (``15``, ``2.5``)."""

    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def format_fixed(value: float, decimals: int = 2) -> str:
    return f"{float(value):.{decimals}f}"


def format_money(value: float, symbol: str = "$") -> str:
    """Format with ``.`` thousands and two ``,`` decimals: ``$1.234.567,50``."""

    number = round(float(value), 2)
    sign = "-" if number < 0 else ""
    whole, _, frac = f"{abs(number):,.2f}".partition(".")
    whole = whole.replace(",", ".")
    return f"{sign}{symbol}{whole},{frac}"


__all__ = [
    "coerce_number",
    "normalize_numeric",
    "format_plain",
    "format_fixed",
    "format_money",
]
