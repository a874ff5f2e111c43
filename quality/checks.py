# quality/checks.py
from __future__ import annotations

import logging
from collections.abc import Iterable

import pandas as pd

from quality.errors import SchemaError

log = logging.getLogger(__name__)


def is_categorical(s: pd.Series) -> bool:
    """True when every non-missing value is a string (object, string or category dtype)."""
    if isinstance(s.dtype, pd.CategoricalDtype):
        return all(isinstance(c, str) for c in s.cat.categories)
    if pd.api.types.is_string_dtype(s.dtype) and not pd.api.types.is_object_dtype(s.dtype):
        return True
    if pd.api.types.is_object_dtype(s.dtype):
        return bool(s.dropna().map(lambda v: isinstance(v, str)).all())
    return False


def require_fields(df: pd.DataFrame, fields: Iterable[str], what: str = "record set") -> None:
    missing = [f for f in fields if f not in df.columns]
    if missing:
        msg = f"The {what} must contain: {', '.join(fields)} (missing: {', '.join(missing)})"
        log.error(msg)
        raise SchemaError(msg)


def pair_expectations(df: pd.DataFrame, col1: str, col2: str) -> dict:
    out = {}
    out["has_columns"] = col1 in df.columns and col2 in df.columns
    out["distinct_columns"] = col1 != col2
    out["categorical"] = out["has_columns"] and is_categorical(df[col1]) and is_categorical(df[col2])
    out["no_missing"] = out["has_columns"] and not (df[col1].isna().any() or df[col2].isna().any())
    out["two_levels_each"] = (
        out["has_columns"] and df[col1].nunique(dropna=True) >= 2 and df[col2].nunique(dropna=True) >= 2
    )
    return out
