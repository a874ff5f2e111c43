# preprocess.py
from __future__ import annotations

import logging

import pandas as pd

from quality.errors import MissingVariableError, SameVariableError

log = logging.getLogger(__name__)


def as_frame(data) -> pd.DataFrame:
    """Accept a DataFrame or a sequence of row mappings."""
    if isinstance(data, pd.DataFrame):
        return data
    return pd.DataFrame(list(data))


def preprocess(data, v1: str, v2: str) -> pd.DataFrame:
    """
    Keep only columns v1 and v2 and drop every row missing either value.
    The input is not modified.
    """
    df = as_frame(data)
    if v1 == v2:
        msg = f"The two variables must differ; both are {v1!r}"
        log.error(msg)
        raise SameVariableError(msg)
    missing = [v for v in (v1, v2) if v not in df.columns]
    if missing:
        msg = f"Variable(s) not found in dataset: {', '.join(missing)}"
        log.error(msg)
        raise MissingVariableError(msg)

    sub = df[[v1, v2]].dropna().reset_index(drop=True)
    dropped = len(df) - len(sub)
    if dropped:
        log.debug("Dropped %d of %d rows with missing %s/%s", dropped, len(df), v1, v2)
    return sub
