# loaders.py
from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from config import SAMPLE_COLS, SAMPLE_CSV

log = logging.getLogger(__name__)


class DataLoadError(Exception):
    """Raised when an input file is missing, empty, or unreadable."""


def read_csv_safe(path: str | Path, **kwargs) -> pd.DataFrame:
    """
    Read a CSV with strict error handling and clear messages.
    Defaults to dtype=string so categorical codes like "01" stay text;
    caller can override via **kwargs.
    Validates that the file contains usable data.
    """
    p = Path(path)
    try:
        df = pd.read_csv(
            p,
            dtype=kwargs.pop("dtype", "string"),
            on_bad_lines=kwargs.pop("on_bad_lines", "error"),
            **kwargs,
        )
        # Treat 0 rows/cols or all-NA as unusable.
        if df.shape[0] == 0 or df.shape[1] == 0 or df.isna().all().all():
            msg = f"CSV appears empty or contains no usable data: {p}"
            log.error(msg)
            raise DataLoadError(msg)
        return df

    except FileNotFoundError as e:
        msg = f"Missing input file: {p}\nCheck the path and re-run."
        log.error(msg)
        raise DataLoadError(msg) from e
    except pd.errors.EmptyDataError as e:
        msg = f"Empty or corrupt CSV: {p}"
        log.error(msg)
        raise DataLoadError(msg) from e
    except pd.errors.ParserError as e:
        msg = f"Could not parse CSV: {p}\nPandas error: {e}"
        log.error(msg)
        raise DataLoadError(msg) from e


def read_patients(path: str | Path = SAMPLE_CSV) -> pd.DataFrame:
    """
    Load the bundled patients sample: one row per patient with AgeGroup,
    Gender and PrimarySymptom as text. Blank cells become <NA>.
    """
    df = read_csv_safe(path, usecols=lambda c: c in SAMPLE_COLS)

    for col in df.select_dtypes(include="string").columns:
        df[col] = df[col].str.strip()

    log.debug("Loaded %d patients from %s", len(df), path)
    return df
