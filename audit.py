# audit.py
from __future__ import annotations

import math
from collections.abc import Iterable

import pandas as pd


def pct(num: int, den: int) -> str:
    if den == 0 or den is None or math.isnan(den):
        return "0.0%"
    return f"{(num / den) * 100:0.1f}%"


def coverage(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    """
    Returns a tiny table: column, non_null, total, coverage_pct
    """
    rows = []
    total = len(df)
    for c in cols:
        nn = int(df[c].notna().sum()) if c in df.columns else 0
        rows.append({"column": c, "non_null": nn, "total": total, "coverage_pct": pct(nn, total)})
    return pd.DataFrame(rows)


def category_counts(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    """One row per (column, category) with its count and share, most frequent first."""
    frames = []
    for c in cols:
        if c not in df.columns:
            continue
        vc = df[c].value_counts(dropna=True)
        frames.append(
            pd.DataFrame(
                {
                    "column": c,
                    "category": vc.index.astype("string"),
                    "n": vc.to_numpy(dtype=int),
                    "share": [pct(int(n), len(df)) for n in vc.to_numpy()],
                }
            )
        )
    if not frames:
        return pd.DataFrame(columns=["column", "category", "n", "share"])
    return pd.concat(frames, ignore_index=True)


def quick_audit(name: str, df: pd.DataFrame, key_cols: Iterable[str] | None = None, show: bool = True) -> None:
    """
    Print a concise audit summary for a dataframe.
    """
    if not show:
        return
    print(f"\n=== AUDIT: {name} ===")
    print(f"rows: {len(df):,} | cols: {len(df.columns)}")
    if key_cols:
        key_cols = list(key_cols)
        cov = coverage(df, key_cols)
        print("key coverage:")
        print(cov.to_string(index=False))
        cats = category_counts(df, key_cols)
        print("categories:")
        print(cats.to_string(index=False))
