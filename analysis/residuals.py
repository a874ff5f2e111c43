# analysis/residuals.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import numpy as np
import pandas as pd
from scipy import stats
from scipy.stats import chi2_contingency
from statsmodels.stats.contingency_tables import Table

from config import ALPHA, LABEL, PVAL, RESID
from preprocess import as_frame
from quality.checks import is_categorical
from quality.errors import (
    AnalysisError,
    MissingValueError,
    MissingVariableError,
    NotCategoricalError,
    SameVariableError,
)

log = logging.getLogger(__name__)


@dataclass
class ChiSquareResult:
    chi2: float
    dof: int
    p_value: float
    expected: np.ndarray


class ChiSquaredProvider(Protocol):
    """What the analyzer needs from a statistics backend."""

    def standardized_residuals(self, table: pd.DataFrame) -> np.ndarray: ...

    def normal_cdf(self, x) -> np.ndarray: ...

    def independence_test(self, table: pd.DataFrame) -> ChiSquareResult: ...


class ScipyChiSquared:
    """Default backend: Pearson residuals from scipy's expected frequencies."""

    def standardized_residuals(self, table: pd.DataFrame) -> np.ndarray:
        observed = table.to_numpy(dtype=float)
        _, _, _, expected = chi2_contingency(observed, correction=False)
        expected = np.asarray(expected, dtype=float)
        return (observed - expected) / np.sqrt(expected)

    def normal_cdf(self, x) -> np.ndarray:
        return stats.norm.cdf(x)

    def independence_test(self, table: pd.DataFrame) -> ChiSquareResult:
        chi2, p, dof, expected = chi2_contingency(table.to_numpy(), correction=False)
        return ChiSquareResult(chi2=float(chi2), dof=int(dof), p_value=float(p), expected=np.asarray(expected))


class StatsmodelsChiSquared:
    """Same quantities through statsmodels' Table (zero cells left as observed)."""

    def standardized_residuals(self, table: pd.DataFrame) -> np.ndarray:
        t = Table(table.to_numpy(dtype=float), shift_zeros=False)
        return np.asarray(t.resid_pearson, dtype=float)

    def normal_cdf(self, x) -> np.ndarray:
        return stats.norm.cdf(x)

    def independence_test(self, table: pd.DataFrame) -> ChiSquareResult:
        t = Table(table.to_numpy(dtype=float), shift_zeros=False)
        res = t.test_nominal_association()
        return ChiSquareResult(
            chi2=float(res.statistic),
            dof=int(res.df),
            p_value=float(res.pvalue),
            expected=np.asarray(t.fittedvalues, dtype=float),
        )


def _validate(df: pd.DataFrame, col1: str, col2: str) -> None:
    if col1 == col2:
        msg = f"The two columns must differ; both are {col1!r}"
        log.error(msg)
        raise SameVariableError(msg)

    missing = [c for c in (col1, col2) if c not in df.columns]
    if missing:
        msg = f"One or both columns do not exist in the dataset: {', '.join(missing)}"
        log.error(msg)
        raise MissingVariableError(msg)

    bad = [c for c in (col1, col2) if not is_categorical(df[c])]
    if bad:
        msg = f"Both columns must hold text categories; not categorical: {', '.join(bad)}"
        log.error(msg)
        raise NotCategoricalError(msg)

    na = [c for c in (col1, col2) if df[c].isna().any()]
    if na:
        msg = f"Missing values detected in: {', '.join(na)}"
        log.error(msg)
        raise MissingValueError(msg)


def build_contingency(data, col1: str, col2: str) -> pd.DataFrame:
    """
    Counts of each (col1, col2) pair. Rows/columns keep first-appearance order
    and cover the full cross-product of observed categories (zeros included).
    """
    df = as_frame(data)
    rows = pd.unique(df[col1].astype(object))
    cols = pd.unique(df[col2].astype(object))
    if df.empty:
        return pd.DataFrame(index=pd.Index(rows, name=col1), columns=pd.Index(cols, name=col2), dtype=int)
    tab = pd.crosstab(df[col1].astype(object), df[col2].astype(object))
    tab = tab.reindex(index=rows, columns=cols, fill_value=0).astype(int)
    tab.index.name, tab.columns.name = col1, col2
    return tab


def _check_margins(tab: pd.DataFrame) -> None:
    if tab.size == 0 or int(tab.to_numpy().sum()) == 0:
        msg = "Contingency table is empty; nothing to test."
        log.error(msg)
        raise AnalysisError(msg)
    row_sums = tab.sum(axis=1).to_numpy()
    col_sums = tab.sum(axis=0).to_numpy()
    if not ((row_sums > 0).all() and (col_sums > 0).all()):
        msg = "A row or column of the contingency table sums to zero; expected frequencies are undefined."
        log.error(msg)
        raise AnalysisError(msg)


def significance_label(resid: float, pval: float, alpha: float = ALPHA) -> str:
    if pval < alpha:
        return f"r={resid:.2f}\np={pval:.3f}"
    return ""


def p_values(resid, provider: ChiSquaredProvider | None = None) -> np.ndarray:
    """Two-sided normal approximation: 2 * (1 - Phi(|r|))."""
    provider = provider or ScipyChiSquared()
    return 2 * (1 - np.asarray(provider.normal_cdf(np.abs(np.asarray(resid, dtype=float))), dtype=float))


def chisq_summary(tab: pd.DataFrame, provider: ChiSquaredProvider | None = None) -> ChiSquareResult:
    """Pearson chi-squared test of independence for an observed table."""
    provider = provider or ScipyChiSquared()
    _check_margins(tab)
    try:
        return provider.independence_test(tab)
    except (ValueError, ZeroDivisionError, FloatingPointError) as e:
        msg = f"Chi-squared test failed: {e}"
        log.error(msg)
        raise AnalysisError(msg) from e


def compute_residuals(
    data,
    col1: str,
    col2: str,
    provider: ChiSquaredProvider | None = None,
) -> pd.DataFrame:
    """
    Standardized (Pearson) residual per contingency-table cell.

    Returns one row per (col1, col2) category pair with columns
    col1, col2, resid, pval and label; label is "r=..\\np=.." when
    pval < 0.05 and "" otherwise.
    """
    provider = provider or ScipyChiSquared()
    df = as_frame(data)
    _validate(df, col1, col2)
    log.debug("Columns are valid: %s and %s hold text with no missing values", col1, col2)

    tab = build_contingency(df, col1, col2)
    _check_margins(tab)
    log.debug("Contingency table:\n%s", tab)

    try:
        resid = np.asarray(provider.standardized_residuals(tab), dtype=float)
    except (ValueError, ZeroDivisionError, FloatingPointError) as e:
        msg = f"Could not compute standardized residuals: {e}"
        log.error(msg)
        raise AnalysisError(msg) from e

    if resid.shape != tab.shape:
        msg = f"Residual matrix has shape {resid.shape}, expected {tab.shape}"
        log.error(msg)
        raise AnalysisError(msg)
    if not np.isfinite(resid).all():
        msg = "Standardized residuals contain non-finite values."
        log.error(msg)
        raise AnalysisError(msg)

    # row-major: every col2 category for the first col1 category, then the next
    n_rows, n_cols = tab.shape
    out = pd.DataFrame(
        {
            col1: np.repeat(tab.index.astype(str).to_numpy(), n_cols),
            col2: np.tile(tab.columns.astype(str).to_numpy(), n_rows),
            RESID: resid.ravel(),
        }
    )
    out[PVAL] = p_values(out[RESID], provider)
    out[LABEL] = [significance_label(r, p) for r, p in zip(out[RESID], out[PVAL], strict=True)]

    n_sig = int((out[PVAL] < ALPHA).sum())
    log.info("%s x %s: %d cells, %d significant at p<%.2f", col1, col2, len(out), n_sig, ALPHA)
    return out
