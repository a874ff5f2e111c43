# quality/errors.py
from __future__ import annotations

from dataclasses import dataclass


class ResidualsError(Exception):
    """Base class for input and analysis failures."""


class MissingVariableError(ResidualsError, KeyError):
    """A requested variable is not a column of the dataset."""

    def __str__(self) -> str:
        # KeyError quotes its message; keep it readable
        return str(self.args[0]) if self.args else ""


class SameVariableError(ResidualsError, ValueError):
    """Both variables of a pair name the same column."""


class NotCategoricalError(ResidualsError, TypeError):
    """A variable holds non-string values."""


class MissingValueError(ResidualsError, ValueError):
    """A variable contains missing values where none are allowed."""


class SchemaError(ResidualsError, ValueError):
    """A residual record set lacks fields a renderer needs."""


class AnalysisError(ResidualsError, ValueError):
    """The contingency table cannot be tested (zero margins, empty table, ...)."""


@dataclass(frozen=True)
class UXError:
    code: str
    title: str
    hint: str


# Reusable messages
MISSING_DATA = UXError(
    code="E-DATA-001",
    title="Required data not found",
    hint="Upload a CSV or check that data/patients.csv ships with the checkout.",
)

BAD_CSV = UXError(
    code="E-CSV-001",
    title="Could not parse the CSV file",
    hint="Open the file to check header/encoding; the first row must hold column names.",
)

BAD_SELECTION = UXError(
    code="E-VAR-001",
    title="Selected variables cannot be analyzed",
    hint="Pick two distinct text columns; numeric codes must be converted to labels first.",
)

ANALYSIS_FAIL = UXError(
    code="E-CHI-001",
    title="Chi-squared test failed",
    hint="Every row and column of the table needs at least one observation.",
)
