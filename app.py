# app.py
from __future__ import annotations
import sys
from pathlib import Path
import pandas as pd
import streamlit as st
from matplotlib.colors import to_hex

st.set_page_config(page_title="Categorical Residuals", layout="wide")

# --- Project paths / imports
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from analysis.residuals import (
    ScipyChiSquared, StatsmodelsChiSquared, build_contingency, chisq_summary, compute_residuals
)
from config import (
    ALPHA, COLOR_HIGH, COLOR_LABELS, COLOR_LOW, DEFAULT_VAR1, DEFAULT_VAR2,
    EDGE_COLORS, HEATMAP_TITLE, LABEL_SIZE, NODE_COLORS, THEME_SIZE,
)
from loaders import DataLoadError, read_csv_safe, read_patients
from plotting.heatmap import plot_heatmap
from plotting.network import plot_network
from preprocess import preprocess
from quality.checks import pair_expectations
from quality.errors import (
    ANALYSIS_FAIL, BAD_CSV, BAD_SELECTION, MISSING_DATA,
    AnalysisError, MissingValueError, MissingVariableError, NotCategoricalError, SameVariableError, UXError,
)


def show_error(err: UXError, detail: Exception | str | None = None):
    st.error(f"**{err.title}** ({err.code})\n\n{err.hint}")
    if detail:
        st.caption(str(detail))
    st.stop()


@st.cache_data(show_spinner=False)
def load_data(upload_bytes: bytes | None) -> pd.DataFrame:
    if upload_bytes is None:
        return read_patients()
    tmp = ROOT / ".upload.csv"
    tmp.write_bytes(upload_bytes)
    try:
        return read_csv_safe(tmp)
    finally:
        tmp.unlink(missing_ok=True)


# ----------------------------------------
# Sidebar controls (define ONCE)
with st.sidebar:
    st.header("Data")
    upload = st.file_uploader("CSV file (default: bundled patients sample)", type=["csv"])

    try:
        raw = load_data(upload.getvalue() if upload is not None else None)
    except DataLoadError as e:
        show_error(BAD_CSV if upload is not None else MISSING_DATA, e)

    cols = raw.columns.tolist()
    st.header("Variables")
    var1 = st.selectbox("Variable 1 (rows)", cols, index=cols.index(DEFAULT_VAR1) if DEFAULT_VAR1 in cols else 0)
    var2 = st.selectbox("Variable 2 (columns)", cols,
                        index=cols.index(DEFAULT_VAR2) if DEFAULT_VAR2 in cols else min(1, len(cols) - 1))
    backend = st.radio("Statistics backend", ["scipy", "statsmodels"], horizontal=True)

    st.header("Heatmap")
    theme_size = st.slider("Theme font size", 8, 30, THEME_SIZE)
    label_size = st.slider("Label font size", 6, 24, LABEL_SIZE)
    color_low = st.color_picker("Low (negative)", to_hex(COLOR_LOW))
    color_high = st.color_picker("High (positive)", to_hex(COLOR_HIGH))
    color_labels = st.color_picker("Labels", to_hex(COLOR_LABELS))
    title = st.text_input("Title", HEATMAP_TITLE)

# ----------------------------------------
st.title("Association between two categorical variables")
st.caption(f"Loaded rows: {len(raw):,} | columns: {len(raw.columns)}")

if var1 == var2:
    show_error(BAD_SELECTION, "Variable 1 and Variable 2 must differ.")

sub = preprocess(raw, var1, var2)
checks = pair_expectations(sub, var1, var2)
st.caption(f"Complete rows for {var1} × {var2}: {len(sub):,} (dropped {len(raw) - len(sub):,})")

provider = StatsmodelsChiSquared() if backend == "statsmodels" else ScipyChiSquared()
try:
    residuals = compute_residuals(sub, var1, var2, provider=provider)
    tab = build_contingency(sub, var1, var2)
    test = chisq_summary(tab, provider=provider)
except (MissingVariableError, SameVariableError, NotCategoricalError, MissingValueError) as e:
    show_error(BAD_SELECTION, e)
except AnalysisError as e:
    show_error(ANALYSIS_FAIL, e)

if not checks["two_levels_each"]:
    st.warning("One variable has a single category; every residual is zero.")

tab1, tab2, tab3 = st.tabs(["Table & test", "Heatmap", "Network"])

# ---- Contingency table and chi-squared test
with tab1:
    st.markdown("**Contingency table**")
    st.dataframe(tab, use_container_width=True)

    st.markdown("**Chi-square test (independence)**")
    st.write({
        "chi2": round(test.chi2, 4),
        "df": test.dof,
        "p_value": f"{test.p_value:.4g}",
    })
    exp_df = pd.DataFrame(test.expected, index=tab.index, columns=tab.columns).round(2)
    st.expander("Expected counts (under independence)").dataframe(exp_df, use_container_width=True)

    st.markdown(f"**Standardized residuals** (p from 2·(1−Φ(|r|)), flagged below {ALPHA})")
    st.dataframe(residuals, use_container_width=True)
    st.download_button(
        "Download residuals (CSV)",
        data=residuals.to_csv(index=False).encode("utf-8"),
        file_name=f"residuals_{var1}_{var2}.csv",
        mime="text/csv",
    )

# ---- Heatmap
with tab2:
    st.altair_chart(
        plot_heatmap(residuals, var1, var2, theme_size=theme_size, label_size=label_size,
                     color_low=color_low, color_high=color_high, color_labels=color_labels, title=title),
        use_container_width=True,
    )

# ---- Network
with tab3:
    c1, c2, c3, c4, c5 = st.columns(5)
    node_colors = {
        var1: c1.color_picker(var1, to_hex(NODE_COLORS["var1"])),
        var2: c2.color_picker(var2, to_hex(NODE_COLORS["var2"])),
    }
    edge_colors = {
        "positive": c3.color_picker("Positive", to_hex(EDGE_COLORS["positive"])),
        "negative": c4.color_picker("Negative", to_hex(EDGE_COLORS["negative"])),
        "nonsignificant": c5.color_picker("Non-significant", to_hex(EDGE_COLORS["nonsignificant"])),
    }
    st.pyplot(plot_network(residuals, var1, var2, node_colors=node_colors, edge_colors=edge_colors))
