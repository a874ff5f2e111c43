# plotting/heatmap.py
from __future__ import annotations

import altair as alt
import pandas as pd

from analysis.scaling import symmetric_limits
from config import (
    ALPHA,
    COLOR_HIGH,
    COLOR_LABELS,
    COLOR_LOW,
    COLOR_MID,
    HEATMAP_TITLE,
    LABEL,
    LABEL_SIZE,
    LEGEND_TITLE,
    PVAL,
    RESID,
    THEME_SIZE,
)
from quality.checks import require_fields


def _field(name: str) -> str:
    """Vega-Lite reads "." and brackets in a field as nested access; escape them."""
    out = str(name).replace("\\", "\\\\")
    for ch in ".[]":
        out = out.replace(ch, "\\" + ch)
    return out


def plot_heatmap(
    residuals: pd.DataFrame,
    col1: str,
    col2: str,
    theme_size: float = THEME_SIZE,
    label_size: float = LABEL_SIZE,
    color_low: str = COLOR_LOW,
    color_high: str = COLOR_HIGH,
    color_labels: str = COLOR_LABELS,
    title: str = HEATMAP_TITLE,
) -> alt.LayerChart:
    """
    Tile grid of standardized residuals, col1 down the side and col2 across.

    Every cell is filled on a diverging scale whose domain is symmetric
    around zero (+/- the largest absolute residual); only cells with
    pval < 0.05 carry the "r=..\\np=.." text.
    """
    require_fields(residuals, [col1, col2, RESID, LABEL, PVAL], what="residuals dataframe")

    lo, hi = symmetric_limits(residuals[RESID])
    rows = pd.unique(residuals[col1]).tolist()
    cols = pd.unique(residuals[col2]).tolist()

    x = alt.X(field=_field(col2), type="nominal", sort=cols, title=col2, axis=alt.Axis(labelAngle=-90))
    y = alt.Y(field=_field(col1), type="nominal", sort=rows, title=col1)

    tiles = (
        alt.Chart(residuals)
        .mark_rect(stroke="white")
        .encode(
            x=x,
            y=y,
            color=alt.Color(
                f"{RESID}:Q",
                scale=alt.Scale(domain=[lo, hi], domainMid=0, range=[color_low, COLOR_MID, color_high]),
                legend=alt.Legend(title=LEGEND_TITLE),
            ),
            tooltip=[
                alt.Tooltip(field=_field(col1), type="nominal", title=col1),
                alt.Tooltip(field=_field(col2), type="nominal", title=col2),
                alt.Tooltip(f"{RESID}:Q", format=".2f"),
                alt.Tooltip(f"{PVAL}:Q", format=".3f"),
            ],
        )
    )

    significant = residuals[residuals[PVAL] < ALPHA]
    labels = (
        alt.Chart(significant)
        .mark_text(fontWeight="bold", fontSize=label_size, color=color_labels, lineBreak="\n")
        .encode(x=x, y=y, text=f"{LABEL}:N")
    )

    return (
        alt.layer(tiles, labels)
        .properties(title=title)
        .configure_axis(labelFontSize=theme_size * 0.8, titleFontSize=theme_size, grid=False)
        .configure_legend(labelFontSize=theme_size * 0.8, titleFontSize=theme_size, orient="right")
        .configure_title(fontSize=theme_size * 1.2)
        .configure_view(strokeWidth=0)
    )
