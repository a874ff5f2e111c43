# plotting/network.py
from __future__ import annotations

import logging

import matplotlib.pyplot as plt
import networkx as nx
import numpy as np
import pandas as pd
from matplotlib.patches import Patch

from analysis.scaling import rescale
from config import ALPHA, EDGE_COLORS, LAYOUT_SEED, NODE_COLORS, PVAL, RESID, WIDTH_RANGE
from quality.checks import require_fields

log = logging.getLogger(__name__)

EDGE_KINDS = ("positive", "negative", "nonsignificant")


def _node_colors(node_colors: dict | None, var1: str, var2: str) -> dict:
    # Accept either {var1: c, var2: c} or the positional {"var1": c, "var2": c}
    if node_colors is None:
        node_colors = NODE_COLORS
    out = {}
    for var, alias in ((var1, "var1"), (var2, "var2")):
        if var in node_colors:
            out[var] = node_colors[var]
        elif alias in node_colors:
            out[var] = node_colors[alias]
        else:
            raise ValueError(f"node_colors needs a color for {var!r}")
    return out


def _edge_colors(edge_colors: dict | None) -> dict:
    edge_colors = EDGE_COLORS if edge_colors is None else edge_colors
    missing = [k for k in EDGE_KINDS if k not in edge_colors]
    if missing:
        raise ValueError(f"edge_colors needs: {', '.join(EDGE_KINDS)} (missing: {', '.join(missing)})")
    return dict(edge_colors)


def edge_kind(resid, pval, alpha: float = ALPHA) -> pd.Series:
    """positive / negative when significant, nonsignificant otherwise."""
    r = pd.Series(resid, dtype=float).reset_index(drop=True)
    p = pd.Series(pval, dtype=float).reset_index(drop=True)
    sig = p < alpha
    out = pd.Series("nonsignificant", index=r.index, dtype=object)
    out[sig & (r > 0)] = "positive"
    out[sig & (r < 0)] = "negative"
    return out


def build_residual_graph(
    residuals: pd.DataFrame,
    var1: str,
    var2: str,
    node_colors: dict | None = None,
    edge_colors: dict | None = None,
    width_range: tuple[float, float] = WIDTH_RANGE,
) -> nx.Graph:
    """
    Bipartite graph: one node per category of var1 or var2, one undirected
    edge per residual record. Nodes are keyed (variable, category) so a label
    present in both variables still gives two nodes; the plain category is
    kept in the node's "label". Edge width is |resid| rescaled across this
    record set, so the weakest edge is width_range[0] and the strongest
    width_range[1].
    """
    require_fields(residuals, [var1, var2, RESID, PVAL], what="residuals dataframe")
    ncol = _node_colors(node_colors, var1, var2)
    ecol = _edge_colors(edge_colors)

    G = nx.Graph()
    for var in (var1, var2):
        for name in pd.unique(residuals[var]).tolist():
            G.add_node((var, name), variable=var, label=name, color=ncol[var])

    kinds = edge_kind(residuals[RESID], residuals[PVAL])
    widths = rescale(np.abs(residuals[RESID].to_numpy(dtype=float)), to=width_range)
    for i, row in enumerate(residuals[[var1, var2, RESID, PVAL]].itertuples(index=False)):
        a, b, r, p = row
        G.add_edge(
            (var1, a),
            (var2, b),
            resid=float(r),
            pval=float(p),
            kind=kinds[i],
            color=ecol[kinds[i]],
            width=float(widths[i]),
        )

    log.debug("Residual graph: %d nodes, %d edges", G.number_of_nodes(), G.number_of_edges())
    return G


def legend_handles(var1: str, var2: str, node_colors: dict | None = None, edge_colors: dict | None = None) -> list:
    ncol = _node_colors(node_colors, var1, var2)
    ecol = _edge_colors(edge_colors)
    return [
        Patch(facecolor=ncol[var1], label=var1),
        Patch(facecolor=ncol[var2], label=var2),
        Patch(facecolor=ecol["positive"], label=f"Positive Residual (p < {ALPHA:g})"),
        Patch(facecolor=ecol["negative"], label=f"Negative Residual (p < {ALPHA:g})"),
        Patch(facecolor=ecol["nonsignificant"], label="Non-significant"),
    ]


def plot_network(
    residuals: pd.DataFrame,
    var1: str,
    var2: str,
    node_colors: dict | None = None,
    edge_colors: dict | None = None,
    width_range: tuple[float, float] = WIDTH_RANGE,
    seed: int = LAYOUT_SEED,
    figsize: tuple[float, float] = (10, 6),
) -> plt.Figure:
    """
    Draw the residual graph with a spring (Fruchterman-Reingold) layout next
    to a legend panel. Returns the figure; the caller saves or shows it.
    """
    G = build_residual_graph(residuals, var1, var2, node_colors, edge_colors, width_range)

    fig, (ax, ax_legend) = plt.subplots(1, 2, figsize=figsize, gridspec_kw={"width_ratios": [4, 1]})

    k = 1.5 / np.sqrt(G.number_of_nodes()) if G.number_of_nodes() > 0 else None
    pos = nx.spring_layout(G, seed=seed, k=k)

    edges = list(G.edges())
    nx.draw_networkx_edges(
        G,
        pos,
        edgelist=edges,
        width=[G.edges[e]["width"] for e in edges],
        edge_color=[G.edges[e]["color"] for e in edges],
        ax=ax,
    )
    nx.draw_networkx_nodes(
        G,
        pos,
        node_color=[G.nodes[n]["color"] for n in G.nodes],
        node_size=1800,
        edgecolors="black",
        linewidths=0.5,
        ax=ax,
    )
    nx.draw_networkx_labels(
        G, pos, labels={n: G.nodes[n]["label"] for n in G.nodes}, font_size=9, font_color="black", ax=ax
    )
    ax.set_title(f"Network of Significant Residuals: {var1} vs {var2}")
    ax.set_axis_off()

    ax_legend.set_axis_off()
    ax_legend.legend(
        handles=legend_handles(var1, var2, node_colors, edge_colors),
        loc="center",
        frameon=False,
        title="Legend",
    )
    fig.tight_layout()
    return fig
