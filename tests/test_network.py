import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import networkx as nx  # noqa: E402
import pandas as pd  # noqa: E402
import pytest  # noqa: E402

from plotting.network import build_residual_graph, edge_kind, legend_handles, plot_network  # noqa: E402
from quality.errors import SchemaError  # noqa: E402

NODE_COLORS = {"AgeGroup": "green", "Symptom": "skyblue"}
EDGE_COLORS = {"positive": "blue", "negative": "red", "nonsignificant": "lightgrey"}


def _records():
    return pd.DataFrame({
        "AgeGroup": ["Young", "Young", "Old", "Old"],
        "Symptom": ["Fever", "Cough", "Fever", "Cough"],
        "resid": [0.5, -4.0, -1.0, 2.5],
        "pval": [0.617, 0.0001, 0.317, 0.0124],
    })


def test_edge_kind():
    kinds = edge_kind([0.5, -4.0, -1.0, 2.5, 3.0], [0.617, 0.0001, 0.317, 0.0124, 0.05])
    assert kinds.tolist() == ["nonsignificant", "negative", "nonsignificant", "positive", "nonsignificant"]


def test_graph_is_bipartite_with_tagged_nodes():
    G = build_residual_graph(_records(), "AgeGroup", "Symptom", NODE_COLORS, EDGE_COLORS)
    assert set(G.nodes) == {
        ("AgeGroup", "Young"),
        ("AgeGroup", "Old"),
        ("Symptom", "Fever"),
        ("Symptom", "Cough"),
    }
    young = G.nodes["AgeGroup", "Young"]
    assert (young["variable"], young["label"], young["color"]) == ("AgeGroup", "Young", "green")
    cough = G.nodes["Symptom", "Cough"]
    assert (cough["variable"], cough["label"], cough["color"]) == ("Symptom", "Cough", "skyblue")
    assert G.number_of_edges() == 4
    for a, b in G.edges:
        assert G.nodes[a]["variable"] != G.nodes[b]["variable"]


def test_edge_colors_and_widths():
    G = build_residual_graph(_records(), "AgeGroup", "Symptom", NODE_COLORS, EDGE_COLORS, width_range=(1, 5))
    young, old = ("AgeGroup", "Young"), ("AgeGroup", "Old")
    fever, cough = ("Symptom", "Fever"), ("Symptom", "Cough")
    assert G.edges[young, cough]["color"] == "red"
    assert G.edges[old, cough]["color"] == "blue"
    assert G.edges[young, fever]["color"] == "lightgrey"
    # |resid| 0.5 -> thinnest, 4.0 -> thickest, 1.0 linear in between
    assert G.edges[young, fever]["width"] == pytest.approx(1.0)
    assert G.edges[young, cough]["width"] == pytest.approx(5.0)
    assert G.edges[old, fever]["width"] == pytest.approx(1 + 4 * (0.5 / 3.5))


def test_shared_labels_keep_one_edge_per_record():
    residuals = pd.DataFrame({
        "Smoker": ["Yes", "Yes", "No", "No"],
        "Cough": ["Yes", "No", "Yes", "No"],
        "resid": [3.0, -3.0, -1.0, 1.0],
        "pval": [0.0027, 0.0027, 0.317, 0.317],
    })
    G = build_residual_graph(residuals, "Smoker", "Cough", {"var1": "orange", "var2": "lightblue"}, EDGE_COLORS)
    assert G.number_of_nodes() == 4
    assert G.number_of_edges() == len(residuals)
    assert nx.number_of_selfloops(G) == 0
    assert nx.is_bipartite(G)
    assert G.nodes["Smoker", "Yes"]["color"] == "orange"
    assert G.nodes["Cough", "Yes"]["color"] == "lightblue"
    assert G.edges[("Smoker", "Yes"), ("Cough", "Yes")]["resid"] == pytest.approx(3.0)
    assert G.edges[("Smoker", "Yes"), ("Cough", "No")]["kind"] == "negative"
    assert G.edges[("Smoker", "No"), ("Cough", "Yes")]["kind"] == "nonsignificant"
    assert G.edges[("Smoker", "No"), ("Cough", "No")]["resid"] == pytest.approx(1.0)


def test_positional_node_color_keys():
    G = build_residual_graph(_records(), "AgeGroup", "Symptom", {"var1": "orange", "var2": "lightblue"})
    assert G.nodes["AgeGroup", "Old"]["color"] == "orange"
    assert G.nodes["Symptom", "Fever"]["color"] == "lightblue"


def test_legend_handles():
    labels = [h.get_label() for h in legend_handles("AgeGroup", "Symptom", NODE_COLORS, EDGE_COLORS)]
    assert labels == [
        "AgeGroup",
        "Symptom",
        "Positive Residual (p < 0.05)",
        "Negative Residual (p < 0.05)",
        "Non-significant",
    ]


def test_plot_network_draws_graph_and_legend():
    fig = plot_network(_records(), "AgeGroup", "Symptom", NODE_COLORS, EDGE_COLORS)
    try:
        ax, ax_legend = fig.axes
        assert ax.get_title() == "Network of Significant Residuals: AgeGroup vs Symptom"
        legend = ax_legend.get_legend()
        assert legend.get_title().get_text() == "Legend"
        assert len(legend.get_texts()) == 5
    finally:
        plt.close(fig)


def test_plot_network_draws_plain_category_labels():
    residuals = pd.DataFrame({
        "Smoker": ["Yes", "Yes", "No", "No"],
        "Cough": ["Yes", "No", "Yes", "No"],
        "resid": [3.0, -3.0, -1.0, 1.0],
        "pval": [0.0027, 0.0027, 0.317, 0.317],
    })
    fig = plot_network(residuals, "Smoker", "Cough", edge_colors=EDGE_COLORS)
    try:
        texts = sorted(t.get_text() for t in fig.axes[0].texts)
        assert texts == ["No", "No", "Yes", "Yes"]
    finally:
        plt.close(fig)


def test_missing_field_raises_schema_error():
    with pytest.raises(SchemaError, match="pval"):
        build_residual_graph(_records().drop(columns=["pval"]), "AgeGroup", "Symptom")


def test_incomplete_color_mappings():
    with pytest.raises(ValueError, match="nonsignificant"):
        build_residual_graph(_records(), "AgeGroup", "Symptom", NODE_COLORS, {"positive": "b", "negative": "r"})
    with pytest.raises(ValueError, match="Symptom"):
        build_residual_graph(_records(), "AgeGroup", "Symptom", {"AgeGroup": "green"}, EDGE_COLORS)
