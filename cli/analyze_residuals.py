# cli/analyze_residuals.py
import argparse
import json
import logging
from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from analysis.residuals import StatsmodelsChiSquared, build_contingency, chisq_summary, compute_residuals  # noqa: E402
from audit import quick_audit  # noqa: E402
from config import DEFAULT_VAR1, DEFAULT_VAR2, LOG_FORMAT, LOG_LEVEL, OUT, SAMPLE_CSV  # noqa: E402
from loaders import read_csv_safe, read_patients  # noqa: E402
from plotting.heatmap import plot_heatmap  # noqa: E402
from plotting.network import plot_network  # noqa: E402
from preprocess import preprocess  # noqa: E402

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Chi-squared residuals between two categorical variables")
    ap.add_argument("--data", default=None, help=f"Path to CSV (default: bundled sample {SAMPLE_CSV.name})")
    ap.add_argument("--var1", default=DEFAULT_VAR1, help="Row variable")
    ap.add_argument("--var2", default=DEFAULT_VAR2, help="Column variable")
    ap.add_argument("--out", default=str(OUT), help="Directory for outputs")
    ap.add_argument("--backend", choices=["scipy", "statsmodels"], default="scipy")
    ap.add_argument("--no-plots", action="store_true", help="Skip heatmap.html / network.png")
    ap.add_argument("--verbose", action="store_true")
    return ap


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else LOG_LEVEL, format=LOG_FORMAT)

    raw = read_patients() if args.data is None else read_csv_safe(args.data)
    sub = preprocess(raw, args.var1, args.var2)
    quick_audit(f"{args.var1} x {args.var2}", sub, key_cols=[args.var1, args.var2], show=args.verbose)

    provider = StatsmodelsChiSquared() if args.backend == "statsmodels" else None
    residuals = compute_residuals(sub, args.var1, args.var2, provider=provider)
    tab = build_contingency(sub, args.var1, args.var2)
    test = chisq_summary(tab, provider=provider)
    stats = {
        "chi2": test.chi2,
        "dof": test.dof,
        "p": test.p_value,
        "n": int(tab.to_numpy().sum()),
        "expected": test.expected.tolist(),
    }
    log.info("chi2=%.4f df=%d p=%.4g", test.chi2, test.dof, test.p_value)

    out = Path(args.out)
    out.mkdir(parents=True, exist_ok=True)
    residuals.to_csv(out / "residuals.csv", index=False)
    tab.to_csv(out / "contingency.csv")
    with open(out / "chisq.json", "w") as f:
        json.dump(stats, f, indent=2)

    if not args.no_plots:
        plot_heatmap(residuals, args.var1, args.var2).save(str(out / "heatmap.html"))
        fig = plot_network(residuals, args.var1, args.var2)
        fig.savefig(out / "network.png", dpi=150, bbox_inches="tight", facecolor="white")
        plt.close(fig)

    print(f"Wrote {len(residuals)} residual records to {out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
