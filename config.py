from pathlib import Path

# Base paths
ROOT = Path(__file__).resolve().parent / "data"
OUT = Path("out")

# Bundled sample dataset (two categorical variables plus extras)
SAMPLE_CSV = ROOT / "patients.csv"
SAMPLE_COLS = ["PatientID", "AgeGroup", "Gender", "PrimarySymptom"]

# Default pair analyzed by the CLI / dashboard
DEFAULT_VAR1 = "AgeGroup"
DEFAULT_VAR2 = "PrimarySymptom"

# Significance cutoff for the two-sided normal approximation
ALPHA = 0.05

# Record set fields (besides the two variable columns)
RESID = "resid"
PVAL = "pval"
LABEL = "label"

# Heatmap defaults
THEME_SIZE = 16
LABEL_SIZE = 11
COLOR_LOW = "cyan"
COLOR_MID = "#e5e5e5"  # grey90
COLOR_HIGH = "purple"
COLOR_LABELS = "gold"
HEATMAP_TITLE = "Significant residuals p<0.05"
LEGEND_TITLE = ["Residuals", "Chi²"]

# Network defaults
NODE_COLORS = {"var1": "orange", "var2": "lightblue"}
EDGE_COLORS = {"positive": "blue", "negative": "red", "nonsignificant": "grey"}
WIDTH_RANGE = (1.0, 5.0)
LAYOUT_SEED = 42

# Logging
LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
