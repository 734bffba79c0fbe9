"""
Data schema definitions and constants.

Defines column names, coefficient-table layout and output file names used
throughout the pipeline.
"""

# ============================================================================
# Column Names
# ============================================================================

# Default sample identifier column
ID_COL = "sample"

# Name given to the intercept coefficient in every fitted model
INTERCEPT_TERM = "Intercept"

# Covariate kinds accepted by the declared schema
KIND_NUMERIC = "numeric"
KIND_CATEGORICAL = "categorical"
KIND_BINARY = "binary"

# ============================================================================
# Coefficient Table Layout
# ============================================================================

COL_VARIABLE = "variable"
COL_COVARIATE = "covariate"
COL_ESTIMATE = "estimate"
COL_STD_ERROR = "std_error"
COL_STATISTIC = "statistic"
COL_P_VALUE = "p_value"
COL_P_ADJ = "p_adj"
COL_ODDS_RATIO = "odds_ratio"
COL_CI_LOWER = "ci_lower"
COL_CI_UPPER = "ci_upper"
COL_INDEX = "index"

COEF_COLS = [COL_ESTIMATE, COL_STD_ERROR, COL_STATISTIC, COL_P_VALUE]

TABLE_COLS = [
    COL_VARIABLE,
    COL_ESTIMATE,
    COL_STD_ERROR,
    COL_STATISTIC,
    COL_P_VALUE,
    COL_ODDS_RATIO,
    COL_CI_LOWER,
    COL_CI_UPPER,
]

SCREEN_COLS = [COL_COVARIATE] + COEF_COLS + [COL_P_ADJ]

# ============================================================================
# Output File Names
# ============================================================================

CONFIG_FILE = "config.yaml"
METADATA_FILE = "run_metadata.json"

FULL_COHORT_COEF_FILE = "full_cohort_coefficients.csv"
FULL_COHORT_ASSOC_FILE = "full_cohort_associations.csv"
EXPRESSION_COEF_FILE = "expression_coefficients.csv"
EXPRESSION_ASSOC_FILE = "expression_associations.csv"

PARTITIONS_META_FILE = "partitions_meta.json"

DIR_STABILITY = "stability"


def format_fraction(fraction: float) -> str:
    """Column label for a train fraction (``0.5`` -> ``"0.5"``, ``1.0`` -> ``"1"``)."""
    return f"{float(fraction):g}"
