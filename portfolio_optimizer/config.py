"""
Central Configuration for Portfolio Optimizer
==============================================

Every numeric convention used by the quantitative engine lives here so that
the annualization factor, tolerances and grid limits are applied consistently
across the asset statistics, the optimizers and the performance analytics.
"""

# ============================================================================
# ANNUALIZATION
# ============================================================================

# Daily data is assumed throughout
TRADING_DAYS_PER_YEAR = 252.0

DEFAULT_RISK_FREE_RATE = 0.0


# ============================================================================
# PORTFOLIO INVARIANTS
# ============================================================================

# A weight may dip this far below zero from rounding and still count as >= 0
NEGATIVE_WEIGHT_TOLERANCE = 1e-12

# Weights must sum to 1 within this tolerance
WEIGHT_SUM_TOLERANCE = 1e-6


# ============================================================================
# GRID SEARCH
# ============================================================================

MAX_GRID_ASSETS = 6
DEFAULT_GRID_STEP = 0.01

# Intermediate weight sums are rounded to this many decimals
GRID_ROUNDING_DECIMALS = 12

# Number of weight tuples evaluated per vectorised batch
GRID_BATCH_SIZE = 4096


# ============================================================================
# LINEAR ALGEBRA
# ============================================================================

# Ridge term added to the diagonal on the single regularised retry
REGULARIZATION = 1e-8

# Raw tangency weights summing to less than this fall back to equal weights
NORMALIZATION_EPSILON = 1e-15

# |beta| below this makes the Treynor ratio undefined
BETA_EPSILON = 1e-12


# ============================================================================
# INVESTMENT STRATEGIES
# ============================================================================

MOMENTUM_LOOKBACK_DAYS = 126  # ~6 months of trading days

VALUE_PROXY_WINDOW = 252
VALUE_PROXY_MIN_PRICES = 10
VALUE_SCORE_CAP = 10.0
