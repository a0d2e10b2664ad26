"""Centralized constants for the spacedeck engine.

All magic numbers and baseline defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Ease factor ----------
MIN_EASE_FACTOR = 1.3
MAX_QUALITY = 5
PASSING_QUALITY = 3

# ---------- Baseline policy (minutes) ----------
DEFAULT_LAPSE_INTERVAL_MINUTES = 10
DEFAULT_FIRST_STEP_MINUTES = 1440  # 1 day
DEFAULT_SECOND_STEP_MINUTES = 8640  # 6 days
DEFAULT_EASY_BONUS_MULTIPLIER = 1.3
DEFAULT_STARTING_EASE_FACTOR = 2.5

# ---------- Interval labels ----------
MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 1440
DAYS_PER_MONTH = 30
DAYS_PER_YEAR = 365
MONTH_LABEL_LIMIT = 43200  # 30 days
YEAR_LABEL_LIMIT = 525600  # 365 days

# ---------- Config ----------
ENV_PREFIX = "SPACEDECK_"
