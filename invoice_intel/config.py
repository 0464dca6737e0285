"""Configuration management for Invoice Intel.

This module centralizes all configuration values including paths,
defaults, and environment variable overrides.
"""

from __future__ import annotations

import os
from pathlib import Path

# Base project root - assumes this file is in invoice_intel/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("INVOICE_INTEL_DATA_DIR", _PROJECT_ROOT / "data"))
PREFERENCES_DIR = DATA_DIR / "preferences"

# Budget payload keys, oldest first
BUDGET_KEY_PREFIX = "invoice_intel_budgets"
BUDGET_KEY_V1 = f"{BUDGET_KEY_PREFIX}_v1"
BUDGET_KEY_V3 = f"{BUDGET_KEY_PREFIX}_v3"
BUDGET_KEY_V4 = f"{BUDGET_KEY_PREFIX}_v4"
BUDGET_KEY_V5 = f"{BUDGET_KEY_PREFIX}_v5"
CURRENT_BUDGET_KEY = BUDGET_KEY_V5

DEFAULT_CURRENCY = os.getenv("INVOICE_INTEL_DEFAULT_CURRENCY", "USD")
DEFAULT_PORTFOLIO_NAME = "General"

# Usage metering (epoch milliseconds)
TRIAL_LENGTH_MS = 7 * 24 * 60 * 60 * 1000
EXPIRY_GRACE_MS = 2 * 60 * 60 * 1000
TRIAL_DOCS_LIMIT = 10


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, PREFERENCES_DIR]:
        directory.mkdir(parents=True, exist_ok=True)
