"""
Configuration settings for RemoteAnswer.

Centralized configuration for the storefront core and the CLI.
"""

import os
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_ROOT = PROJECT_ROOT / "data"
STORE_ROOT = DATA_ROOT / "store"
OUTPUT_ROOT = PROJECT_ROOT / "output"
CATALOG_PATH = DATA_ROOT / "catalog.json"

# Persisted store keys are "<prefix><collection>"
STORE_KEY_PREFIX = "remoteanswer_"

# API Configuration
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")

# LLM Models
RECOMMENDATION_MODEL = "gemini-1.5-flash"
SALES_COPY_MODEL = "gemini-1.5-flash"
LLM_TEMPERATURE = 0.0
ORACLE_MAX_RETRIES = 1

# Catalog browsing
PAGE_SIZE = 6

# Rating aggregation: baseline counts as this many phantom reviews
RATING_PRIOR_WEIGHT = 5

# Checkout simulation
CHECKOUT_PROGRESS_STEP = 5
CHECKOUT_TICK_INTERVAL_MS = 100

# Reviews
DEFAULT_REVIEWER = "Verified Buyer"

# Persistence
CRASH_ON_STORE_WRITE_ERROR = False  # Keep running on in-memory state

# Logging
LOG_LEVEL = "INFO"  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "remoteanswer.log"
