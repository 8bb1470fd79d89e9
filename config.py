"""Runtime configuration for the Solar Quotation Manager.

Paths and environment variables. Domain constants live in constants.py.
"""

import os
from pathlib import Path

from constants import COMPANY_NAME

# ============================================================================
# PATHS
# ============================================================================
BASE_DIR = Path(__file__).resolve().parent
DATA_DIR = Path(os.getenv("SOLAR_QUOTE_DATA_DIR", BASE_DIR / "data"))
IMAGES_DIR = DATA_DIR / "images"

# ============================================================================
# APPLICATION SETTINGS
# ============================================================================
APP_CONFIG = {
    "app_name": "Solar Quotation Manager",
    "version": "1.0.0",
    "log_level": os.getenv("SOLAR_QUOTE_LOG_LEVEL", "INFO").upper(),
    "company_name": os.getenv("SOLAR_QUOTE_COMPANY_NAME", COMPANY_NAME),
}

# ============================================================================
# UPLOAD SETTINGS
# ============================================================================
UPLOAD_CONFIG = {
    "allowed_extensions": ["png", "jpg", "jpeg", "gif", "webp"],
}
