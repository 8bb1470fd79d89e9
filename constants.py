"""Constants for solar quotation pricing and project records."""

# Defaults seeded into new quotation forms until changed in Settings
DEFAULT_GST_PERCENTAGE = 13.8
DEFAULT_BASE_PRICE_PER_KW = 50000

DEFAULT_CLEANING_CHARGES = 0
DEFAULT_SUBSIDY = 0

# Durable store keys
PROJECTS_KEY = "projects"
SETTINGS_KEY = "settings"

# Dashboard trailing window (calendar months, current month included)
MONTHLY_WINDOW = 6
MONTH_LABEL_FORMAT = "%b %y"  # e.g. "Oct 26"

RECENT_PROJECTS_LIMIT = 5

CURRENCY_SYMBOL = "₹"

EXPORT_FILENAME_TEMPLATE = "solar_projects_{date}.json"

# Watts per kilowatt
WATTS_PER_KW = 1000

COMPANY_NAME = "Anant Energy"
SUPPORT_EMAIL = "support@anantenergy.com"
SUPPORT_PHONE = "+91 97734 76431"

STEP_TITLES = {
    "personal_details": "Personal Details",
    "system_config": "System Configuration",
    "review": "Review & Generate",
}
