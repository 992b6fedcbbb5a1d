import os
from pathlib import Path
from dotenv import load_dotenv

# --- Base Directory ---
BASE_DIR = Path(__file__).resolve().parent.parent

# --- Load Environment Variables ---
load_dotenv(BASE_DIR / ".env")

# --- Path Configuration ---
DATA_DIR = BASE_DIR / os.getenv("DATA_DIR", "data")
OUTPUT_DIR = BASE_DIR / os.getenv("OUTPUT_DIR", "output")
LOG_DIR = BASE_DIR / os.getenv("LOG_DIR", "logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Output Options ---
SAVE_JSON_OUTPUT = os.getenv("SAVE_JSON_OUTPUT", "true").lower() in ("1", "true", "yes")

# --- Storage ---
# "local" keeps one JSON document per owner in DATA_DIR, "supabase" uses a storage bucket.
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local")
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_KEY = os.getenv("SUPABASE_KEY", "")
SUPABASE_BUCKET = os.getenv("SUPABASE_BUCKET", "analytics-data")

# --- Gemini Insights ---
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
INSIGHTS_TTL_SECONDS = int(os.getenv("INSIGHTS_TTL_SECONDS", "1800"))
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "30"))

# --- Shared Business Logic ---
# Mass units and their weight in kilograms. Anything else is deducted 1:1.
MASS_UNITS_IN_KG = {
    "kg": 1.0,
    "quintals": 100.0,
    "tons": 1000.0,
}

UNITS = [
    "kg",
    "quintals",
    "tons",
    "units",
    "liters",
]

DEFAULT_UNIT = "tons"

EXPENSE_CATEGORIES = [
    "Fertilizer",
    "Seeds",
    "Labor",
    "Fuel",
    "Maintenance",
    "Other",
]

# Order in which the time ranges are offered to users.
TIME_RANGES = [
    "all",
    "this_month",
    "last_month",
    "current_quarter",
    "last_quarter",
    "current_fy",
]

# Ranges that are charted with one bucket per day instead of per month.
DAILY_RANGES = ("this_month", "last_month")

# Financial year starts on April 1st.
FISCAL_YEAR_START_MONTH = 4
