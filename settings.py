# settings.py
import os
from dotenv import load_dotenv

load_dotenv()

# Tradecraft store
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./quote_agent.db")

# Catalog search (PostgREST-style RPC). Empty URL disables product search.
CATALOG_URL = os.getenv("CATALOG_URL", "").strip().rstrip("/")
CATALOG_API_KEY = os.getenv("CATALOG_API_KEY", "").strip()
CATALOG_TIMEOUT_SECONDS = float(os.getenv("CATALOG_TIMEOUT_SECONDS", "10"))

# Enrichment caps
SEARCH_TERMS_PER_ITEM = int(os.getenv("SEARCH_TERMS_PER_ITEM", "2"))
RESULTS_PER_TERM = int(os.getenv("RESULTS_PER_TERM", "2"))

# Quote defaults (overridden per request by userSettings)
DEFAULT_LABOR_RATE = float(os.getenv("DEFAULT_LABOR_RATE", "50"))
DEFAULT_MARKUP_PERCENT = float(os.getenv("DEFAULT_MARKUP_PERCENT", "20"))

# Clarify escalates to "Start over" / "Go back" after this many misses
CLARIFY_ESCALATE_AFTER = int(os.getenv("CLARIFY_ESCALATE_AFTER", "3"))

# Telemetry
TELEMETRY_DB_PATH = os.getenv("TELEMETRY_DB_PATH", "telemetry.sqlite3")

# App
DEBUG = os.getenv("DEBUG", "0").strip().lower() in {"1", "true", "yes", "on"}
