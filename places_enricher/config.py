# places_enricher/config.py
from dotenv import load_dotenv
import os

load_dotenv()

# API Keys
GOOGLE_PLACES_API_KEY = os.getenv("GOOGLE_PLACES_API_KEY")

# URLs
PLACES_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
PLACES_FIELDS = ",".join([
    "address_components", "adr_address", "aspects", "business_status",
    "formatted_address", "formatted_phone_number", "geometry", "html_attributions",
    "icon", "icon_background_color", "icon_mask_base_uri", "international_phone_number",
    "name", "opening_hours", "permanently_closed", "photos", "place_id", "plus_code",
    "price_level", "rating", "reviews", "types", "url", "user_ratings_total",
    "utc_offset", "utc_offset_minutes", "vicinity", "website",
])

# Quota
DAILY_REQUEST_LIMIT = int(os.getenv("DAILY_REQUEST_LIMIT", "1000"))

# Retry parameters
RETRY_ATTEMPTS = 3
RETRY_BACKOFF_SECONDS = float(os.getenv("RETRY_BACKOFF_SECONDS", "3.0"))
RETRY_JITTER_SECONDS = 1.0
RATE_LIMIT_BACKOFF_SECONDS = float(os.getenv("RATE_LIMIT_BACKOFF_SECONDS", "300"))
RATE_LIMIT_ATTEMPTS = 3

# Pacing between records
PACE_BASE_SECONDS = float(os.getenv("PACE_BASE_SECONDS", "2.5"))
PACE_JITTER_SECONDS = float(os.getenv("PACE_JITTER_SECONDS", "1.0"))

# Runtime parameters
MIN_MATCH_SCORE = float(os.getenv("MIN_MATCH_SCORE", "0.0"))
TRANSIENT_FAILURE_POLICY = os.getenv("TRANSIENT_FAILURE_POLICY", "abort")  # "abort" or "skip"
REQUESTS_PER_SECOND = 5
HTTP_TIMEOUT_SECONDS = 60
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Input spreadsheet columns
NAME_COLUMN = "Business Name"
ADDRESS_COLUMN = "Street Address"
SHEET_CHOICES = (1, 2, 3)

# File names
DATA_DIR = os.getenv("DATA_DIR", "data")
INPUT_XLSX = os.path.join(DATA_DIR, "locations.xlsx")
REQUEST_COUNTER_JSON = os.path.join(DATA_DIR, "request_counter.json")
NOT_FOUND_JSON = os.path.join(DATA_DIR, "not_found_locations.json")


def output_json_path(sheet_number: int) -> str:
    return os.path.join(DATA_DIR, f"output_sheet{sheet_number}.json")


def last_processed_json_path(sheet_number: int) -> str:
    return os.path.join(DATA_DIR, f"last_processed_sheet{sheet_number}.json")
