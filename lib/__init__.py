# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Typed Supabase wrapper for database operations
# - csv_parser.py: CSV upload decoding and parsing
# - utils.py: Shared utilities (email normalization, dates, JSON sanitizing)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.csv_parser import CsvFormatError, decode_upload, parse_csv
from lib.utils import normalize_email, parse_date, sanitize_value, utc_now

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # CSV
    "CsvFormatError",
    "decode_upload",
    "parse_csv",
    # Utils
    "normalize_email",
    "parse_date",
    "sanitize_value",
    "utc_now",
]
