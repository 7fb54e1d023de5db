"""One fetch cycle: sheet → rows → records, with the sample dataset as fallback."""

import sys
from dataclasses import dataclass, field

from . import sheets
from .config import Settings
from .errors import FetchError, RemoteCallError
from .records import DEEP_COLUMNS, SAMPLE_NEWS, STANDARD_COLUMNS, NewsRecord, parse_rows
from .views import VIEW_DEEP

VARIANT_STANDARD = "standard"
VARIANT_DEEP = "deep"


@dataclass(frozen=True)
class FeedResult:
    records: list[NewsRecord] = field(default_factory=list)
    error: str = ""
    used_fallback: bool = False


def variant_for(view_mode: str) -> str:
    return VARIANT_DEEP if view_mode == VIEW_DEEP else VARIANT_STANDARD


def load_records(settings: Settings, variant: str = VARIANT_STANDARD) -> list[NewsRecord]:
    """Fetch and parse one sheet tab. Raises FetchError / RemoteCallError."""
    if not settings.sheet_id or not settings.sheets_api_key:
        raise FetchError("GOOGLE_SHEET_ID / GOOGLE_SHEETS_API_KEY not set.")

    deep = variant == VARIANT_DEEP
    sheet_name = settings.deep_sheet_name if deep else settings.sheet_name
    rows = sheets.fetch_rows(settings.sheet_id, sheet_name, settings.sheets_api_key,
                             base_delay=settings.retry_base_delay)
    if len(rows) <= 1:
        raise FetchError(f"No data found in Google Sheets tab '{sheet_name}'.")
    return parse_rows(rows, DEEP_COLUMNS if deep else STANDARD_COLUMNS)


def fetch_feed(settings: Settings, variant: str = VARIANT_STANDARD) -> FeedResult:
    try:
        records = load_records(settings, variant)
    except (FetchError, RemoteCallError) as e:
        print(f"❌ Failed to fetch news: {e}. Showing sample data.", file=sys.stderr)
        return FeedResult(records=list(SAMPLE_NEWS), error=str(e), used_fallback=True)
    print(f"📦 Loaded {len(records)} news item(s).", file=sys.stderr)
    return FeedResult(records=records)
