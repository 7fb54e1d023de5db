"""Google Sheets v4 values fetch."""

import sys
import urllib.parse

import requests

from .errors import FetchError, RateLimitedError, RemoteCallError
from .retry import MAX_ATTEMPTS, call_with_retry

SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets/{sheet_id}/values/{sheet_name}"

HEADERS = {
    "User-Agent": "KeywordNewsBot/1.0",
    "Accept": "application/json",
}


def _error_message(resp: requests.Response) -> str:
    try:
        return resp.json().get("error", {}).get("message") or resp.reason or ""
    except ValueError:
        return resp.text[:200] or resp.reason or ""


def request_values(sheet_id: str, sheet_name: str, api_key: str, timeout: int = 15) -> list[list[str]]:
    """Single GET against the values endpoint. Returns the raw 2-D cell array."""
    url = SHEETS_API_URL.format(
        sheet_id=sheet_id,
        sheet_name=urllib.parse.quote(sheet_name, safe=""),
    )
    try:
        resp = requests.get(url, params={"key": api_key}, headers=HEADERS, timeout=timeout)
    except (requests.ConnectionError, requests.Timeout):
        raise
    except requests.RequestException as e:
        raise RemoteCallError(f"Google Sheets request failed: {e}") from e
    if resp.status_code == 429:
        raise RateLimitedError(f"Google Sheets API Error: 429 - {_error_message(resp)}")
    if not resp.ok:
        raise RemoteCallError(
            f"Google Sheets API Error: {resp.status_code} - {_error_message(resp)}",
            status=resp.status_code,
        )
    return _values_of(resp)


def _values_of(resp: requests.Response) -> list[list[str]]:
    """The `values` grid of a 200 response. A malformed body raises FetchError."""
    try:
        payload = resp.json()
    except ValueError as e:
        raise FetchError(f"Malformed Google Sheets response: {e}") from e
    if not isinstance(payload, dict):
        raise FetchError(f"Malformed Google Sheets response: expected an object, got {type(payload).__name__}")
    values = payload.get("values") or []
    if not isinstance(values, list) or not all(isinstance(row, list) for row in values):
        raise FetchError("Malformed Google Sheets response: 'values' is not a list of rows")
    return values


def fetch_rows(sheet_id: str, sheet_name: str, api_key: str,
               base_delay: float = 1.0, max_attempts: int = MAX_ATTEMPTS) -> list[list[str]]:
    print(f"📡 Fetching sheet '{sheet_name}'…", file=sys.stderr)
    rows = call_with_retry(
        lambda: request_values(sheet_id, sheet_name, api_key),
        max_attempts=max_attempts,
        base_delay=base_delay,
        label="sheets",
    )
    print(f"  🔍 {len(rows)} row(s) including header.", file=sys.stderr)
    return rows
