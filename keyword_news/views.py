"""
View modes, grouping and ordering for the news list.

Everything here is a pure function of its arguments; callers recompute on
every state change instead of caching derived lists.
"""

from datetime import datetime
from typing import Iterable, Sequence

from .records import NewsRecord

VIEW_ALL = "all"
VIEW_RECOMMENDED = "recommended"
VIEW_BOOKMARKS = "bookmarks"
VIEW_SUBSCRIBE = "subscribe"
VIEW_DEEP = "deep"
VIEW_MODES = (VIEW_ALL, VIEW_RECOMMENDED, VIEW_SUBSCRIBE, VIEW_BOOKMARKS, VIEW_DEEP)

RECOMMENDED_MARKER = "추천"

GROUP_BY_DATE = "date"
GROUP_BY_HOUR = "hour"
NO_DATE_KEY = "no date"
HOUR_SUFFIX = "시"
AM_MARKER = "오전"
PM_MARKER = "오후"

DATE_FORMATS = ("%Y-%m-%d", "%Y.%m.%d", "%Y/%m/%d", "%Y%m%d", "%m-%d-%Y")


# --- Filtering ---

def has_recommender_profile(record: NewsRecord) -> bool:
    return bool(
        record.nickname
        and record.company_name
        and record.job_title
        and record.recommendation_reason
        and record.recommendation_strength > 0
    )


def is_deep_eligible(record: NewsRecord) -> bool:
    return bool(record.title and record.news_content and record.has_paragraph and record.image_url)


def matches_view(record: NewsRecord, view_mode: str, bookmarks: frozenset[str] | set[str]) -> bool:
    if view_mode == VIEW_RECOMMENDED:
        return RECOMMENDED_MARKER in record.tags
    if view_mode == VIEW_BOOKMARKS:
        return record.id in bookmarks
    if view_mode == VIEW_SUBSCRIBE:
        return has_recommender_profile(record)
    if view_mode == VIEW_DEEP:
        return is_deep_eligible(record)
    return True


def matches_search(record: NewsRecord, search_term: str) -> bool:
    term = search_term.strip().lower()
    if not term:
        return True
    return term in record.title.lower() or term in record.summary.lower()


def filter_news(records: Iterable[NewsRecord], view_mode: str = VIEW_ALL,
                bookmarks: frozenset[str] | set[str] = frozenset(),
                search_term: str = "", selected_keyword: str = "") -> list[NewsRecord]:
    """Records visible in `view_mode`, narrowed by search text or an exact keyword."""
    return [
        r for r in records
        if matches_view(r, view_mode, bookmarks)
        and matches_search(r, search_term)
        and (not selected_keyword or r.keyword == selected_keyword)
    ]


def keywords_of(records: Iterable[NewsRecord]) -> list[str]:
    """Distinct non-empty keywords in first-seen order."""
    seen: dict[str, None] = {}
    for r in records:
        if r.keyword:
            seen.setdefault(r.keyword, None)
    return list(seen)


# --- Dates ---

def try_parse_date(date_str: str) -> datetime | None:
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(date_str.strip(), fmt)
        except ValueError:
            continue
    return None


def parse_hour_minute(time_str: str) -> tuple[int, int]:
    try:
        hour, _, minute = time_str.strip().partition(":")
        h, m = int(hour), int(minute or 0)
    except ValueError:
        return 0, 0
    if not (0 <= h < 24 and 0 <= m < 60):
        return 0, 0
    return h, m


def record_datetime(record: NewsRecord) -> datetime | None:
    day = try_parse_date(record.date)
    if day is None:
        return None
    h, m = parse_hour_minute(record.time)
    return day.replace(hour=h, minute=m)


# --- Grouping ---

def group_key(record: NewsRecord, granularity: str = GROUP_BY_DATE) -> str:
    dt = record_datetime(record)
    if dt is None:
        return NO_DATE_KEY
    if granularity == GROUP_BY_HOUR:
        return f"{dt:%Y-%m-%d} {dt.hour:02d}{HOUR_SUFFIX}"
    return f"{dt:%Y-%m-%d}"


def _key_sort_value(key: str) -> str:
    # ISO date (+ zero-padded hour) keys sort chronologically as strings
    return key.replace(HOUR_SUFFIX, "")


def sorted_group_keys(keys: Iterable[str]) -> list[str]:
    """Most recent first; the no-date bucket always last."""
    keys = list(keys)
    dated = [k for k in keys if k != NO_DATE_KEY]
    ordered = sorted(dated, key=_key_sort_value, reverse=True)
    if NO_DATE_KEY in keys:
        ordered.append(NO_DATE_KEY)
    return ordered


def group_news(records: Sequence[NewsRecord], granularity: str = GROUP_BY_DATE) -> dict[str, list[NewsRecord]]:
    """Bucket records by date (or date+hour). Buckets come back newest first; in-bucket order is input order."""
    buckets: dict[str, list[NewsRecord]] = {}
    for record in records:
        buckets.setdefault(group_key(record, granularity), []).append(record)
    return {key: buckets[key] for key in sorted_group_keys(buckets)}


def format_group_header(key: str) -> str:
    """'2025-08-01 14시' → '2025-08-01 오후 2시'. Date keys pass through unchanged."""
    if not key.endswith(HOUR_SUFFIX):
        return key
    date_part, _, hour_part = key.partition(" ")
    try:
        hour24 = int(hour_part.replace(HOUR_SUFFIX, ""))
    except ValueError:
        return key
    marker = PM_MARKER if hour24 >= 12 else AM_MARKER
    hour12 = hour24 % 12 or 12
    return f"{date_part} {marker} {hour12}{HOUR_SUFFIX}"


def latest_record(records: Sequence[NewsRecord]) -> NewsRecord | None:
    """The record with the latest date+time; ties keep fetch order."""
    dated = [(record_datetime(r), r) for r in records]
    dated = [(dt, r) for dt, r in dated if dt is not None]
    if not dated:
        return None
    return sorted(dated, key=lambda pair: pair[0], reverse=True)[0][1]
