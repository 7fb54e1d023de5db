"""
Application state as an immutable value.

Every transition returns a new AppState; derived views (filtered list, grouped
buckets) are computed from it on demand.

A fetch is started with `begin_fetch`, which hands out a ticket. The result
is committed with `commit_fetch` only if no newer fetch was started and the
view mode is still the one the fetch was made for; late answers for a stale
mode are dropped.
"""

from dataclasses import dataclass, field, replace
from typing import Iterable

from .feed import FeedResult
from .insights import InsightComment, InsightMetric
from .records import NewsRecord
from .views import (GROUP_BY_DATE, VIEW_ALL, VIEW_MODES, filter_news, group_news,
                    latest_record)


@dataclass(frozen=True)
class FetchTicket:
    seq: int
    view_mode: str


@dataclass(frozen=True)
class AppState:
    records: tuple[NewsRecord, ...] = ()
    view_mode: str = VIEW_ALL
    search_term: str = ""
    selected_keyword: str = ""
    bookmarks: frozenset[str] = frozenset()
    metrics: dict[str, InsightMetric] = field(default_factory=dict)
    comments: tuple[InsightComment, ...] = ()
    fetch_seq: int = 0
    loading: bool = False
    error: str = ""

    # --- transitions ---

    def with_view_mode(self, view_mode: str) -> "AppState":
        return replace(self, view_mode=view_mode if view_mode in VIEW_MODES else VIEW_ALL)

    def with_search(self, search_term: str) -> "AppState":
        return replace(self, search_term=search_term, selected_keyword="")

    def with_keyword(self, keyword: str) -> "AppState":
        return replace(self, selected_keyword=keyword, search_term="")

    def with_bookmarks(self, ids: Iterable[str]) -> "AppState":
        return replace(self, bookmarks=frozenset(ids))

    def with_metrics(self, metrics: dict[str, InsightMetric]) -> "AppState":
        return replace(self, metrics=dict(metrics))

    def with_comments(self, comments: Iterable[InsightComment]) -> "AppState":
        return replace(self, comments=tuple(comments))

    def begin_fetch(self) -> tuple["AppState", FetchTicket]:
        seq = self.fetch_seq + 1
        return replace(self, fetch_seq=seq, loading=True, error=""), FetchTicket(seq, self.view_mode)

    def is_current(self, ticket: FetchTicket) -> bool:
        return ticket.seq == self.fetch_seq and ticket.view_mode == self.view_mode

    def commit_fetch(self, ticket: FetchTicket, result: FeedResult) -> "AppState":
        if not self.is_current(ticket):
            return self
        return replace(self, records=tuple(result.records), loading=False, error=result.error)

    # --- derived views ---

    def visible(self) -> list[NewsRecord]:
        return filter_news(self.records, self.view_mode, self.bookmarks,
                           self.search_term, self.selected_keyword)

    def grouped(self, granularity: str = GROUP_BY_DATE) -> dict[str, list[NewsRecord]]:
        return group_news(self.visible(), granularity)

    def latest(self) -> NewsRecord | None:
        return latest_record(self.records)
