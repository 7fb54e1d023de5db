"""
Supabase-backed collections.

The feed keeps three logical collections, namespaced by app and (for
bookmarks) by user:

  apps/{appId}/users/{userId}/bookmarks   → table bookmarks        (app_id, user_id)
  apps/{appId}/public/insightMetrics      → table insight_metrics  (app_id)
  apps/{appId}/public/insightComments     → table insight_comments (app_id)

A Collection is a table plus the scope columns every row in it carries.
"""

from __future__ import annotations

import sys
import threading
from typing import Iterator

from supabase import Client as SupabaseClient
from supabase import create_client

BOOKMARKS_TABLE = "bookmarks"
METRICS_TABLE = "insight_metrics"
COMMENTS_TABLE = "insight_comments"


def bookmarks_path(app_id: str, user_id: str) -> str:
    return f"apps/{app_id}/users/{user_id}/bookmarks"


def metrics_path(app_id: str) -> str:
    return f"apps/{app_id}/public/insightMetrics"


def comments_path(app_id: str) -> str:
    return f"apps/{app_id}/public/insightComments"


def get_supabase(url: str, key: str) -> SupabaseClient:
    return create_client(url, key)


class Collection:
    def __init__(self, client: SupabaseClient, table: str, scope: dict[str, str], path: str = ""):
        self.client = client
        self.table = table
        self.scope = dict(scope)
        self.path = path or table

    def _scoped(self, query):
        for column, value in self.scope.items():
            query = query.eq(column, value)
        return query

    def list(self, **match) -> list[dict]:
        query = self._scoped(self.client.table(self.table).select("*"))
        for column, value in match.items():
            query = query.eq(column, value)
        resp = query.execute()
        return resp.data or []

    def get(self, **match) -> dict | None:
        rows = self.list(**match)
        return rows[0] if rows else None

    def add(self, doc: dict) -> dict:
        record = {**doc, **self.scope}
        resp = self.client.table(self.table).insert(record).execute()
        return (resp.data or [record])[0]

    def upsert(self, doc: dict, on_conflict: str) -> dict:
        record = {**doc, **self.scope}
        resp = self.client.table(self.table).upsert(record, on_conflict=on_conflict).execute()
        return (resp.data or [record])[0]

    def delete(self, **match) -> int:
        query = self._scoped(self.client.table(self.table).delete())
        for column, value in match.items():
            query = query.eq(column, value)
        resp = query.execute()
        return len(resp.data or [])

    def rpc(self, function: str, params: dict):
        resp = self.client.rpc(function, {**params, **self.scope}).execute()
        return resp.data

    def snapshots(self, interval: float = 5.0, stop_event: threading.Event | None = None) -> Iterator[list[dict]]:
        """
        Yield the full row set whenever it changes, polling every `interval`
        seconds. The first snapshot is always yielded. Read failures are logged
        and the previous snapshot stays in effect.
        """
        stop_event = stop_event or threading.Event()
        last: list[dict] | None = None
        while not stop_event.is_set():
            try:
                rows = self.list()
            except Exception as e:
                print(f"  [store] ⚠️  Failed to read {self.path}: {e}", file=sys.stderr)
            else:
                if rows != last:
                    last = rows
                    yield rows
            stop_event.wait(interval)


def bookmarks_collection(client: SupabaseClient, app_id: str, user_id: str) -> Collection:
    return Collection(client, BOOKMARKS_TABLE, {"app_id": app_id, "user_id": user_id},
                      bookmarks_path(app_id, user_id))


def metrics_collection(client: SupabaseClient, app_id: str) -> Collection:
    return Collection(client, METRICS_TABLE, {"app_id": app_id}, metrics_path(app_id))


def comments_collection(client: SupabaseClient, app_id: str) -> Collection:
    return Collection(client, COMMENTS_TABLE, {"app_id": app_id}, comments_path(app_id))
