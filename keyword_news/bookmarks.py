"""
Bookmarks: an in-memory id set cached in front of a backing store.

The store is authoritative. `toggle` updates the cache optimistically and
rolls back if the write fails; `sync` replaces the cache wholesale with
whatever the store reports.
"""

import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from .store import Collection

LOCAL_STORAGE_KEY = "bookmarkedNews"
BOOKMARK_KEY = "app_id,user_id,news_id"


class LocalBookmarkStore:
    """Bookmarks kept in a JSON file as an ordered list under a fixed key."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> list[str]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return []
        except json.JSONDecodeError as e:
            print(f"  [bookmarks] ⚠️  {self.path} is not valid JSON ({e}); starting empty.", file=sys.stderr)
            return []
        ids = data.get(LOCAL_STORAGE_KEY, []) if isinstance(data, dict) else []
        if not isinstance(ids, list):
            print(f"  [bookmarks] ⚠️  {LOCAL_STORAGE_KEY} in {self.path} is not a list; starting empty.",
                  file=sys.stderr)
            return []
        return [str(i) for i in ids]

    def _save(self, ids: list[str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({LOCAL_STORAGE_KEY: ids}, f, ensure_ascii=False, indent=2)

    def add(self, news_id: str) -> None:
        ids = self.load()
        if news_id not in ids:
            ids.append(news_id)
        self._save(ids)

    def remove(self, news_id: str) -> None:
        self._save([i for i in self.load() if i != news_id])


class RemoteBookmarkStore:
    """Bookmarks as rows in the per-user Supabase collection."""

    def __init__(self, collection: Collection):
        self.collection = collection

    def load(self) -> list[str]:
        return [row["news_id"] for row in self.collection.list() if row.get("news_id")]

    def add(self, news_id: str) -> None:
        self.collection.upsert({
            "news_id": news_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }, on_conflict=BOOKMARK_KEY)

    def remove(self, news_id: str) -> None:
        self.collection.delete(news_id=news_id)


class BookmarkState:
    def __init__(self, store):
        self.store = store
        self._ids: frozenset[str] = frozenset()

    @property
    def ids(self) -> frozenset[str]:
        return self._ids

    def __contains__(self, news_id: str) -> bool:
        return news_id in self._ids

    def sync(self, ids: Iterable[str]) -> frozenset[str]:
        self._ids = frozenset(ids)
        return self._ids

    def refresh(self) -> frozenset[str]:
        try:
            return self.sync(self.store.load())
        except Exception as e:
            print(f"  [bookmarks] ⚠️  Failed to load bookmarks: {e}", file=sys.stderr)
            return self._ids

    def toggle(self, news_id: str) -> bool:
        """Flip membership. Returns True when the id is now bookmarked."""
        previous = self._ids
        adding = news_id not in previous
        self._ids = previous | {news_id} if adding else previous - {news_id}
        try:
            if adding:
                self.store.add(news_id)
            else:
                self.store.remove(news_id)
        except Exception as e:
            print(f"  [bookmarks] ❌ Bookmark toggle failed: {e}", file=sys.stderr)
            self._ids = previous
        return news_id in self._ids
