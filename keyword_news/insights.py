"""
Insight votes, comment threads and Gemini-written insights.

Metrics and comments live in collections shared by every user. Local copies
are snapshots: `sync_*` replaces them wholesale, never merges.

Votes are a read-modify-write of the full counter pair unless an atomic
increment function is configured on the database (see supabase/schema.sql).
Without it two concurrent votes on the same item can lose an increment.
"""

import sys
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

from .errors import RemoteCallError
from .gemini import GeminiClient, comment_reply_prompt, insight_prompt
from .records import NewsRecord
from .store import Collection

VOTE_COLUMNS = {"up": "upvotes", "down": "downvotes"}
ROLE_USER = "user"
ROLE_AI = "ai"
AI_AUTHOR_ID = "gemini"
INSIGHT_UNAVAILABLE = "인사이트를 생성하지 못했습니다. 잠시 후 다시 시도해 주세요."


@dataclass(frozen=True)
class InsightMetric:
    upvotes: int = 0
    downvotes: int = 0


@dataclass(frozen=True)
class InsightComment:
    id: str
    news_id: str
    text: str
    timestamp: str
    author_id: str
    role: str = ROLE_USER

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "news_id": self.news_id,
            "text": self.text,
            "timestamp": self.timestamp,
            "author_id": self.author_id,
            "role": self.role,
        }

    @classmethod
    def from_row(cls, row: dict) -> "InsightComment":
        return cls(
            id=str(row.get("id", "")),
            news_id=row.get("news_id", ""),
            text=row.get("text", ""),
            timestamp=row.get("timestamp", ""),
            author_id=row.get("author_id", ""),
            role=row.get("role", ROLE_USER),
        )


def _count(value) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        return 0


def metric_from_row(row: dict | None) -> InsightMetric:
    if not row:
        return InsightMetric()
    return InsightMetric(upvotes=_count(row.get("upvotes")), downvotes=_count(row.get("downvotes")))


def new_comment(news_id: str, text: str, author_id: str, role: str = ROLE_USER) -> InsightComment:
    return InsightComment(
        id=uuid.uuid4().hex,
        news_id=news_id,
        text=text,
        timestamp=datetime.now(timezone.utc).isoformat(),
        author_id=author_id,
        role=role,
    )


class InsightAggregator:
    def __init__(self, metrics: Collection, comments: Collection,
                 writer: GeminiClient | None = None, vote_rpc: str = ""):
        self.metrics = metrics
        self.comments = comments
        self.writer = writer
        self.vote_rpc = vote_rpc
        self._metrics: dict[str, InsightMetric] = {}
        self._comments: tuple[InsightComment, ...] = ()

    # --- snapshots ---

    def sync_metrics(self, rows: Iterable[dict]) -> dict[str, InsightMetric]:
        self._metrics = {row["news_id"]: metric_from_row(row) for row in rows if row.get("news_id")}
        return dict(self._metrics)

    def sync_comments(self, rows: Iterable[dict]) -> tuple[InsightComment, ...]:
        self._comments = tuple(InsightComment.from_row(row) for row in rows)
        return self._comments

    def refresh(self) -> None:
        try:
            self.sync_metrics(self.metrics.list())
            self.sync_comments(self.comments.list())
        except Exception as e:
            print(f"  [insights] ⚠️  Failed to load insight data: {e}", file=sys.stderr)

    @property
    def all_metrics(self) -> dict[str, InsightMetric]:
        return dict(self._metrics)

    @property
    def all_comments(self) -> tuple[InsightComment, ...]:
        return self._comments

    def metric_for(self, news_id: str) -> InsightMetric:
        return self._metrics.get(news_id, InsightMetric())

    def comments_for(self, news_id: str) -> list[InsightComment]:
        # sorted() is stable, so equal timestamps keep snapshot order
        return sorted((c for c in self._comments if c.news_id == news_id), key=lambda c: c.timestamp)

    # --- votes ---

    def vote(self, news_id: str, direction: str) -> InsightMetric | None:
        """Add exactly one up/down vote. Returns the new counters, or None if the write failed."""
        column = VOTE_COLUMNS.get(direction)
        if column is None:
            raise ValueError(f"direction must be 'up' or 'down', got {direction!r}")
        try:
            if self.vote_rpc:
                row = self.metrics.rpc(self.vote_rpc, {"p_news_id": news_id, "p_column": column})
                if isinstance(row, list):
                    row = row[0] if row else None
                metric = metric_from_row(row)
            else:
                current = metric_from_row(self.metrics.get(news_id=news_id))
                counts = {"upvotes": current.upvotes, "downvotes": current.downvotes}
                counts[column] += 1
                self.metrics.upsert({"news_id": news_id, **counts}, on_conflict="app_id,news_id")
                metric = InsightMetric(**counts)
        except Exception as e:
            print(f"  [insights] ❌ Vote failed for {news_id}: {e}", file=sys.stderr)
            return None
        self._metrics = {**self._metrics, news_id: metric}
        return metric

    # --- comments ---

    def _append(self, comment: InsightComment) -> InsightComment:
        self.comments.add(comment.to_row())
        self._comments = self._comments + (comment,)
        return comment

    def add_comment(self, news_id: str, text: str, author_id: str,
                    title: str = "") -> tuple[InsightComment, InsightComment | None]:
        """
        Append a user comment, then a Gemini reply to it.

        The user comment is written first and stays written if the reply
        fails; reply failures propagate as RemoteCallError. A failed user
        write is logged and re-raised before Gemini is called, and the local
        thread is left unchanged.
        """
        text = text.strip()
        if not text:
            raise ValueError("comment text is empty")

        comment = new_comment(news_id, text, author_id)
        try:
            self._append(comment)
        except Exception as e:
            print(f"  [insights] ❌ Comment write failed for {news_id}: {e}", file=sys.stderr)
            raise

        if self.writer is None:
            return comment, None

        reply_text = self.writer.generate_text(comment_reply_prompt(title or news_id, text))
        reply = new_comment(news_id, reply_text, AI_AUTHOR_ID, role=ROLE_AI)
        try:
            self._append(reply)
        except Exception as e:
            print(f"  [insights] ❌ AI reply write failed for {news_id}: {e}", file=sys.stderr)
            return comment, None
        return comment, reply

    # --- generated insight ---

    def generate_insight(self, record: NewsRecord) -> str:
        if self.writer is None:
            return INSIGHT_UNAVAILABLE
        context = record.news_content or record.content or record.summary or record.title
        try:
            return self.writer.generate_text(insight_prompt(record.title, context))
        except RemoteCallError as e:
            print(f"  [insights] ⚠️  Insight failed for {record.id}: {e}", file=sys.stderr)
            return INSIGHT_UNAVAILABLE
