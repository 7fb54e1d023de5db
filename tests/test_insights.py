"""Tests for insight votes, comments and generated insights."""

import unittest
from unittest.mock import MagicMock

from fakes import FakeCollection

from keyword_news.errors import RetryExhaustedError
from keyword_news.insights import (INSIGHT_UNAVAILABLE, ROLE_AI, ROLE_USER, InsightAggregator,
                                   InsightMetric)
from keyword_news.records import NewsRecord


class TestVotes(unittest.TestCase):
    """Test up/down vote counters."""

    def setUp(self):
        self.metrics = FakeCollection(scope={"app_id": "app"})
        self.aggregator = InsightAggregator(self.metrics, FakeCollection(scope={"app_id": "app"}))

    def test_first_vote_starts_from_zero(self):
        self.assertEqual(self.aggregator.vote("n1", "up"), InsightMetric(1, 0))
        self.assertEqual(self.metrics.rows, [{"news_id": "n1", "upvotes": 1, "downvotes": 0, "app_id": "app"}])

    def test_vote_increments_by_exactly_one(self):
        self.metrics.rows = [{"app_id": "app", "news_id": "n1", "upvotes": 4, "downvotes": 2}]
        self.assertEqual(self.aggregator.vote("n1", "down"), InsightMetric(4, 3))
        self.assertEqual(self.aggregator.vote("n1", "up"), InsightMetric(5, 3))
        self.assertEqual(len(self.metrics.rows), 1)
        self.assertEqual(self.aggregator.metric_for("n1"), InsightMetric(5, 3))

    def test_invalid_direction(self):
        with self.assertRaises(ValueError):
            self.aggregator.vote("n1", "sideways")

    def test_failed_write_leaves_cache_unchanged(self):
        self.aggregator.sync_metrics([{"news_id": "n1", "upvotes": 1, "downvotes": 0}])
        self.metrics.fail_on.add("upsert")
        self.assertIsNone(self.aggregator.vote("n1", "up"))
        self.assertEqual(self.aggregator.metric_for("n1"), InsightMetric(1, 0))

    def test_atomic_rpc_is_used_when_configured(self):
        aggregator = InsightAggregator(self.metrics, FakeCollection(), vote_rpc="increment_insight_vote")
        self.assertEqual(aggregator.vote("n1", "up"), InsightMetric(1, 0))
        self.assertEqual(self.metrics.rpc_calls,
                         [("increment_insight_vote", {"p_news_id": "n1", "p_column": "upvotes"})])

    def test_sync_metrics_replaces_snapshot(self):
        self.aggregator.sync_metrics([{"news_id": "n1", "upvotes": 3, "downvotes": "x"}])
        self.assertEqual(self.aggregator.metric_for("n1"), InsightMetric(3, 0))
        self.aggregator.sync_metrics([])
        self.assertEqual(self.aggregator.metric_for("n1"), InsightMetric())


class TestComments(unittest.TestCase):
    """Test comment threads and AI replies."""

    def setUp(self):
        self.comments = FakeCollection(scope={"app_id": "app"})
        self.writer = MagicMock()
        self.writer.generate_text.return_value = "Interesting point."
        self.aggregator = InsightAggregator(FakeCollection(), self.comments, writer=self.writer)

    def test_comment_then_ai_reply(self):
        comment, reply = self.aggregator.add_comment("n1", "  Big news  ", "user-1", title="Chip exports rise")

        self.assertEqual(comment.text, "Big news")
        self.assertEqual(comment.role, ROLE_USER)
        self.assertEqual(reply.role, ROLE_AI)
        self.assertEqual(reply.text, "Interesting point.")
        self.assertEqual([r["role"] for r in self.comments.rows], ["user", "ai"])

        prompt = self.writer.generate_text.call_args[0][0]
        self.assertIn("Chip exports rise", prompt)
        self.assertIn("Big news", prompt)

    def test_reply_failure_keeps_user_comment(self):
        self.writer.generate_text.side_effect = RetryExhaustedError("gemini failed after 3 attempts")
        with self.assertRaises(RetryExhaustedError):
            self.aggregator.add_comment("n1", "hello", "user-1")
        self.assertEqual([r["text"] for r in self.comments.rows], ["hello"])
        self.assertEqual([c.text for c in self.aggregator.comments_for("n1")], ["hello"])

    def test_failed_user_write_skips_reply(self):
        self.comments.fail_on.add("add")
        with self.assertRaises(RuntimeError):
            self.aggregator.add_comment("n1", "hello", "user-1")
        self.writer.generate_text.assert_not_called()
        self.assertEqual(self.aggregator.comments_for("n1"), [])

    def test_empty_comment_rejected(self):
        with self.assertRaises(ValueError):
            self.aggregator.add_comment("n1", "   ", "user-1")

    def test_comments_for_orders_by_timestamp(self):
        self.aggregator.sync_comments([
            {"id": "2", "news_id": "n1", "text": "second", "timestamp": "2025-08-01T10:00:00", "author_id": "a"},
            {"id": "x", "news_id": "n2", "text": "other", "timestamp": "2025-08-01T09:00:00", "author_id": "a"},
            {"id": "1", "news_id": "n1", "text": "first", "timestamp": "2025-08-01T09:30:00", "author_id": "b",
             "role": "ai"},
        ])
        thread = self.aggregator.comments_for("n1")
        self.assertEqual([c.text for c in thread], ["first", "second"])
        self.assertEqual(thread[0].role, ROLE_AI)

    def test_without_writer_no_reply(self):
        aggregator = InsightAggregator(FakeCollection(), self.comments)
        comment, reply = aggregator.add_comment("n1", "hello", "user-1")
        self.assertIsNone(reply)
        self.assertEqual(len(self.comments.rows), 1)


class TestGenerateInsight(unittest.TestCase):

    def setUp(self):
        self.record = NewsRecord(id="n1", title="Chip exports rise", date="2025-08-01", summary="Memory prices up")
        self.writer = MagicMock()

    def test_returns_generated_text(self):
        self.writer.generate_text.return_value = "Memory recovery continues."
        aggregator = InsightAggregator(FakeCollection(), FakeCollection(), writer=self.writer)
        self.assertEqual(aggregator.generate_insight(self.record), "Memory recovery continues.")
        self.assertIn("Memory prices up", self.writer.generate_text.call_args[0][0])

    def test_failure_returns_message(self):
        self.writer.generate_text.side_effect = RetryExhaustedError("exhausted")
        aggregator = InsightAggregator(FakeCollection(), FakeCollection(), writer=self.writer)
        self.assertEqual(aggregator.generate_insight(self.record), INSIGHT_UNAVAILABLE)


if __name__ == "__main__":
    unittest.main()
