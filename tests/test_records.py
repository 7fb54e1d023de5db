"""Tests for sheet row parsing and news id derivation."""

import unittest
from datetime import date

from keyword_news import records
from keyword_news.records import (DEEP_COLUMNS, PLACEHOLDER_IMAGE_URL, make_news_id, parse_int,
                                  parse_rows, split_date_time)

HEADER = ["title", "keyword", "source", "tags", "url", "date", "summary"]


class TestParseRows(unittest.TestCase):
    """Test row → NewsRecord conversion."""

    def test_end_to_end_row(self):
        """The documented single-row example parses into one record with a derived id."""
        rows = [HEADER, ["Title", "Kw", "Src", "", "", "2025-08-01", "Sum", "", "", "", "", "", "", "", ""]]
        parsed = parse_rows(rows)

        self.assertEqual(len(parsed), 1)
        news = parsed[0]
        self.assertEqual(news.title, "Title")
        self.assertEqual(news.keyword, "Kw")
        self.assertEqual(news.source, "Src")
        self.assertEqual(news.date, "2025-08-01")
        self.assertEqual(news.time, "00:00")
        self.assertEqual(news.summary, "Sum")
        self.assertEqual(news.id, "Title-2025-08-01")

    def test_empty_title_dropped(self):
        """Rows without a title are excluded no matter what else they contain."""
        rows = [
            HEADER,
            ["", "AI", "Src", "추천", "https://example.com", "2025-08-01", "Has everything but a title"],
            ["   ", "AI", "Src"],
            ["Kept", "AI"],
        ]
        parsed = parse_rows(rows, today=date(2025, 8, 2))
        self.assertEqual([n.title for n in parsed], ["Kept"])

    def test_header_only_yields_nothing(self):
        self.assertEqual(parse_rows([HEADER]), [])
        self.assertEqual(parse_rows([]), [])

    def test_ragged_rows_read_missing_cells_as_empty(self):
        parsed = parse_rows([HEADER, ["Short row"]], today=date(2025, 8, 2))
        news = parsed[0]
        self.assertEqual(news.keyword, "")
        self.assertEqual(news.url, "")
        self.assertEqual(news.likes, 0)
        self.assertEqual(news.date, "2025-08-02")
        self.assertEqual(news.display_image_url, PLACEHOLDER_IMAGE_URL)

    def test_composite_date_time_cell(self):
        parsed = parse_rows([HEADER, ["T", "", "", "", "", "2025-08-01 14:30"]])
        self.assertEqual(parsed[0].date, "2025-08-01")
        self.assertEqual(parsed[0].time, "14:30")

    def test_split_date_time_splits_on_first_space_only(self):
        self.assertEqual(split_date_time("2025-08-01 09:00 KST"), ("2025-08-01", "09:00 KST"))
        self.assertEqual(split_date_time("", today=date(2024, 1, 5)), ("2024-01-05", "00:00"))

    def test_integer_fields_fall_back_to_zero(self):
        row = ["T", "", "", "", "", "2025-08-01", "", "", "", "nick", "co", "job", "strong", "reason", "-3"]
        news = parse_rows([HEADER, row])[0]
        self.assertEqual(news.recommendation_strength, 0)
        self.assertEqual(news.likes, 0)

    def test_recommendation_strength_is_clamped(self):
        self.assertEqual(parse_int("9", hi=5), 5)
        self.assertEqual(parse_int(" 3 ", hi=5), 3)
        self.assertEqual(parse_int("x"), 0)

    def test_integer_fields_read_the_leading_number(self):
        """Cells like "4점" or "12.0" keep their leading integer instead of dropping to 0."""
        row = ["T", "", "", "", "", "2025-08-01", "", "", "", "nick", "co", "job", "4점", "reason", "12.0"]
        news = parse_rows([HEADER, row])[0]
        self.assertEqual((news.recommendation_strength, news.likes), (4, 12))
        self.assertEqual(parse_int(" +7 likes"), 7)
        self.assertEqual(parse_int("약 3"), 0)

    def test_deep_columns(self):
        row = ["Deep", "AI", "Src", "", "https://e.com", "2025-08-01", "Sum", "https://img",
               "excerpt", "", "second paragraph", "", "", ""]
        news = parse_rows([HEADER, row], DEEP_COLUMNS)[0]
        self.assertEqual(news.image_url, "https://img")
        self.assertEqual(news.news_content, "excerpt")
        self.assertEqual(news.paragraphs, ("", "second paragraph", "", "", ""))
        self.assertTrue(news.has_paragraph)

    def test_sample_news_is_populated(self):
        self.assertGreater(len(records.SAMPLE_NEWS), 0)
        self.assertTrue(all(n.title for n in records.SAMPLE_NEWS))


class TestNewsId(unittest.TestCase):
    """Test deterministic id derivation."""

    def test_deterministic_across_parses(self):
        rows = [HEADER, ["Fed holds rates", "", "", "", "", "2025-08-01"]]
        first = parse_rows(rows)[0].id
        second = parse_rows(rows)[0].id
        self.assertEqual(first, second)

    def test_punctuation_collides(self):
        """Titles differing only in stripped characters share an id."""
        self.assertEqual(make_news_id("Hello, World!", "2025-08-01"),
                         make_news_id("Hello World", "2025-08-01"))
        self.assertEqual(make_news_id("Hello World", "2025-08-01"), "HelloWorld-2025-08-01")

    def test_hangul_is_kept(self):
        self.assertEqual(make_news_id("AI 반도체, 수출 증가!", "2025-07-31"), "AI반도체수출증가-2025-07-31")

    def test_different_dates_do_not_collide(self):
        self.assertNotEqual(make_news_id("Same", "2025-08-01"), make_news_id("Same", "2025-08-02"))


if __name__ == "__main__":
    unittest.main()
