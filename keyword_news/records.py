"""
Sheet rows → NewsRecord.

Each sheet tab has its own column layout, so parsing is driven by a column map
(field name → column index). Rows are lists of strings and may be ragged; a
missing cell reads as "".
"""

import re
from dataclasses import dataclass, field
from datetime import date as date_cls
from typing import Iterable, Sequence

PLACEHOLDER_IMAGE_URL = "https://placehold.co/96x80/E2E8F0/64748B?text=No+Image"
DEFAULT_TIME = "00:00"
MAX_RECOMMENDATION_STRENGTH = 5
MAX_PARAGRAPHS = 5

# Original news tab layout
STANDARD_COLUMNS: dict[str, int] = {
    "title": 0,
    "keyword": 1,
    "source": 2,
    "tags": 3,
    "url": 4,
    "date": 5,
    "summary": 6,
    "content": 7,
    "image_url": 8,
    "nickname": 9,
    "company_name": 10,
    "job_title": 11,
    "recommendation_strength": 12,
    "recommendation_reason": 13,
    "likes": 14,
}

# Long-form "deep" tab layout
DEEP_COLUMNS: dict[str, int] = {
    "title": 0,
    "keyword": 1,
    "source": 2,
    "tags": 3,
    "url": 4,
    "date": 5,
    "summary": 6,
    "image_url": 7,
    "news_content": 8,
    "paragraph_1": 9,
    "paragraph_2": 10,
    "paragraph_3": 11,
    "paragraph_4": 12,
    "paragraph_5": 13,
}

INT_FIELDS = ("recommendation_strength", "likes")
PARAGRAPH_FIELDS = tuple(f"paragraph_{n}" for n in range(1, MAX_PARAGRAPHS + 1))

# Keep ASCII letters, digits and Hangul syllables
_ID_STRIP = re.compile(r"[^A-Za-z0-9가-힣]")
_LEADING_INT = re.compile(r"\s*[+-]?\d+")


@dataclass(frozen=True)
class NewsRecord:
    id: str
    title: str
    date: str
    time: str = DEFAULT_TIME
    keyword: str = ""
    source: str = ""
    tags: str = ""
    url: str = ""
    summary: str = ""
    content: str = ""
    image_url: str = ""
    nickname: str = ""
    company_name: str = ""
    job_title: str = ""
    recommendation_reason: str = ""
    recommendation_strength: int = 0
    likes: int = 0
    news_content: str = ""
    paragraphs: tuple[str, ...] = field(default_factory=tuple)

    @property
    def display_image_url(self) -> str:
        return self.image_url or PLACEHOLDER_IMAGE_URL

    @property
    def has_paragraph(self) -> bool:
        return any(p for p in self.paragraphs)


def make_news_id(title: str, date: str) -> str:
    """Stable id from title + date. Identical title/date pairs collide."""
    return f"{_ID_STRIP.sub('', title)}-{date}"


def parse_int(raw: str, lo: int = 0, hi: int | None = None) -> int:
    """Leading integer of a cell ("4점" → 4, "12.0" → 12); 0 when there is none."""
    match = _LEADING_INT.match(str(raw))
    if not match:
        return 0
    value = max(lo, int(match.group()))
    if hi is not None:
        value = min(hi, value)
    return value


def split_date_time(raw: str, today: date_cls | None = None) -> tuple[str, str]:
    """'2025-08-01 09:30' → ('2025-08-01', '09:30'); blank → (today, '00:00')."""
    raw = raw.strip()
    if not raw:
        return (today or date_cls.today()).isoformat(), DEFAULT_TIME
    if " " in raw:
        date_part, time_part = raw.split(" ", 1)
        return date_part, time_part.strip() or DEFAULT_TIME
    return raw, DEFAULT_TIME


def _cell(row: Sequence, index: int) -> str:
    if index >= len(row) or row[index] is None:
        return ""
    return str(row[index]).strip()


def parse_row(row: Sequence, columns: dict[str, int], today: date_cls | None = None) -> NewsRecord:
    values = {name: _cell(row, index) for name, index in columns.items()}

    date_part, time_part = split_date_time(values.pop("date", ""), today)
    paragraphs = tuple(values.pop(name) for name in PARAGRAPH_FIELDS if name in values)

    ints = {
        "recommendation_strength": parse_int(values.pop("recommendation_strength", ""),
                                             hi=MAX_RECOMMENDATION_STRENGTH),
        "likes": parse_int(values.pop("likes", "")),
    }
    title = values.pop("title", "")

    return NewsRecord(
        id=make_news_id(title, date_part),
        title=title,
        date=date_part,
        time=time_part,
        paragraphs=paragraphs,
        **ints,
        **values,
    )


def parse_rows(rows: Iterable[Sequence], columns: dict[str, int] = STANDARD_COLUMNS,
               today: date_cls | None = None) -> list[NewsRecord]:
    """Skip the header row, parse the rest, drop rows without a title."""
    data_rows = list(rows)[1:]
    parsed = [parse_row(row, columns, today) for row in data_rows]
    return [record for record in parsed if record.title]


# Built-in dataset shown when the sheet cannot be loaded
SAMPLE_ROWS: list[list[str]] = [
    ["제목", "키워드", "출처", "태그", "URL", "날짜", "요약"],
    ["생성형 AI 도입, 제조업 현장으로 확산", "AI", "IT조선", "추천", "https://it.chosun.com/",
     "2025-08-01 09:00", "대형 제조사들이 생산 라인 품질 검사에 생성형 AI를 시범 적용하고 있다."],
    ["클라우드 비용 최적화가 올해 IT 예산의 최우선 과제", "클라우드", "전자신문", "", "https://www.etnews.com/",
     "2025-08-01 08:00", "기업들이 클라우드 지출을 재점검하며 FinOps 조직을 신설하는 사례가 늘고 있다."],
    ["반도체 수출 3개월 연속 증가", "반도체", "연합뉴스", "", "https://www.yna.co.kr/",
     "2025-07-31 17:30", "메모리 가격 회복세에 힘입어 반도체 수출이 증가세를 이어갔다."],
]

SAMPLE_NEWS: list[NewsRecord] = parse_rows(SAMPLE_ROWS)
