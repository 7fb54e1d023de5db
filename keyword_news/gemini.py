"""Gemini text generation with rate-limit aware retries."""

import textwrap

from google import genai
from google.genai import errors as genai_errors

from .errors import RateLimitedError, RemoteCallError
from .retry import MAX_ATTEMPTS, call_with_retry

GEMINI_MODEL = "gemini-2.5-flash"

RATE_LIMIT_MARKERS = ("429", "quota", "resource_exhausted", "resourceexhausted", "too many requests")


def _looks_rate_limited(e: Exception) -> bool:
    if getattr(e, "code", None) == 429:
        return True
    err = str(e).lower()
    return any(marker in err for marker in RATE_LIMIT_MARKERS)


class GeminiClient:
    def __init__(self, api_key: str = "", model: str = GEMINI_MODEL, client=None,
                 base_delay: float = 1.0, max_attempts: int = MAX_ATTEMPTS):
        self.client = client or genai.Client(api_key=api_key)
        self.model = model
        self.base_delay = base_delay
        self.max_attempts = max_attempts

    def _generate_once(self, prompt: str) -> str:
        try:
            response = self.client.models.generate_content(model=self.model, contents=prompt)
        except genai_errors.APIError as e:
            if _looks_rate_limited(e):
                raise RateLimitedError(f"Gemini API Error: 429 - {e.message or e}") from e
            raise RemoteCallError(f"Gemini API Error: {e.code} - {e.message or e}", status=e.code) from e
        text = (response.text or "").strip()
        if not text:
            raise RemoteCallError("Gemini returned an empty response")
        return text

    def generate_text(self, prompt: str) -> str:
        return call_with_retry(
            lambda: self._generate_once(prompt),
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            label="gemini",
        )


def insight_prompt(title: str, context: str) -> str:
    return textwrap.dedent(f"""
        You are a senior IT industry analyst writing for busy professionals.
        Read the news item below and write a short insight (3 sentences at most):
        - what actually happened, in one sentence
        - why it matters for the industry
        - what to watch next
        Answer in the same language as the title. Plain text, no bullets, no headers.

        Title: {title}
        Context: {context[:4000]}
    """).strip()


def comment_reply_prompt(title: str, comment: str) -> str:
    return textwrap.dedent(f"""
        You are an IT news analyst replying in a reader discussion thread.
        Article title: {title}
        Reader comment: {comment}
        Reply briefly (2 sentences at most) and factually, in the language of the comment.
        Output ONLY the reply.
    """).strip()
