"""Shared fakes for the FAQ clustering tests."""

import threading

from services.faq_cluster.embedder import EmbeddingError
from shared.schemas.inquiry import InquiryRecord, InquiryResponse


class FakeEmbedder:
    """Returns a fixed vector per inquiry title; titles listed in failures raise EmbeddingError."""

    def __init__(self, vectors: dict[str, list[float]], failures: set[str] = None, default=None):
        self.vectors = vectors
        self.failures = failures or set()
        self.default = default
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def _title(self, text: str) -> str:
        for title in sorted(set(self.vectors) | self.failures, key=len, reverse=True):
            if text.startswith(title):
                return title
        return text

    def embed(self, text: str) -> list[float]:
        with self._lock:
            self.calls.append(text)
        title = self._title(text)
        if title in self.failures:
            raise EmbeddingError(f"failed to embed {title}")
        if title in self.vectors:
            return list(self.vectors[title])
        if self.default is not None:
            return list(self.default)
        raise EmbeddingError(f"no vector for {text}")

    @property
    def call_count(self) -> int:
        return len(self.calls)


class RecordingSource:
    """Inquiry source that returns a fixed list and remembers the queries it was given."""

    def __init__(self, inquiries: list[InquiryRecord] = None, error: Exception = None):
        self.inquiries = inquiries or []
        self.error = error
        self.queries = []

    def fetch(self, query):
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return list(self.inquiries)


def make_inquiry(
    id: str,
    title: str,
    content: str = "",
    category: str = None,
    answers: list = None,
    private_answers: list = None,
    **extra,
) -> InquiryRecord:
    responses = [InquiryResponse(content=a, is_public=True) for a in answers or []]
    responses += [InquiryResponse(content=a, is_public=False) for a in private_answers or []]
    return InquiryRecord(
        id=id,
        title=title,
        content=content or f"{title}の詳細",
        category=category,
        responses=responses,
        **extra,
    )
