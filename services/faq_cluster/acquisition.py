"""
Embedding Acquisition
Drives the embedding client over every inquiry, isolating per-item failures
"""

import math
import time
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
import structlog

from shared.schemas.inquiry import InquiryRecord

from .embedder import Embedder, EmbeddingError

logger = structlog.get_logger()


@dataclass(frozen=True)
class Embedded:
    """Successful embedding attempt"""
    vector: tuple[float, ...]


@dataclass(frozen=True)
class Failed:
    """Failed embedding attempt; the inquiry is carried forward as unclustered"""
    reason: str


EmbeddingOutcome = Union[Embedded, Failed]


@dataclass
class EmbeddedBatch:
    """Successfully embedded inquiries, in input order, with their vectors"""
    indices: list[int]
    vectors: np.ndarray
    failed_indices: list[int]

    def __len__(self) -> int:
        return len(self.indices)


def build_embedding_text(inquiry: InquiryRecord, include_category: bool = False) -> str:
    """Combine title and content (and optionally category) into the text to embed"""
    parts = [inquiry.title, inquiry.content]
    if include_category and inquiry.category:
        parts.append(inquiry.category)
    return " ".join(p.strip() for p in parts if p and p.strip())


class EmbeddingAcquirer:
    """
    Embeds inquiries on a bounded worker pool.

    Each inquiry gets exactly one attempt. The outcome is written to the slot
    of the inquiry's input index, so the result order never depends on which
    worker finishes first.
    """

    def __init__(
        self,
        embedder: Embedder,
        max_workers: int = 4,
        timeout: Optional[float] = None,
        include_category: bool = False,
    ):
        """
        Args:
            embedder: Embedding client
            max_workers: Concurrent embedding calls
            timeout: Seconds allowed for the whole batch; calls still pending become failures
            include_category: Append the category to the embedding text
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.embedder = embedder
        self.max_workers = max_workers
        self.timeout = timeout
        self.include_category = include_category

    def _embed_one(self, inquiry: InquiryRecord) -> EmbeddingOutcome:
        text = build_embedding_text(inquiry, self.include_category)
        try:
            vector = self.embedder.embed(text)
        except EmbeddingError as e:
            logger.warning("Embedding failed for inquiry", inquiry_id=inquiry.id, error=str(e))
            return Failed(reason=str(e) or type(e).__name__)
        return Embedded(vector=tuple(float(x) for x in vector))

    def acquire(self, inquiries: list[InquiryRecord]) -> list[EmbeddingOutcome]:
        """
        Attempt one embedding per inquiry.

        Returns:
            One outcome per inquiry, aligned with the input order
        """
        if not inquiries:
            return []

        start = time.time()
        slots: list[Optional[EmbeddingOutcome]] = [None] * len(inquiries)
        executor = ThreadPoolExecutor(max_workers=min(self.max_workers, len(inquiries)))
        try:
            futures = {
                executor.submit(self._embed_one, inquiry): index
                for index, inquiry in enumerate(inquiries)
            }
            done, pending = wait(futures, timeout=self.timeout, return_when=FIRST_EXCEPTION)
            if pending and not any(f.exception() for f in done):
                # FIRST_EXCEPTION returned on the deadline, not on an error
                for future in pending:
                    future.cancel()
                    slots[futures[future]] = Failed(reason="timed out")
                logger.warning("Embedding deadline reached", pending=len(pending), timeout=self.timeout)
            for future in done:
                # Anything other than EmbeddingError is a bug in the embedder; let it surface
                slots[futures[future]] = future.result()
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        outcomes = self._check_vectors(slots)
        failed = sum(1 for o in outcomes if isinstance(o, Failed))
        logger.info(
            "Embedding complete",
            total=len(inquiries),
            embedded=len(inquiries) - failed,
            failed=failed,
            elapsed=round(time.time() - start, 2),
        )
        return outcomes

    def _check_vectors(self, outcomes: list[EmbeddingOutcome]) -> list[EmbeddingOutcome]:
        """Reject empty, non-finite, or off-dimension vectors"""
        dimension = None
        checked: list[EmbeddingOutcome] = []
        for outcome in outcomes:
            if isinstance(outcome, Embedded):
                vector = outcome.vector
                if not vector:
                    outcome = Failed(reason="empty vector")
                elif not all(math.isfinite(x) for x in vector):
                    outcome = Failed(reason="non-finite vector")
                elif dimension is None:
                    dimension = len(vector)
                elif len(vector) != dimension:
                    outcome = Failed(reason=f"dimension mismatch: expected {dimension}, got {len(vector)}")
            checked.append(outcome)
        return checked


def split_outcomes(outcomes: list[EmbeddingOutcome]) -> EmbeddedBatch:
    """Separate successful vectors from failures, keeping input order"""
    indices = []
    vectors = []
    failed_indices = []
    for index, outcome in enumerate(outcomes):
        if isinstance(outcome, Embedded):
            indices.append(index)
            vectors.append(outcome.vector)
        else:
            failed_indices.append(index)

    matrix = np.asarray(vectors, dtype=float) if vectors else np.empty((0, 0), dtype=float)
    return EmbeddedBatch(indices=indices, vectors=matrix, failed_indices=failed_indices)
