"""
Cluster Synthesis
Derives the FAQ candidate fields (question, answer, category, confidence) for each cluster
"""

import math
from collections import Counter
from dataclasses import dataclass
from typing import Optional

import numpy as np
import structlog

from shared.schemas.faq import FAQCluster
from shared.schemas.inquiry import InquiryRecord, InquiryResponse

logger = structlog.get_logger()

# Confidence policy: weighted sum of three [0, 1] sub-scores
SIZE_WEIGHT = 0.4
HOMOGENEITY_WEIGHT = 0.3
COVERAGE_WEIGHT = 0.3
# Cluster size at which the size sub-score reaches 1.0
SIZE_SATURATION = 10

# Used when no member of the cluster has a category
DEFAULT_CATEGORY = "uncategorized"
# Used when no member of the cluster has a public response
NO_ANSWER = ""

QUESTION_WORDS = [
    "どう", "なぜ", "いつ", "どこ", "だれ", "なに",
    "how", "why", "when", "where", "who", "what",
]
LIST_MARKERS = ["・", "-", "1."]


@dataclass
class ClusterMember:
    """Inquiry inside a cluster together with its input position and vector"""
    index: int  # position in the original input
    inquiry: InquiryRecord
    vector: np.ndarray


def question_score(title: str) -> int:
    """Score how much a title reads like a good FAQ question"""
    score = 0
    if 10 <= len(title) <= 100:
        score += 10
    if "?" in title or "？" in title:
        score += 5
    lowered = title.lower()
    if any(word in lowered for word in QUESTION_WORDS):
        score += 5
    return score


def answer_score(response: InquiryResponse) -> int:
    """Score how much a response reads like a reusable FAQ answer"""
    score = 0
    if 50 <= len(response.content) <= 1000:
        score += 10
    if any(marker in response.content for marker in LIST_MARKERS):
        score += 3
    return score


def size_score(size: int) -> float:
    """Grows with cluster size with diminishing returns, reaching 1.0 at SIZE_SATURATION"""
    if size <= 0:
        return 0.0
    return min(1.0, math.log1p(size) / math.log1p(SIZE_SATURATION))


def confidence_score(size: int, homogeneity: float, coverage: float) -> float:
    """Weighted confidence in [0, 1]"""
    score = (
        SIZE_WEIGHT * size_score(size)
        + HOMOGENEITY_WEIGHT * homogeneity
        + COVERAGE_WEIGHT * coverage
    )
    total_weight = SIZE_WEIGHT + HOMOGENEITY_WEIGHT + COVERAGE_WEIGHT
    return round(min(1.0, max(0.0, score / total_weight)), 4)


class ClusterSynthesizer:
    """Generates FAQ candidates for inquiry clusters"""

    def synthesize(
        self,
        cluster_id: str,
        members: list[ClusterMember],
        centroid: Optional[np.ndarray] = None,
    ) -> FAQCluster:
        """
        Build an FAQ candidate for one cluster.

        Args:
            cluster_id: Identifier for the FAQ candidate
            members: Cluster members in input order
            centroid: Mean of the members' normalised vectors (computed if omitted)

        Returns:
            FAQCluster with generated fields
        """
        if not members:
            raise ValueError("Cannot synthesize an empty cluster")

        similarities = self._centroid_similarities(members, centroid)
        ranked = self._rank_members(members, similarities)

        representative = self._select_representative(ranked)
        question = self._question_text(ranked)
        answer = self._select_answer(ranked)
        category, homogeneity = self._dominant_category(members)
        coverage = sum(1 for m in members if m.inquiry.has_public_response) / len(members)
        confidence = confidence_score(len(members), homogeneity, coverage)

        logger.debug(
            "Synthesized cluster",
            cluster_id=cluster_id,
            size=len(members),
            category=category,
            homogeneity=round(homogeneity, 3),
            coverage=round(coverage, 3),
            confidence=confidence,
        )

        return FAQCluster(
            id=cluster_id,
            inquiry_ids=[m.inquiry.id for m in members],
            representative_inquiry_id=representative.inquiry.id,
            representative_question=question,
            suggested_answer=answer,
            category=category,
            confidence=confidence,
            similarity=float(np.clip(np.mean(similarities), -1.0, 1.0)),
        )

    def _centroid_similarities(
        self,
        members: list[ClusterMember],
        centroid: Optional[np.ndarray],
    ) -> np.ndarray:
        vectors = np.asarray([m.vector for m in members], dtype=float)
        norms = np.linalg.norm(vectors, axis=1, keepdims=True)
        norms[norms == 0] = 1.0
        vectors = vectors / norms
        if centroid is None:
            centroid = vectors.mean(axis=0)
        centroid = np.asarray(centroid, dtype=float)
        centroid_norm = np.linalg.norm(centroid)
        if centroid_norm == 0:
            return np.zeros(len(members))
        return vectors @ centroid / centroid_norm

    def _rank_members(
        self,
        members: list[ClusterMember],
        similarities: np.ndarray,
    ) -> list[ClusterMember]:
        """Closest to centroid first; ties by question score, then input order"""
        order = sorted(
            range(len(members)),
            key=lambda i: (
                -round(float(similarities[i]), 9),
                -question_score(members[i].inquiry.title),
                members[i].index,
            ),
        )
        return [members[i] for i in order]

    def _select_representative(self, ranked: list[ClusterMember]) -> ClusterMember:
        for member in ranked:
            if member.inquiry.title.strip():
                return member
        return ranked[0]

    def _question_text(self, ranked: list[ClusterMember]) -> str:
        """Title of the most central member; never empty"""
        for member in ranked:
            title = member.inquiry.title.strip()
            if title:
                return title
        for member in ranked:
            content = member.inquiry.content.strip()
            if content:
                return content[:100]
        return f"Inquiry {ranked[0].inquiry.id}"

    def _select_answer(self, ranked: list[ClusterMember]) -> str:
        """Best public response of the most central member that has one"""
        for member in ranked:
            public = member.inquiry.public_responses
            if not public:
                continue
            # max() keeps the earliest response on ties
            best = max(public, key=answer_score)
            return best.content.strip()
        return NO_ANSWER

    def _dominant_category(self, members: list[ClusterMember]) -> tuple[str, float]:
        """Most frequent category (first seen wins ties) and the share of members in it"""
        categories = [m.inquiry.category for m in members if m.inquiry.category]
        if not categories:
            return DEFAULT_CATEGORY, 0.0
        # Counter preserves insertion order, and most_common is stable
        category, count = Counter(categories).most_common(1)[0]
        return category, count / len(members)
