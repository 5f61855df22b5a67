"""
Inquiry Similarity Clustering
Groups inquiry embeddings by cosine similarity, then prunes and caps the groups
"""

from dataclasses import dataclass, field
from typing import Optional, Protocol

import numpy as np
import structlog
from sklearn.metrics.pairwise import cosine_similarity
from sklearn.preprocessing import normalize

logger = structlog.get_logger()

# Similarities this close below the threshold still count as "similar enough"
SIMILARITY_EPSILON = 1e-9


@dataclass
class CandidateCluster:
    """Group of embedded inquiries that passed pruning and capping"""
    cluster_id: int  # formation order
    member_positions: list[int]  # rows of the embedding matrix, ascending
    centroid: list[float] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.member_positions)


@dataclass
class ClusterPartition:
    """Accepted clusters plus the rows that ended up in none of them"""
    clusters: list[CandidateCluster]
    unclustered_positions: list[int]
    pruned_groups: int = 0
    capped_groups: int = 0


class LinkageStrategy(Protocol):
    """
    Decides how rows are grouped.

    Receives L2-normalised vectors and returns groups of row indices in
    formation order; each group lists its rows in ascending order.
    """

    name: str

    def group(self, vectors: np.ndarray, threshold: float) -> list[list[int]]:
        ...


def _is_similar(similarity: float, threshold: float) -> bool:
    return similarity >= threshold - SIMILARITY_EPSILON


class CentroidLinkage:
    """
    Single pass in input order: each row joins the group whose running
    centroid it is most similar to, or starts a new group.
    """

    name = "centroid"

    def group(self, vectors: np.ndarray, threshold: float) -> list[list[int]]:
        groups: list[list[int]] = []
        sums: list[np.ndarray] = []
        for row, vector in enumerate(vectors):
            best_group = None
            best_similarity = None
            for gid, total in enumerate(sums):
                norm = np.linalg.norm(total)
                similarity = float(vector @ total / norm) if norm > 0 else 0.0
                # Strict comparison keeps the earliest formed group on ties
                if _is_similar(similarity, threshold) and (
                    best_similarity is None or similarity > best_similarity
                ):
                    best_group, best_similarity = gid, similarity
            if best_group is None:
                groups.append([row])
                sums.append(vector.copy())
            else:
                groups[best_group].append(row)
                sums[best_group] = sums[best_group] + vector
        return groups


class SingleLinkage:
    """Connected components of the graph linking rows with similarity >= threshold"""

    name = "single"

    def group(self, vectors: np.ndarray, threshold: float) -> list[list[int]]:
        n = len(vectors)
        similarity = cosine_similarity(vectors) if n else np.empty((0, 0))
        parent = list(range(n))

        def find(i: int) -> int:
            while parent[i] != i:
                parent[i] = parent[parent[i]]
                i = parent[i]
            return i

        for i in range(n):
            for j in range(i + 1, n):
                if _is_similar(similarity[i, j], threshold):
                    ri, rj = find(i), find(j)
                    if ri != rj:
                        # Lowest row is always the root, so formation order is by first member
                        parent[max(ri, rj)] = min(ri, rj)

        components: dict[int, list[int]] = {}
        for i in range(n):
            components.setdefault(find(i), []).append(i)
        return [components[root] for root in sorted(components)]


class CompleteLinkage:
    """
    Single pass in input order: each row joins the group where its least
    similar member is still >= threshold, preferring the tightest fit.
    """

    name = "complete"

    def group(self, vectors: np.ndarray, threshold: float) -> list[list[int]]:
        n = len(vectors)
        similarity = cosine_similarity(vectors) if n else np.empty((0, 0))
        groups: list[list[int]] = []
        for row in range(n):
            best_group = None
            best_similarity = None
            for gid, members in enumerate(groups):
                weakest = float(similarity[row, members].min())
                if _is_similar(weakest, threshold) and (
                    best_similarity is None or weakest > best_similarity
                ):
                    best_group, best_similarity = gid, weakest
            if best_group is None:
                groups.append([row])
            else:
                groups[best_group].append(row)
        return groups


LINKAGES = {
    CentroidLinkage.name: CentroidLinkage,
    SingleLinkage.name: SingleLinkage,
    CompleteLinkage.name: CompleteLinkage,
}


def get_linkage(name: str) -> LinkageStrategy:
    """Look up a linkage strategy by name"""
    try:
        return LINKAGES[name]()
    except KeyError:
        raise ValueError(f"Unknown linkage: {name} (choose from {', '.join(LINKAGES)})")


class SimilarityClusterer:
    """Clusters inquiry embeddings by cosine similarity."""

    def __init__(
        self,
        similarity_threshold: float = 0.7,
        min_cluster_size: int = 3,
        max_clusters: int = 10,
        linkage: Optional[LinkageStrategy] = None,
    ):
        self.similarity_threshold = similarity_threshold
        self.min_cluster_size = min_cluster_size
        self.max_clusters = max_clusters
        self.linkage = linkage or CentroidLinkage()

    def cluster(self, embeddings: np.ndarray) -> ClusterPartition:
        """Group rows of the embedding matrix and apply size pruning and the cluster cap."""
        n_rows = len(embeddings)
        logger.info("Starting clustering", n_inquiries=n_rows, linkage=self.linkage.name)

        if n_rows < 2:
            logger.warning("Not enough embedded inquiries for clustering", n=n_rows)
            return ClusterPartition(clusters=[], unclustered_positions=list(range(n_rows)))

        vectors = normalize(np.asarray(embeddings, dtype=float))
        groups = self.linkage.group(vectors, self.similarity_threshold)

        candidates = []
        pruned = 0
        for gid, members in enumerate(groups):
            if len(members) < self.min_cluster_size:
                pruned += 1
                continue
            centroid = vectors[members].mean(axis=0)
            candidates.append(CandidateCluster(
                cluster_id=gid,
                member_positions=sorted(members),
                centroid=centroid.tolist(),
            ))

        # Larger clusters first, earliest formed on ties
        candidates.sort(key=lambda c: (-c.size, c.cluster_id))
        accepted = candidates[:self.max_clusters]
        capped = len(candidates) - len(accepted)

        clustered = {pos for c in accepted for pos in c.member_positions}
        unclustered = [pos for pos in range(n_rows) if pos not in clustered]

        logger.info(
            "Found clusters",
            groups=len(groups),
            n_clusters=len(accepted),
            pruned=pruned,
            capped=capped,
            unclustered=len(unclustered),
        )
        return ClusterPartition(
            clusters=accepted,
            unclustered_positions=unclustered,
            pruned_groups=pruned,
            capped_groups=capped,
        )
