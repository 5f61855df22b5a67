"""
Result Aggregation
Assembles the clustering result and enforces that every input inquiry is accounted for
"""

import structlog

from shared.schemas.faq import ClusteringResult, FAQCluster
from shared.schemas.inquiry import InquiryRecord

logger = structlog.get_logger()


class ClusteringInvariantError(RuntimeError):
    """An inquiry was lost from (or double counted in) the result accounting"""


def aggregate_result(
    inquiries: list[InquiryRecord],
    clusters: list[tuple[FAQCluster, list[int]]],
) -> ClusteringResult:
    """
    Combine synthesized clusters with the leftover inquiries.

    Args:
        inquiries: All input inquiries, including ones that failed to embed
        clusters: Each FAQ cluster paired with its members' input indices

    Returns:
        ClusteringResult whose unclustered list keeps input order
    """
    clustered_indices: set[int] = set()
    for faq_cluster, member_indices in clusters:
        overlap = clustered_indices.intersection(member_indices)
        if overlap:
            raise ClusteringInvariantError(
                f"Inquiries assigned to more than one cluster: {sorted(overlap)}"
            )
        clustered_indices.update(member_indices)

    unclustered = [inq for i, inq in enumerate(inquiries) if i not in clustered_indices]
    clustered_count = sum(faq_cluster.size for faq_cluster, _ in clusters)

    if len(inquiries) != clustered_count + len(unclustered):
        raise ClusteringInvariantError(
            f"total={len(inquiries)} != clustered={clustered_count} + unclustered={len(unclustered)}"
        )

    result = ClusteringResult(
        clusters=[faq_cluster for faq_cluster, _ in clusters],
        total_inquiries=len(inquiries),
        clustered_inquiries=clustered_count,
        unclustered=unclustered,
    )
    logger.info(
        "Aggregated clustering result",
        clusters=len(result.clusters),
        total=result.total_inquiries,
        clustered=result.clustered_inquiries,
        unclustered=len(result.unclustered),
    )
    return result
