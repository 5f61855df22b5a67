"""
FAQ Clustering Engine
Runs one generation pass: fetch → embed → cluster → prune/cap → synthesize → aggregate
"""

import time
from typing import Optional, Union

import numpy as np
import structlog

from shared.schemas.faq import ClusteringResult, FAQCluster, GenerationOptions
from shared.schemas.inquiry import InquiryRecord

from .acquisition import EmbeddingAcquirer, split_outcomes
from .aggregator import aggregate_result
from .clusterer import LinkageStrategy, SimilarityClusterer
from .embedder import Embedder
from .source import InquiryQuery, InquirySource
from .synthesizer import ClusterMember, ClusterSynthesizer

logger = structlog.get_logger()


class FAQClusteringEngine:
    """
    Discovers recurring inquiry themes and proposes FAQ candidates.

    Holds collaborators only; every call builds its state from scratch.
    """

    def __init__(
        self,
        source: InquirySource,
        embedder: Embedder,
        linkage: Optional[LinkageStrategy] = None,
        synthesizer: Optional[ClusterSynthesizer] = None,
        max_workers: int = 4,
        embed_timeout: Optional[float] = None,
    ):
        """
        Args:
            source: Supplies the filtered inquiry backlog
            embedder: Embedding client called once per inquiry
            linkage: Grouping strategy (default: centroid linkage)
            synthesizer: Builds FAQ fields for each cluster
            max_workers: Concurrent embedding calls
            embed_timeout: Seconds allowed for embedding the whole batch
        """
        self.source = source
        self.embedder = embedder
        self.linkage = linkage
        self.synthesizer = synthesizer or ClusterSynthesizer()
        self.max_workers = max_workers
        self.embed_timeout = embed_timeout

    def cluster_inquiries(
        self,
        app_id: str,
        options: Union[GenerationOptions, dict],
    ) -> ClusteringResult:
        """
        Fetch the app's inquiry backlog and cluster it.

        The date range and category allow-list are handed to the source as-is.
        """
        options = self._validate(options)
        logger.info("FAQ generation started", app_id=app_id)

        query = InquiryQuery(
            app_id=app_id,
            date_range=options.date_range,
            categories=options.categories,
        )
        inquiries = self.source.fetch(query)
        return self.cluster_records(inquiries, options)

    def generate_faq_clusters(
        self,
        app_id: str,
        options: Union[GenerationOptions, dict],
    ) -> list[FAQCluster]:
        """FAQ candidates for an app"""
        return self.cluster_inquiries(app_id, options).clusters

    def preview_faq_generation(
        self,
        app_id: str,
        options: Union[GenerationOptions, dict],
    ) -> list[FAQCluster]:
        """Preview uses the same logic as generation; nothing is persisted either way"""
        return self.generate_faq_clusters(app_id, options)

    def cluster_records(
        self,
        inquiries: list[InquiryRecord],
        options: Union[GenerationOptions, dict],
    ) -> ClusteringResult:
        """
        Cluster an already-fetched list of inquiries.

        Args:
            inquiries: Filtered inquiry backlog
            options: Generation options

        Returns:
            ClusteringResult accounting for every input inquiry
        """
        options = self._validate(options)
        start = time.time()
        inquiries = list(inquiries)

        if len(inquiries) < max(2, options.min_cluster_size):
            logger.warning(
                "Not enough inquiries for clustering",
                n=len(inquiries),
                min_cluster_size=options.min_cluster_size,
            )
            return aggregate_result(inquiries, [])

        acquirer = EmbeddingAcquirer(
            self.embedder,
            max_workers=self.max_workers,
            timeout=self.embed_timeout,
            include_category=options.include_category,
        )
        batch = split_outcomes(acquirer.acquire(inquiries))

        clusterer = SimilarityClusterer(
            similarity_threshold=options.similarity_threshold,
            min_cluster_size=options.min_cluster_size,
            max_clusters=options.max_clusters,
            linkage=self.linkage,
        )
        partition = clusterer.cluster(batch.vectors)

        synthesized = []
        for rank, candidate in enumerate(partition.clusters):
            members = [
                ClusterMember(
                    index=batch.indices[pos],
                    inquiry=inquiries[batch.indices[pos]],
                    vector=batch.vectors[pos],
                )
                for pos in candidate.member_positions
            ]
            faq_cluster = self.synthesizer.synthesize(
                cluster_id=f"cluster-{rank}",
                members=members,
                centroid=np.asarray(candidate.centroid),
            )
            synthesized.append((faq_cluster, [m.index for m in members]))

        result = aggregate_result(inquiries, synthesized)
        logger.info(
            "FAQ generation complete",
            clusters=len(result.clusters),
            embedding_failures=len(batch.failed_indices),
            elapsed=round(time.time() - start, 2),
        )
        return result

    def _validate(self, options: Union[GenerationOptions, dict]) -> GenerationOptions:
        if isinstance(options, GenerationOptions):
            return options
        return GenerationOptions.model_validate(options)
