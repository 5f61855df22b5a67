"""
FAQ Clustering Service
Clusters historical support inquiries by semantic similarity and proposes FAQ candidates

Components:
- embedder.py: InquiryEmbedder for generating embeddings via Ollama, OpenAI-compatible APIs or sentence-transformers
- acquisition.py: EmbeddingAcquirer for per-item isolated, concurrent embedding
- clusterer.py: SimilarityClusterer with swappable linkage strategies
- synthesizer.py: ClusterSynthesizer for representative question, answer, category and confidence
- aggregator.py: aggregate_result for the final, fully accounted result
- engine.py: FAQClusteringEngine orchestrating a generation run
- source.py: Inquiry sources (JSON file, ArangoDB)
- cli.py: Command-line interface for previewing and exporting FAQ candidates
"""

from .acquisition import Embedded, EmbeddingAcquirer, Failed
from .aggregator import ClusteringInvariantError, aggregate_result
from .clusterer import (
    CentroidLinkage,
    CompleteLinkage,
    LinkageStrategy,
    SimilarityClusterer,
    SingleLinkage,
    get_linkage,
)
from .embedder import Embedder, EmbeddingError, InquiryEmbedder
from .engine import FAQClusteringEngine
from .source import ArangoInquirySource, InquiryQuery, InquirySource, JsonFileInquirySource
from .synthesizer import ClusterSynthesizer

__all__ = [
    "Embedder",
    "EmbeddingError",
    "InquiryEmbedder",
    "Embedded",
    "Failed",
    "EmbeddingAcquirer",
    "LinkageStrategy",
    "CentroidLinkage",
    "SingleLinkage",
    "CompleteLinkage",
    "get_linkage",
    "SimilarityClusterer",
    "ClusterSynthesizer",
    "ClusteringInvariantError",
    "aggregate_result",
    "FAQClusteringEngine",
    "InquiryQuery",
    "InquirySource",
    "JsonFileInquirySource",
    "ArangoInquirySource",
]
