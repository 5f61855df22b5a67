"""Inquiry FAQ Clustering Shared Schemas"""

from .faq import ClusteringResult, DateRange, FAQCluster, GenerationOptions
from .inquiry import InquiryRecord, InquiryResponse, InquiryStatus

__all__ = [
    # Inquiry schemas
    "InquiryRecord",
    "InquiryResponse",
    "InquiryStatus",
    # FAQ generation schemas
    "DateRange",
    "GenerationOptions",
    "FAQCluster",
    "ClusteringResult",
]
