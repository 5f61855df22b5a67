"""
Inquiry FAQ Clustering - FAQ Generation Schemas

Defines generation options, FAQ candidate clusters and the clustering result
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from .inquiry import InquiryRecord


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC; aware ones are converted to UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class DateRange(BaseModel):
    """
    Inclusive created_at window forwarded to the inquiry source.
    Naive bounds are read as UTC.
    """

    start_date: datetime
    end_date: datetime

    class Config:
        frozen = True

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if as_utc(self.start_date) > as_utc(self.end_date):
            raise ValueError("start_date must not be after end_date")
        return self


class GenerationOptions(BaseModel):
    """
    Options for one FAQ generation run.
    Validated on construction, before any embedding work starts.
    """

    min_cluster_size: int = Field(3, ge=1, description="Smallest group accepted as a cluster")
    max_clusters: int = Field(10, ge=1, description="Cap on the number of clusters returned")
    similarity_threshold: float = Field(
        0.7, gt=0.0, le=1.0, description="Inclusive cosine similarity bound for grouping"
    )
    date_range: Optional[DateRange] = None
    categories: Optional[list[str]] = Field(
        None, description="Category allow-list forwarded to the inquiry source"
    )
    include_category: bool = Field(
        False, description="Append the category to the text sent for embedding"
    )

    class Config:
        validate_assignment = True
        json_schema_extra = {
            "example": {
                "min_cluster_size": 2,
                "max_clusters": 5,
                "similarity_threshold": 0.7,
                "date_range": {"start_date": "2024-01-01", "end_date": "2024-01-31"},
                "categories": ["アカウント", "技術的問題"],
            }
        }


class FAQCluster(BaseModel):
    """
    FAQ candidate derived from a cluster of similar inquiries.

    suggested_answer is an empty string when no member carries a public response.
    """

    id: str
    inquiry_ids: list[str] = Field(default_factory=list)
    representative_inquiry_id: str
    representative_question: str = Field(..., min_length=1)
    suggested_answer: str = ""
    category: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    similarity: float = Field(0.0, ge=-1.0, le=1.0, description="Mean member-to-centroid cosine")

    @property
    def size(self) -> int:
        return len(self.inquiry_ids)


class ClusteringResult(BaseModel):
    """Outcome of one clustering run; every input record is either clustered or unclustered"""

    clusters: list[FAQCluster] = Field(default_factory=list)
    total_inquiries: int = 0
    clustered_inquiries: int = 0
    unclustered: list[InquiryRecord] = Field(default_factory=list)
