"""
Inquiry FAQ Clustering - Inquiry Schemas

Defines the InquiryRecord consumed by the clustering engine
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class InquiryStatus(str, Enum):
    """Inquiry lifecycle status"""
    NEW = "new"
    IN_PROGRESS = "in_progress"
    PENDING = "pending"
    RESOLVED = "resolved"
    CLOSED = "closed"


class InquiryResponse(BaseModel):
    """Individual response posted on an inquiry"""
    id: Optional[str] = None
    content: str = ""
    is_public: bool = True
    created_at: Optional[datetime] = None

    class Config:
        frozen = True


class InquiryRecord(BaseModel):
    """
    Historical support inquiry.
    This is the unit for embeddings and clustering; never mutated by the engine.
    """
    # Core identifiers
    id: str
    app_id: Optional[str] = None

    # Content
    title: str = ""
    content: str = ""
    category: Optional[str] = None
    responses: list[InquiryResponse] = Field(default_factory=list)

    # Selection metadata (used by inquiry sources only)
    status: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "id": "inquiry-1",
                "app_id": "app-1",
                "title": "ログインできません",
                "content": "パスワードを忘れてしまいログインできません",
                "category": "アカウント",
                "status": "resolved",
                "created_at": "2024-01-15T10:30:00Z",
                "responses": [
                    {"content": "パスワードリセット機能をご利用ください。", "is_public": True},
                ],
            }
        }

    @property
    def public_responses(self) -> list[InquiryResponse]:
        """Public responses with non-blank content, in posting order"""
        return [r for r in self.responses if r.is_public and r.content.strip()]

    @property
    def has_public_response(self) -> bool:
        return bool(self.public_responses)
