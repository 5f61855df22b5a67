"""
Inquiry Sources
Supply the already-filtered inquiry backlog to the clustering engine
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol

import structlog
from arango import ArangoClient
from arango.database import StandardDatabase

from shared.schemas.faq import DateRange, as_utc
from shared.schemas.inquiry import InquiryRecord, InquiryStatus

logger = structlog.get_logger()

# Processing cap on inquiries fetched per run
DEFAULT_LIMIT = 1000


@dataclass(frozen=True)
class InquiryQuery:
    """Filter handed to an inquiry source; date_range and categories come straight from the options"""
    app_id: str
    date_range: Optional[DateRange] = None
    categories: Optional[list[str]] = None
    status: str = InquiryStatus.RESOLVED.value
    limit: int = DEFAULT_LIMIT


class InquirySource(Protocol):
    """Fetches inquiries matching a query"""

    def fetch(self, query: InquiryQuery) -> list[InquiryRecord]:
        ...


class JsonFileInquirySource:
    """
    Inquiry source backed by a JSON export.

    Accepts a list of inquiries or {"inquiries": [...]} and applies the query
    filters: app, status, has responses, inclusive date range, categories.
    """

    def __init__(self, path: str):
        self.path = Path(path)

    def load(self) -> list[InquiryRecord]:
        """Load every inquiry in the file without filtering"""
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)

        if isinstance(data, dict) and "inquiries" in data:
            data = data["inquiries"]
        if not isinstance(data, list):
            raise ValueError(f"Invalid inquiry file format: {self.path}")
        return [InquiryRecord.model_validate(item) for item in data]

    def fetch(self, query: InquiryQuery) -> list[InquiryRecord]:
        inquiries = self.load()
        selected = [inq for inq in inquiries if self._matches(inq, query)]

        # Newest first; inquiries without a timestamp keep file order at the end
        dated = [inq for inq in selected if inq.created_at is not None]
        undated = [inq for inq in selected if inq.created_at is None]
        dated.sort(key=lambda inq: as_utc(inq.created_at), reverse=True)
        selected = (dated + undated)[:query.limit]

        logger.info(
            "Loaded inquiries from file",
            file=str(self.path),
            total=len(inquiries),
            selected=len(selected),
            app_id=query.app_id,
        )
        return selected

    def _matches(self, inquiry: InquiryRecord, query: InquiryQuery) -> bool:
        if inquiry.app_id is not None and inquiry.app_id != query.app_id:
            return False
        if inquiry.status is not None and query.status and inquiry.status != query.status:
            return False
        if not inquiry.responses:
            return False
        if query.date_range is not None:
            if inquiry.created_at is None:
                return False
            created = as_utc(inquiry.created_at)
            if created < as_utc(query.date_range.start_date):
                return False
            if created > as_utc(query.date_range.end_date):
                return False
        if query.categories:
            if inquiry.category not in query.categories:
                return False
        return True


class ArangoInquirySource:
    """Inquiry source backed by ArangoDB inquiry and response collections"""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 8529,
        database: str = "support",
        username: str = "root",
        password: str = "",
        inquiry_collection: str = "inquiries",
        response_collection: str = "responses",
    ):
        self.host = host
        self.port = port
        self.database_name = database
        self.username = username
        self.password = password
        self.inquiry_collection = inquiry_collection
        self.response_collection = response_collection
        self._client: Optional[ArangoClient] = None
        self._db: Optional[StandardDatabase] = None
        self._connect()

    def _connect(self):
        """Establish connection to ArangoDB"""
        try:
            self._client = ArangoClient(hosts=f"http://{self.host}:{self.port}")
            if self.password:
                self._db = self._client.db(
                    self.database_name, username=self.username, password=self.password
                )
            else:
                self._db = self._client.db(self.database_name)
            logger.info("Connected to ArangoDB", host=self.host, database=self.database_name)
        except Exception as e:
            logger.error("Failed to connect to ArangoDB", error=str(e))
            raise

    def build_query(self, query: InquiryQuery) -> tuple[str, dict[str, Any]]:
        """Build the AQL statement and bind variables for a query"""
        bind_vars: dict[str, Any] = {
            "@inquiries": self.inquiry_collection,
            "@responses": self.response_collection,
            "app_id": query.app_id,
            "status": query.status,
            "limit": query.limit,
        }
        filters = [
            "FILTER i.app_id == @app_id",
            "FILTER i.status == @status",
        ]
        if query.date_range is not None:
            # ISO strings with different offsets do not sort chronologically
            filters.append("FILTER DATE_TIMESTAMP(i.created_at) >= DATE_TIMESTAMP(@start_date)")
            filters.append("FILTER DATE_TIMESTAMP(i.created_at) <= DATE_TIMESTAMP(@end_date)")
            bind_vars["start_date"] = as_utc(query.date_range.start_date).isoformat()
            bind_vars["end_date"] = as_utc(query.date_range.end_date).isoformat()
        if query.categories:
            filters.append("FILTER i.category IN @categories")
            bind_vars["categories"] = list(query.categories)

        aql = "\n".join([
            "FOR i IN @@inquiries",
            *[f"  {f}" for f in filters],
            "  LET responses = (",
            "    FOR r IN @@responses",
            "      FILTER r.inquiry_id == i._key",
            "      SORT r.created_at ASC",
            "      RETURN {",
            "        id: r._key,",
            "        content: NOT_NULL(r.content, \"\"),",
            "        is_public: NOT_NULL(r.is_public, true),",
            "        created_at: r.created_at",
            "      }",
            "  )",
            "  FILTER LENGTH(responses) > 0",
            "  SORT DATE_TIMESTAMP(i.created_at) DESC",
            "  LIMIT @limit",
            "  RETURN MERGE(i, {id: i._key, responses: responses})",
        ])
        return aql, bind_vars

    def fetch(self, query: InquiryQuery) -> list[InquiryRecord]:
        aql, bind_vars = self.build_query(query)
        cursor = self._db.aql.execute(aql, bind_vars=bind_vars)
        inquiries = [self._to_record(doc) for doc in cursor]
        logger.info("Fetched inquiries from ArangoDB", app_id=query.app_id, count=len(inquiries))
        return inquiries

    def _to_record(self, doc: dict) -> InquiryRecord:
        return InquiryRecord(
            id=str(doc.get("id") or doc.get("_key")),
            app_id=doc.get("app_id"),
            title=doc.get("title") or "",
            content=doc.get("content") or "",
            category=doc.get("category"),
            status=doc.get("status"),
            created_at=doc.get("created_at"),
            responses=doc.get("responses") or [],
        )
