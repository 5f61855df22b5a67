#!/usr/bin/env python3
"""
FAQ Clustering CLI
Preview or export FAQ candidates clustered from historical inquiries
"""

import csv
import json
from datetime import datetime, timezone

import click
import structlog
from pydantic import ValidationError

from shared.schemas.faq import ClusteringResult, DateRange, GenerationOptions

from . import config
from .clusterer import LINKAGES, get_linkage
from .embedder import InquiryEmbedder
from .engine import FAQClusteringEngine
from .source import ArangoInquirySource, JsonFileInquirySource

log = structlog.get_logger()

CSV_FIELDS = [
    "cluster_id", "size", "category", "confidence", "similarity",
    "representative_question", "suggested_answer", "inquiry_ids",
]


def generation_options(func):
    """Options shared by every command"""
    decorators = [
        click.option("--source", type=click.Choice(["file", "arango"]), default="file",
                     help="Where inquiries come from"),
        click.option("--input", "-i", "input_file", default=None,
                     help="Inquiry JSON file (for --source file)"),
        click.option("--app-id", required=True, help="Application whose inquiries are clustered"),
        click.option("--min-cluster-size", type=int, default=3, show_default=True),
        click.option("--max-clusters", type=int, default=10, show_default=True),
        click.option("--similarity-threshold", type=float, default=0.7, show_default=True),
        click.option("--start-date", type=click.DateTime(), default=None, help="Inclusive start of created_at"),
        click.option("--end-date", type=click.DateTime(), default=None, help="Inclusive end of created_at"),
        click.option("--category", "categories", multiple=True, help="Category allow-list (repeatable)"),
        click.option("--include-category", is_flag=True, help="Embed the category along with title and content"),
        click.option("--linkage", type=click.Choice(sorted(LINKAGES)), default="centroid", show_default=True),
        click.option("--backend", type=click.Choice(InquiryEmbedder.BACKENDS), default=config.EMBED_BACKEND,
                     show_default=True),
        click.option("--embed-url", default=config.EMBED_URL, show_default=True),
        click.option("--embed-model", default=config.EMBED_MODEL, show_default=True),
        click.option("--workers", type=int, default=config.EMBED_MAX_WORKERS, show_default=True,
                     help="Concurrent embedding calls"),
        click.option("--timeout", type=float, default=config.EMBED_TIMEOUT,
                     help="Seconds allowed for embedding the whole batch"),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def _build_options(params: dict) -> GenerationOptions:
    start, end = params["start_date"], params["end_date"]
    if (start is None) != (end is None):
        raise click.UsageError("--start-date and --end-date must be given together")
    try:
        date_range = DateRange(start_date=start, end_date=end) if start is not None else None
        return GenerationOptions(
            min_cluster_size=params["min_cluster_size"],
            max_clusters=params["max_clusters"],
            similarity_threshold=params["similarity_threshold"],
            date_range=date_range,
            categories=list(params["categories"]) or None,
            include_category=params["include_category"],
        )
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'options'}: {err['msg']}" for err in e.errors()
        )
        raise click.UsageError(f"Invalid generation options: {problems}") from e


def _build_engine(params: dict) -> FAQClusteringEngine:
    if params["source"] == "arango":
        source = ArangoInquirySource(
            host=config.ARANGODB_HOST,
            port=config.ARANGODB_PORT,
            database=config.ARANGODB_DB,
            username=config.ARANGODB_USER,
            password=config.ARANGODB_PASSWORD,
        )
    else:
        if not params["input_file"]:
            raise click.UsageError("--input is required with --source file")
        source = JsonFileInquirySource(params["input_file"])

    embedder = InquiryEmbedder(
        backend=params["backend"],
        url=params["embed_url"],
        model=params["embed_model"],
        api_key=config.OPENAI_API_KEY,
    )
    return FAQClusteringEngine(
        source=source,
        embedder=embedder,
        linkage=get_linkage(params["linkage"]),
        max_workers=params["workers"],
        embed_timeout=params["timeout"],
    )


def _run(params: dict) -> ClusteringResult:
    options = _build_options(params)
    engine = _build_engine(params)
    log.info("Running FAQ clustering", app_id=params["app_id"], source=params["source"])
    return engine.cluster_inquiries(params["app_id"], options)


def write_report(result: ClusteringResult, output_file: str, format: str = "json"):
    """Write clusters and totals as a JSON report or one CSV row per cluster"""
    if format == "json":
        report = {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "total_inquiries": result.total_inquiries,
            "clustered_inquiries": result.clustered_inquiries,
            "unclustered_ids": [inq.id for inq in result.unclustered],
            "clusters": [c.model_dump(mode="json") for c in result.clusters],
        }
        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2, ensure_ascii=False)

    elif format == "csv":
        with open(output_file, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
            writer.writeheader()
            for c in result.clusters:
                writer.writerow({
                    "cluster_id": c.id,
                    "size": c.size,
                    "category": c.category,
                    "confidence": c.confidence,
                    "similarity": round(c.similarity, 4),
                    "representative_question": c.representative_question,
                    "suggested_answer": c.suggested_answer[:500],
                    "inquiry_ids": " ".join(c.inquiry_ids),
                })
    else:
        raise ValueError(f"Unknown report format: {format}")


@click.group()
def main():
    """Cluster support inquiries into FAQ candidates."""


@main.command()
@generation_options
def preview(**params):
    """Print FAQ candidates without writing anything."""
    result = _run(params)

    click.echo(f"\nFound {len(result.clusters)} FAQ candidates")
    for c in result.clusters:
        click.echo(f"\n[{c.id}] {c.representative_question}")
        click.echo(f"   category={c.category} size={c.size} confidence={c.confidence:.2f}")
        answer = c.suggested_answer or "(no public answer)"
        click.echo(f"   answer: {answer[:200]}")

    click.echo(
        f"\nTotal: {result.total_inquiries} | "
        f"Clustered: {result.clustered_inquiries} | "
        f"Unclustered: {len(result.unclustered)}"
    )


@main.command()
@generation_options
@click.option("--output", "-o", "output_file", required=True, help="Report file path")
@click.option("--format", "format", type=click.Choice(["json", "csv"]), default="json", show_default=True)
def export(output_file: str, format: str, **params):
    """Write FAQ candidates to a JSON or CSV report."""
    result = _run(params)
    write_report(result, output_file, format)
    click.echo(f"Exported {len(result.clusters)} FAQ candidates to {output_file}")


if __name__ == "__main__":
    main()
