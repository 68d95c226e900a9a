"""
Import research articles into the database.

Usage
-----
    paperforum-import sample
    paperforum-import json ./data/articles.json
    paperforum-import pubmed "machine learning healthcare" 25
    paperforum-import arxiv "graph neural networks" 25

``pubmed`` and ``arxiv`` first save the fetched articles under ``DATA_DIR``
and then import that file, so a failed import can be re-run with ``json``.
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from paperforum.database import AsyncSessionLocal, close_db
from paperforum.services.arxiv_fetcher import ArxivFetcher
from paperforum.services.data_collector import DataCollector
from paperforum.services.importer import import_from_json, import_sample_articles
from paperforum.services.pubmed_fetcher import PubMedFetcher

logger = logging.getLogger("paperforum.import")

EXAMPLE_QUERIES = [
    "machine learning healthcare",
    "CRISPR gene editing",
    "climate change adaptation",
    "quantum computing algorithms",
    "cancer immunotherapy",
    "brain computer interface",
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="paperforum-import",
        description="Import research articles as published papers",
        epilog="Example queries: " + "; ".join(f'"{q}"' for q in EXAMPLE_QUERIES),
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("sample", help="Import the bundled sample articles")

    json_cmd = sub.add_parser("json", help="Import from a JSON file")
    json_cmd.add_argument("path", type=Path, help="List of articles or {\"articles\": [...]}")

    for name, source in (("pubmed", "PubMed"), ("arxiv", "arXiv")):
        cmd = sub.add_parser(name, help=f"Fetch from {source} and import")
        cmd.add_argument("query", help=f"{source} search query")
        cmd.add_argument("max_results", nargs="?", type=int, default=25, help="Default: 25")

    return parser


async def _import_file(path: Path) -> int:
    async with AsyncSessionLocal() as session:
        return await import_from_json(session, path)


async def _fetch_pubmed(query: str, max_results: int) -> Optional[Path]:
    articles = await PubMedFetcher().fetch(query, max_results)
    if not articles:
        print(f"✗ No PubMed articles with abstracts found for {query!r}")
        return None
    return DataCollector().save_pubmed(articles)


async def _fetch_arxiv(query: str, max_results: int) -> Optional[Path]:
    articles = await ArxivFetcher().fetch(query, max_results)
    if not articles:
        print(f"✗ No arXiv articles found for {query!r}")
        return None
    return DataCollector().save_arxiv(articles)


async def run(args: argparse.Namespace) -> int:
    try:
        if args.command == "sample":
            async with AsyncSessionLocal() as session:
                imported = await import_sample_articles(session)
        elif args.command == "json":
            if not args.path.is_file():
                print(f"✗ File not found: {args.path}")
                return 1
            imported = await _import_file(args.path)
        else:
            fetch = _fetch_pubmed if args.command == "pubmed" else _fetch_arxiv
            path = await fetch(args.query, args.max_results)
            if path is None:
                return 1
            print(f"✓ Articles saved to {path}")
            imported = await _import_file(path)
    finally:
        await close_db()

    print(f"✓ Imported {imported} articles")
    return 0 if imported else 1


def main(argv: Optional[List[str]] = None) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    args = build_parser().parse_args(argv)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
