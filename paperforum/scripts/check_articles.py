"""
Print a summary of the papers in the database.

Counts by status and research field, the most recent papers, and how many
listed authors of published papers are linked to platform users.
"""
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from paperforum.database import AsyncSessionLocal, close_db
from paperforum.models.database_models import Paper

logger = logging.getLogger("paperforum.check")


async def collect_stats(session: AsyncSession, recent: int = 5, sample: int = 10) -> dict:
    total = (await session.execute(select(func.count(Paper.id)))).scalar_one()
    published = (
        await session.execute(select(func.count(Paper.id)).where(Paper.is_published.is_(True)))
    ).scalar_one()

    field_rows = await session.execute(
        select(Paper.research_field, func.count(Paper.id)).group_by(Paper.research_field)
    )
    by_field = sorted(
        ((field or "Unknown", count) for field, count in field_rows.all()),
        key=lambda item: item[1],
        reverse=True,
    )

    recent_rows = await session.execute(
        select(Paper.id, Paper.title, Paper.research_field, Paper.created_at)
        .order_by(Paper.created_at.desc(), Paper.id.desc())
        .limit(recent)
    )

    authors_rows = await session.execute(
        select(Paper.authors, Paper.author_ids).where(Paper.is_published.is_(True)).limit(sample)
    )
    external = platform = 0
    for authors, author_ids in authors_rows.all():
        external += len(authors or [])
        platform += len(author_ids or [])

    return {
        "total": total,
        "published": published,
        "drafts": total - published,
        "by_field": by_field,
        "recent": [dict(row._mapping) for row in recent_rows.all()],
        "external_authors": external,
        "platform_authors": platform,
    }


def print_report(stats: dict) -> None:
    print("=" * 60)
    print("PaperForum - Article Check")
    print("=" * 60)
    print(f"\nTotal papers:     {stats['total']}")
    print(f"Published papers: {stats['published']}")
    print(f"Draft papers:     {stats['drafts']}")

    print("\nPapers by research field:")
    for field, count in stats["by_field"]:
        print(f"  {field}: {count}")

    print("\nMost recent papers:")
    for row in stats["recent"]:
        print(f"  [{row['id']}] {row['title']} ({row['research_field'] or 'Unknown'})")

    print("\nAuthor linkage (published sample):")
    print(f"  External author names: {stats['external_authors']}")
    print(f"  Platform user links:   {stats['platform_authors']}")
    if stats["platform_authors"]:
        ratio = stats["external_authors"] / stats["platform_authors"]
        print(f"  Ratio external/platform: {ratio:.2f}")
    else:
        print("  Ratio external/platform: n/a")
    print()


async def run(recent: int) -> int:
    try:
        async with AsyncSessionLocal() as session:
            stats = await collect_stats(session, recent=recent)
    except Exception as exc:
        logger.error("Article check failed: %s", exc, exc_info=True)
        print(f"✗ Could not read papers: {exc}")
        return 1
    finally:
        await close_db()

    print_report(stats)
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    parser = argparse.ArgumentParser(prog="paperforum-check-articles", description="Summarize stored papers")
    parser.add_argument("--recent", type=int, default=5, help="How many recent papers to list (default: 5)")
    args = parser.parse_args(argv)
    sys.exit(asyncio.run(run(args.recent)))


if __name__ == "__main__":
    main()
