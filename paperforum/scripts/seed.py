"""
Seed a development database with a journal, a demo user and two papers.

Re-running is safe: existing rows (matched by journal slug / user email)
are reused and papers are only added for a fresh demo user.
"""
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from paperforum.database import AsyncSessionLocal, close_db, init_db
from paperforum.models.database_models import Journal, Paper, PaperStatus, User
from paperforum.services.security import hash_password
from paperforum.utils.helpers import utcnow

logger = logging.getLogger("paperforum.seed")

DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "demo-password"

SAMPLE_PAPERS = [
    {
        "title": "Advances in Machine Learning for Climate Prediction",
        "abstract": (
            "This paper presents novel approaches to using machine learning algorithms "
            "for improving climate prediction models."
        ),
        "content": "Full paper content here...",
        "authors": ["Dr. Jane Smith", "Dr. John Doe"],
        "research_field": "Climate Science",
        "keywords": ["machine learning", "climate", "prediction"],
        "view_count": 150,
        "engagement_score": 85,
    },
    {
        "title": "Quantum Computing Applications in Drug Discovery",
        "abstract": (
            "Exploring how quantum computing can accelerate pharmaceutical research "
            "and drug development."
        ),
        "content": "Full paper content here...",
        "authors": ["Dr. Alice Johnson", "Dr. Bob Wilson"],
        "research_field": "Quantum Physics",
        "keywords": ["quantum computing", "drug discovery", "pharmaceuticals"],
        "view_count": 200,
        "engagement_score": 92,
    },
]


async def seed(session: AsyncSession, password: str = DEMO_PASSWORD) -> dict:
    """Insert the sample rows. Returns how many of each were created."""
    created = {"journals": 0, "users": 0, "papers": 0}

    journal = (
        await session.execute(select(Journal).where(Journal.slug == "nature-research"))
    ).scalar_one_or_none()
    if journal is None:
        journal = Journal(
            name="Nature Research",
            slug="nature-research",
            description="Leading scientific journal",
            issn="0028-0836",
        )
        session.add(journal)
        created["journals"] += 1

    user = (await session.execute(select(User).where(User.email == DEMO_EMAIL))).scalar_one_or_none()
    if user is None:
        user = User(
            email=DEMO_EMAIL,
            password=hash_password(password),
            name="Demo User",
            affiliation="Demo University",
            bio="Passionate researcher",
        )
        session.add(user)
        created["users"] += 1
        await session.flush()

        for data in SAMPLE_PAPERS:
            session.add(
                Paper(
                    **data,
                    author_ids=[user.id],
                    status=PaperStatus.PUBLISHED.value,
                    is_published=True,
                    published_at=utcnow(),
                    journal_id=journal.id,
                    created_by=user.id,
                    story_data={},
                )
            )
            created["papers"] += 1

    await session.commit()
    return created


async def run(create_tables: bool) -> int:
    try:
        if create_tables:
            await init_db()
        async with AsyncSessionLocal() as session:
            created = await seed(session)
    except Exception as exc:
        logger.error("Seeding failed: %s", exc, exc_info=True)
        print(f"✗ Seeding failed: {exc}")
        return 1
    finally:
        await close_db()

    print(
        f"✓ Seeding complete: {created['journals']} journals, "
        f"{created['users']} users, {created['papers']} papers"
    )
    if created["users"]:
        print(f"  Demo login: {DEMO_EMAIL} / {DEMO_PASSWORD}")
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    parser = argparse.ArgumentParser(prog="paperforum-seed", description=__doc__.strip().splitlines()[0])
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables first (instead of running paperforum-migrate)",
    )
    args = parser.parse_args(argv)
    sys.exit(asyncio.run(run(args.create_tables)))


if __name__ == "__main__":
    main()
