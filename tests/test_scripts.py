"""Tests for the command-line scripts."""
from pathlib import Path

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from paperforum.models.database_models import Journal, Paper, User
from paperforum.scripts.check_articles import collect_stats, print_report
from paperforum.scripts.import_articles import build_parser
from paperforum.scripts.migrate import build_config
from paperforum.scripts.seed import DEMO_EMAIL, DEMO_PASSWORD, seed
from paperforum.services.security import verify_password


async def _count(db: AsyncSession, model) -> int:
    return (await db.execute(select(func.count(model.id)))).scalar_one()


@pytest.mark.asyncio
async def test_seed_is_idempotent(db_session: AsyncSession):
    created = await seed(db_session)
    assert created == {"journals": 1, "users": 1, "papers": 2}

    again = await seed(db_session)
    assert again == {"journals": 0, "users": 0, "papers": 0}

    assert await _count(db_session, Journal) == 1
    assert await _count(db_session, User) == 1
    assert await _count(db_session, Paper) == 2

    user = (await db_session.execute(select(User).where(User.email == DEMO_EMAIL))).scalar_one()
    assert verify_password(DEMO_PASSWORD, user.password)


@pytest.mark.asyncio
async def test_seeded_user_can_log_in(client, db_session: AsyncSession):
    await seed(db_session)
    resp = await client.post("/api/auth/login", json={"email": DEMO_EMAIL, "password": DEMO_PASSWORD})
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_check_articles_stats(db_session: AsyncSession, capsys):
    await seed(db_session)
    user = (await db_session.execute(select(User))).scalar_one()
    db_session.add(
        Paper(title="Unfiled draft", abstract="a", authors=["X", "Y", "Z"], author_ids=[user.id],
              keywords=[], story_data={}, created_by=user.id)
    )
    await db_session.commit()

    stats = await collect_stats(db_session)
    assert stats["total"] == 3
    assert stats["published"] == 2
    assert stats["drafts"] == 1
    assert ("Unknown", 1) in stats["by_field"]
    assert len(stats["recent"]) == 3
    # two published seed papers, two named authors each, one linked user each
    assert stats["external_authors"] == 4
    assert stats["platform_authors"] == 2

    print_report(stats)
    out = capsys.readouterr().out
    assert "Total papers:     3" in out
    assert "Ratio external/platform: 2.00" in out


def test_import_parser():
    parser = build_parser()

    args = parser.parse_args(["pubmed", "machine learning healthcare"])
    assert (args.command, args.query, args.max_results) == ("pubmed", "machine learning healthcare", 25)

    args = parser.parse_args(["arxiv", "graph networks", "10"])
    assert args.max_results == 10

    args = parser.parse_args(["json", "data/articles.json"])
    assert args.path == Path("data/articles.json")

    with pytest.raises(SystemExit):
        parser.parse_args([])


def test_migrate_config_points_at_alembic_dir():
    ini = Path(__file__).resolve().parents[1] / "alembic.ini"
    config = build_config(ini)
    assert config.get_main_option("script_location").endswith("alembic")
    assert config.attributes["configure_logger"] is False
