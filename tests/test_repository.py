"""
Storage-backed tests for the repository fetchers and the live endpoints.

Rows are written through the models into a throwaway SQLite file and read
back through the real queries, so the column mappings, the day window and
the LIKE prefix escaping are exercised as deployed.
"""

import asyncio
from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

from matchstate import repository
from matchstate.database import get_async_session
from matchstate.live.board import reporting_day_bounds
from matchstate.models import FutureMaster, LiveData, correlation_ranking
from matchstate.ranking.correlations import RANKING_SLOT_COUNT, build_correlation_view, slot_column
from matchstate.routes.api import router as api_router
from matchstate.security import limiter

J1 = "日本: J1 リーグ - ラウンド 30"
TODAY = date(2026, 10, 18)
DAY_START, DAY_END = reporting_day_bounds(TODAY, "Asia/Tokyo")
# 12:00 JST on TODAY
NOON = datetime(2026, 10, 18, 3, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'live.db'}", poolclass=NullPool)

    async def _create():
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    asyncio.run(_create())
    yield engine
    asyncio.run(engine.dispose())


def seed(engine, *objects, rankings=()):
    async def _seed():
        sessions = async_sessionmaker(engine, expire_on_commit=False)
        async with sessions() as session:
            session.add_all(objects)
            for row in rankings:
                await session.execute(correlation_ranking.insert().values(**row))
            await session.commit()

    asyncio.run(_seed())


def run(engine, fetch, *args, **kwargs):
    async def _run():
        sessions = async_sessionmaker(engine, expire_on_commit=False)
        async with sessions() as session:
            return await fetch(session, *args, **kwargs)

    return asyncio.run(_run())


def live(seq, home, away, times, recorded=NOON, category=J1, updated=None, **metrics):
    return LiveData(
        seq=seq,
        data_category=category,
        times=times,
        home_team_name=home,
        away_team_name=away,
        record_time=recorded,
        update_time=updated,
        **metrics,
    )


def future(seq, home, away, kickoff, flag, category=J1, link=None):
    return FutureMaster(
        seq=seq,
        game_team_category=category,
        future_time=kickoff,
        home_team_name=home,
        away_team_name=away,
        game_link=link,
        start_flg=flag,
    )


def ranking(row_id, score, home, away, entries, country="日本", league="J1 リーグ"):
    row = {"id": row_id, "country": country, "league": league, "score": score, "home": home, "away": away}
    for i, raw in enumerate(entries, start=1):
        row[slot_column(i)] = raw
    return row


class TestFetchSnapshots:
    def test_day_window_is_half_open(self, engine):
        seed(
            engine,
            live(1, "A", "B", "10:00", recorded=DAY_START - timedelta(minutes=1)),
            live(2, "A", "B", "20:00", recorded=DAY_START),
            live(3, "A", "B", "30:00", recorded=NOON),
            live(4, "A", "B", "40:00", recorded=DAY_END),
        )
        snapshots = run(engine, repository.fetch_snapshots, DAY_START, DAY_END)
        assert [s.seq for s in snapshots] == [2, 3]

    def test_update_time_stands_in_for_missing_record_time(self, engine):
        seed(engine, live(1, "A", "B", "10:00", recorded=None, updated=NOON))
        [snapshot] = run(engine, repository.fetch_snapshots, DAY_START, DAY_END)
        assert snapshot.recorded_at.replace(tzinfo=None) == datetime(2026, 10, 18, 3, 0)

    def test_rows_without_team_names_skipped(self, engine):
        seed(engine, live(1, None, "B", "10:00"), live(2, "A", "B", "10:00"))
        assert [s.seq for s in run(engine, repository.fetch_snapshots, DAY_START, DAY_END)] == [2]

    def test_metric_columns_mapped(self, engine):
        seed(engine, live(1, "A", "B", "55:40", home_score="1", away_exp="0.84", home_shoot_in="3"))
        [snapshot] = run(engine, repository.fetch_snapshots, DAY_START, DAY_END)
        assert snapshot.times == "55:40"
        assert snapshot.data_category == J1
        assert snapshot.metrics["home_score"] == "1"
        assert snapshot.metrics["away_exp"] == "0.84"
        assert snapshot.metrics["home_shoot_in"] == "3"
        assert set(snapshot.metrics) == set(repository.SNAPSHOT_METRIC_FIELDS)

    def test_prefix_scope(self, engine):
        seed(
            engine,
            live(1, "A", "B", "10:00", category="日本: J1 リーグ - ラウンド 30"),
            live(2, "C", "D", "10:00", category="日本: J2 リーグ - ラウンド 30"),
        )
        prefix = repository.category_prefix("日本", "J1 リーグ")
        assert [s.seq for s in run(engine, repository.fetch_snapshots, DAY_START, DAY_END, prefix)] == [1]

    @pytest.mark.parametrize("country,matching,other", [
        ("a_b", "a_b: c - Round 1", "axb: c - Round 1"),
        ("100%", "100%: c - Round 1", "1000: c - Round 1"),
    ])
    def test_like_wildcards_in_prefix_are_literal(self, engine, country, matching, other):
        seed(engine, live(1, "A", "B", "10:00", category=matching), live(2, "C", "D", "10:00", category=other))
        prefix = repository.category_prefix(country, "c")
        assert [s.seq for s in run(engine, repository.fetch_snapshots, DAY_START, DAY_END, prefix)] == [1]


class TestFetchFixtures:
    def test_start_flags(self, engine):
        seed(
            engine,
            future(1, "A", "B", NOON, "0"),
            future(2, "C", "D", NOON, "1"),
            future(3, "E", "F", NOON, "2"),
        )
        assert [f.seq for f in run(engine, repository.fetch_fixtures)] == [1, 2]
        assert [f.seq for f in run(engine, repository.fetch_fixtures, start_flags=("0",))] == [1]

    def test_columns_mapped(self, engine):
        seed(engine, future(7, "FC東京", "鹿島アントラーズ", NOON, "1", link="  "))
        [fixture] = run(engine, repository.fetch_fixtures)
        assert fixture.category_label == J1
        assert fixture.scheduled_at.replace(tzinfo=None) == datetime(2026, 10, 18, 3, 0)
        assert fixture.home_team_name == "FC東京"
        assert fixture.link is None
        assert fixture.start_flag == "1"

    def test_prefix_scope(self, engine):
        seed(
            engine,
            future(1, "A", "B", NOON, "1"),
            future(2, "C", "D", NOON, "1", category="日本: J2 リーグ - ラウンド 30"),
        )
        prefix = repository.category_prefix("日本", "J1 リーグ")
        assert [f.seq for f in run(engine, repository.fetch_fixtures, prefix)] == [1]


class TestFetchCorrelationRows:
    def test_competition_and_buckets(self, engine):
        seed(
            engine,
            rankings=[
                ranking(1, "1st", "FC東京", "鹿島アントラーズ", ["home_exp,0.7"]),
                ranking(2, "0-1", "FC東京", "鹿島アントラーズ", ["home_exp,0.9"]),
                ranking(3, "ALL", "FC東京", "鹿島アントラーズ", ["away_foul,0.2"]),
                ranking(4, "1st", "Leeds", "Hull", ["home_exp,0.1"], country="England", league="Championship"),
            ],
        )
        rows = run(engine, repository.fetch_correlation_rows, "日本", "J1 リーグ")
        assert [r["id"] for r in rows] == [1, 3]
        assert slot_column(RANKING_SLOT_COUNT) in rows[0]

    def test_last_generated_column_round_trips(self, engine):
        entries = [None] * (RANKING_SLOT_COUNT - 1) + ["home_corner,0.33"]
        seed(engine, rankings=[ranking(1, "2nd", "FC東京", "鹿島アントラーズ", entries)])
        rows = run(engine, repository.fetch_correlation_rows, "日本", "J1 リーグ")
        view = build_correlation_view(rows, "FC東京")
        assert view["HOME"]["2nd"] == [{"metric": "home_corner", "value": 0.33}]


@pytest.fixture
def client(engine):
    sessions = async_sessionmaker(engine, expire_on_commit=False)

    async def session_from_test_db():
        async with sessions() as session:
            yield session

    app = FastAPI()
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.include_router(api_router)
    app.dependency_overrides[get_async_session] = session_from_test_db

    limiter.reset()
    return TestClient(app)


class TestEndpointsAgainstStorage:
    """Rows recorded now, so they fall inside the live reporting day."""

    @pytest.fixture(autouse=True)
    def rows(self, engine):
        now = datetime.now(timezone.utc)
        seed(
            engine,
            live(1, "FC東京", "鹿島アントラーズ", "62:10", recorded=now, home_score="1", away_score="0"),
            live(2, "ガンバ大阪", "セレッソ大阪", "終了済", recorded=now),
            live(3, "ガンバ大阪", "セレッソ大阪", "90:00", recorded=now),
            future(10, "FC東京", "鹿島アントラーズ", now, "0"),
            future(11, "ガンバ大阪", "セレッソ大阪", now, "0"),
            future(12, "セレッソ大阪", "ガンバ大阪", now + timedelta(days=200), "1",
                   category="日本: J1 リーグ - ラウンド 38"),
            rankings=[ranking(1, "1st", "FC東京", "鹿島アントラーズ", ["home_exp,0.7", "away_corner,0.4"])],
        )

    def test_live_matches(self, client):
        r = client.get("/api/live-matches", params={"country": "日本", "league": "J1 リーグ"})
        assert r.status_code == 200
        assert [(m["seq"], m["display"], m["homeScore"]) for m in r.json()] == [(1, "62'", 1)]

    def test_team_games(self, client):
        r = client.get("/api/games/日本/J1 リーグ/セレッソ大阪")
        assert r.status_code == 200
        assert r.json()["live"] == []
        assert [g["seq"] for g in r.json()["finished"]] == [11]

    def test_future_keeps_return_fixture_scheduled(self, client):
        r = client.get("/api/future")
        assert r.status_code == 200
        phases = {m["seq"]: m["phase"] for m in r.json()["matches"]}
        assert phases == {10: "LIVE", 11: "FINISHED", 12: "SCHEDULED"}

    def test_correlations(self, client):
        r = client.get("/api/correlations/日本/J1 リーグ/FC東京", params={"strict": "true"})
        assert r.status_code == 200
        assert r.json()["correlations"]["HOME"]["1st"] == [{"metric": "home_exp", "value": 0.7}]
