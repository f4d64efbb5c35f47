"""Database models using SQLModel.

Read-only views of the tables the reconciliation core reads. Rows are
written by the external ingestion process; only the columns used here are
mapped.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, Integer, String, Table
from sqlmodel import Field, SQLModel

from matchstate.ranking.correlations import RANKING_SLOT_COUNT, slot_column


class LiveData(SQLModel, table=True):
    """Telemetry snapshot of a match in progress (one row per poll)."""

    __tablename__ = "data"

    seq: int = Field(primary_key=True, description="Monotonic snapshot sequence")
    data_category: Optional[str] = Field(
        default=None, index=True, description="'<country>: <league> - <round>'"
    )
    times: Optional[str] = Field(
        default=None, description="Free-text elapsed time: '68:09', '45+2'', '終了済'"
    )
    home_team_name: Optional[str] = Field(default=None)
    away_team_name: Optional[str] = Field(default=None)

    # Packed metrics, stored as text upstream
    home_score: Optional[str] = Field(default=None)
    away_score: Optional[str] = Field(default=None)
    home_exp: Optional[str] = Field(default=None, description="Expected goals")
    away_exp: Optional[str] = Field(default=None, description="Expected goals")
    home_shoot_in: Optional[str] = Field(default=None, description="Shots on target")
    away_shoot_in: Optional[str] = Field(default=None, description="Shots on target")
    goal_time: Optional[str] = Field(default=None)

    # UTC; naive values from the ingestion side are read as UTC
    record_time: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), index=True), description="Poll time"
    )
    update_time: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True)))


class FutureMaster(SQLModel, table=True):
    """Fixture catalog entry."""

    __tablename__ = "future_master"

    seq: int = Field(primary_key=True)
    game_team_category: str = Field(description="'<country>: <league> - ... - Round 12'")
    future_time: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True)), description="Kickoff (UTC)"
    )
    home_team_name: str
    away_team_name: str
    game_link: Optional[str] = Field(default=None)
    start_flg: str = Field(max_length=1, default="1", description="'0' in progress, '1' scheduled")


# rank_1th .. rank_74th are generated, so the table is declared directly
correlation_ranking = Table(
    "calc_correlation_ranking",
    SQLModel.metadata,
    Column("id", Integer, primary_key=True),
    Column("country", String, index=True),
    Column("league", String, index=True),
    Column("home", String),
    Column("away", String),
    Column("score", String, comment="'1st', '2nd' or 'ALL'"),
    *[Column(slot_column(i), String) for i in range(1, RANKING_SLOT_COUNT + 1)],
)
