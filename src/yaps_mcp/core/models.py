"""Pydantic data models shared by the services and the MCP tools.

Result models are frozen: a score is rebuilt on every upstream fetch
rather than mutated.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class QualitativeLabel(str, Enum):
    """Human-readable bucket derived from the percentile."""

    LEGENDARY = "Legendary"
    ELITE = "Elite"
    OUTSTANDING = "Outstanding"
    EXCELLENT = "Excellent"
    GOOD = "Good"
    AVERAGE = "Average"
    DEVELOPING = "Developing"


class UpstreamScore(BaseModel):
    """Raw body returned by the YAPS API."""

    model_config = ConfigDict(extra="ignore")

    user_id: str
    yaps_all: float = Field(ge=0.0)
    yaps_l24h: float = Field(ge=0.0)
    yaps_l7d: float = Field(ge=0.0)
    yaps_l30d: float = Field(ge=0.0)

    @field_validator("user_id", mode="before")
    @classmethod
    def _coerce_user_id(cls, v):
        # The API has returned both numeric and string ids.
        if isinstance(v, int):
            return str(v)
        return v


class Score(BaseModel):
    """YAPS score for one account, with the derived percentile bucket."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    username: str = Field(description="Canonical handle, without a leading '@'")
    yaps_all: float = Field(ge=0.0)
    yaps_l24h: float = Field(ge=0.0)
    yaps_l7d: float = Field(ge=0.0)
    yaps_l30d: float = Field(ge=0.0)
    percentile: int = Field(ge=0, le=99, description="Coarse bucket from a fixed threshold table")
    qualitative_label: QualitativeLabel


class ScoreSnapshot(BaseModel):
    """Reduced projection of a score used inside comparisons."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    username: str
    yaps_all: float
    yaps_l24h: float
    yaps_l30d: float

    @classmethod
    def from_score(cls, score: Score) -> "ScoreSnapshot":
        return cls(
            user_id=score.user_id,
            username=score.username,
            yaps_all=score.yaps_all,
            yaps_l24h=score.yaps_l24h,
            yaps_l30d=score.yaps_l30d,
        )


class ScoreDeltas(BaseModel):
    """Per-window differences, always user_a minus user_b."""

    model_config = ConfigDict(frozen=True)

    yaps_all: float
    yaps_l24h: float
    yaps_l30d: float

    def negated(self) -> "ScoreDeltas":
        return ScoreDeltas(yaps_all=-self.yaps_all, yaps_l24h=-self.yaps_l24h, yaps_l30d=-self.yaps_l30d)


class Comparison(BaseModel):
    """Head-to-head comparison of two accounts."""

    model_config = ConfigDict(frozen=True)

    user_a: ScoreSnapshot
    user_b: ScoreSnapshot
    deltas: ScoreDeltas
    summary: str = Field(description="Natural-language summary of who leads")


class LeaderboardEntry(BaseModel):
    """One ranked row of the 24h leaderboard."""

    model_config = ConfigDict(frozen=True)

    rank: int = Field(ge=1, description="1-based position after sorting")
    user_id: str
    username: str
    yaps_l24h: float
    yaps_all: float


class RateLimitUsage(BaseModel):
    """Requests issued in the current rate-limit window."""

    current: int = 0
    max: int = 0
    window_minutes: int = 0
