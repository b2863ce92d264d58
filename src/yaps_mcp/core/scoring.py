"""Percentile buckets, comparison summaries and leaderboard ranking.

None of this is statistics. The percentile is a fixed step function over the
30-day score and exists to give the model a coarse, stable vocabulary
("Elite", "Developing") rather than a true rank against the population.
"""

from __future__ import annotations

from typing import Iterable

from .models import (
    Comparison,
    LeaderboardEntry,
    QualitativeLabel,
    Score,
    ScoreDeltas,
    ScoreSnapshot,
)

LEADERBOARD_SIZE = 10

# (exclusive lower bound on yaps_l30d, percentile), checked top-down
PERCENTILE_THRESHOLDS: list[tuple[float, int]] = [
    (1000, 99),
    (500, 95),
    (250, 90),
    (100, 75),
    (50, 50),
    (25, 25),
]
DEFAULT_PERCENTILE = 10

# (inclusive lower bound on percentile, label), checked top-down
LABEL_THRESHOLDS: list[tuple[int, QualitativeLabel]] = [
    (99, QualitativeLabel.LEGENDARY),
    (95, QualitativeLabel.ELITE),
    (90, QualitativeLabel.OUTSTANDING),
    (75, QualitativeLabel.EXCELLENT),
    (50, QualitativeLabel.GOOD),
    (25, QualitativeLabel.AVERAGE),
]


def normalize_username(handle: str) -> str:
    """Strip a single leading '@' from a handle."""
    return handle[1:] if handle.startswith("@") else handle


def compute_percentile(yaps_l30d: float) -> int:
    """Map a 30-day YAPS score onto the fixed percentile table (strict '>')."""
    for bound, percentile in PERCENTILE_THRESHOLDS:
        if yaps_l30d > bound:
            return percentile
    return DEFAULT_PERCENTILE


def qualitative_label(percentile: int) -> QualitativeLabel:
    for bound, label in LABEL_THRESHOLDS:
        if percentile >= bound:
            return label
    return QualitativeLabel.DEVELOPING


def summarize_score(score: Score) -> str:
    """One-line description of a score for the tool output."""
    return (
        f"@{score.username} has a YAPS score of {score.yaps_l30d:.1f} over the last 30 days, "
        f"placing them in the {score.percentile}th percentile ({score.qualitative_label.value})."
    )


def compute_deltas(a: ScoreSnapshot, b: ScoreSnapshot) -> ScoreDeltas:
    return ScoreDeltas(
        yaps_all=a.yaps_all - b.yaps_all,
        yaps_l24h=a.yaps_l24h - b.yaps_l24h,
        yaps_l30d=a.yaps_l30d - b.yaps_l30d,
    )


def summarize_comparison(a: ScoreSnapshot, b: ScoreSnapshot, deltas: ScoreDeltas) -> str:
    """Describe who leads in the 24h and 30d windows.

    A window is credited to user A only on a strictly positive delta, so a
    dead heat reads as B leading.
    """
    leader_24h = a.username if deltas.yaps_l24h > 0 else b.username
    leader_30d = a.username if deltas.yaps_l30d > 0 else b.username
    abs_24h = abs(deltas.yaps_l24h)
    abs_30d = abs(deltas.yaps_l30d)

    if leader_24h == leader_30d:
        return (
            f"@{leader_24h} shows stronger engagement with {abs_24h:.1f} more YAPS in last 24h "
            f"and {abs_30d:.1f} more in last 30 days."
        )
    return (
        f"@{leader_24h} leads in recent activity ({abs_24h:.1f} more YAPS in 24h) "
        f"while @{leader_30d} has better long-term metrics ({abs_30d:.1f} more YAPS over 30 days)."
    )


def build_comparison(score_a: Score, score_b: Score) -> Comparison:
    a = ScoreSnapshot.from_score(score_a)
    b = ScoreSnapshot.from_score(score_b)
    deltas = compute_deltas(a, b)
    return Comparison(user_a=a, user_b=b, deltas=deltas, summary=summarize_comparison(a, b, deltas))


def swap_comparison(comparison: Comparison) -> Comparison:
    """Return the same comparison seen from the other side."""
    deltas = comparison.deltas.negated()
    return Comparison(
        user_a=comparison.user_b,
        user_b=comparison.user_a,
        deltas=deltas,
        summary=summarize_comparison(comparison.user_b, comparison.user_a, deltas),
    )


def rank_leaderboard(scores: Iterable[Score], size: int = LEADERBOARD_SIZE) -> list[LeaderboardEntry]:
    """Rank scores by 24h YAPS, highest first, keeping fetch order on ties."""
    ordered = sorted(scores, key=lambda s: s.yaps_l24h, reverse=True)
    return [
        LeaderboardEntry(
            rank=i + 1,
            user_id=s.user_id,
            username=s.username,
            yaps_l24h=s.yaps_l24h,
            yaps_all=s.yaps_all,
        )
        for i, s in enumerate(ordered[:size])
    ]


def format_leaderboard(entries: list[LeaderboardEntry]) -> str:
    if not entries:
        return "No data available for the leaderboard."
    lines = [f"{e.rank}. @{e.username}: {e.yaps_l24h:.1f} YAPS" for e in entries]
    return f"Top {len(entries)} YAPS accounts in the last 24 hours:\n\n" + "\n".join(lines)
