"""Coaching summary over a season of competitions."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence

from pacecoach.shared.constants import TrendImpact
from pacecoach.shared.statistics import clean_time, median

from .models import CompetitionData, DrillData


MIN_COMPETITIONS = 3
RECENT_COMPETITIONS = 3
TOP_TAXONOMY_COUNT = 3
HIGH_PENALTY_RATE = 0.3


@dataclass(frozen=True)
class DrillRecommendation:
    """A drill suggested for the most common infractions."""

    drill_id: str
    drill_name: str
    reason: str

    def to_dict(self) -> dict:
        return {"drill_id": self.drill_id, "drill_name": self.drill_name, "reason": self.reason}


@dataclass
class CoachingSummary:
    """Narrative summary with findings and drill suggestions."""

    narrative: str
    confidence: str  # "high" | "medium" | "low"
    trend: TrendImpact = TrendImpact.STABLE
    key_findings: list[str] = field(default_factory=list)
    recommended_drills: list[DrillRecommendation] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "narrative": self.narrative,
            "confidence": self.confidence,
            "trend": self.trend.value,
            "key_findings": list(self.key_findings),
            "recommended_drills": [d.to_dict() for d in self.recommended_drills],
        }


def _clean_times(competitions: Sequence[CompetitionData]) -> list[float]:
    return [
        clean_time(rr.total_time_seconds, rr.penalty_seconds)
        for comp in competitions
        for rr in comp.run_results
    ]


def _trend(recent_median: float, older_median: float, has_older: bool) -> TrendImpact:
    if not has_older or recent_median == older_median:
        return TrendImpact.STABLE
    if recent_median < older_median:
        return TrendImpact.IMPROVING
    return TrendImpact.DETERIORATING


def build_coaching_summary(
    competitions: Sequence[CompetitionData],
    drills: Sequence[DrillData] = (),
) -> CoachingSummary:
    """
    Summarize performance direction and recurring penalties.

    Args:
        competitions: Competitions ordered by date, oldest first
        drills: Drill catalog to recommend from

    Returns:
        CoachingSummary; a low-confidence placeholder when fewer than three
        competitions are available
    """
    if len(competitions) < MIN_COMPETITIONS:
        return CoachingSummary(
            narrative="Insufficient data for coaching insights. Need at least 3 competitions.",
            confidence="low",
        )

    runs = [rr for comp in competitions for rr in comp.run_results]
    recent = competitions[-RECENT_COMPETITIONS:]
    older = competitions[:-RECENT_COMPETITIONS]

    recent_median = median(_clean_times(recent))
    older_median = median(_clean_times(older))
    trend = _trend(recent_median, older_median, has_older=bool(older))

    total_penalties = sum(rr.penalty_seconds for rr in runs)
    penalty_rate = sum(1 for rr in runs if rr.penalty_seconds > 0) / len(runs) if runs else 0

    # Counter.most_common keeps first-seen order for equal counts
    taxonomy_counts = Counter(p.taxonomy_code for rr in runs for p in rr.penalties)
    top_taxonomy = [code for code, _ in taxonomy_counts.most_common(TOP_TAXONOMY_COUNT)]

    if trend == TrendImpact.STABLE and not older:
        direction = "with no earlier competitions to compare"
    elif trend == TrendImpact.STABLE:
        direction = f"unchanged from {older_median:.1f}s"
    elif trend == TrendImpact.IMPROVING:
        direction = f"down from {older_median:.1f}s"
    else:
        direction = f"up from {older_median:.1f}s"

    narrative = (
        f"Performance is {trend.value}. Recent median clean time is {recent_median:.1f}s "
        f"({direction}). Penalty rate is {penalty_rate * 100:.0f}% with "
        f"{total_penalties:.1f}s total penalty time."
    )

    key_findings = []
    if penalty_rate > HIGH_PENALTY_RATE:
        key_findings.append("High penalty rate indicates procedural issues")
    if top_taxonomy:
        key_findings.append(f"Most common issues: {', '.join(top_taxonomy)}")

    recommended = []
    for drill in drills:
        matched = [code for code in top_taxonomy if code in drill.linked_taxonomy_codes]
        if matched:
            recommended.append(DrillRecommendation(
                drill_id=drill.id,
                drill_name=drill.name,
                reason=f"Addresses {', '.join(matched)}",
            ))

    confidence = "high" if len(competitions) >= 5 and len(runs) >= 15 else "medium"

    return CoachingSummary(
        narrative=narrative,
        confidence=confidence,
        trend=trend,
        key_findings=key_findings,
        recommended_drills=recommended,
    )
