from __future__ import annotations

from collections import Counter
from typing import List, Optional

from .config import ProgressSettings
from .models import DEFAULT_SCORE, CumulativeProgress, Session, SessionSummary
from .utils import round_half_up, unique_ordered

MAX_LISTED = 5


def generate_next_steps(goal: str, productivity: float) -> List[str]:
    steps: List[str] = []

    if productivity > 80:
        steps.append("Maintain current high productivity momentum")
        steps.append("Consider documenting successful work patterns")
    elif productivity > 60:
        steps.append("Identify peak productivity periods for important tasks")
        steps.append("Minimize context switching during focused work")
    else:
        steps.append("Review and eliminate key productivity blockers")
        steps.append("Consider shorter, more focused work sessions")

    lowered = (goal or "").lower()
    if "documentation" in lowered:
        steps.append("Continue systematic documentation approach")
    elif "code" in lowered:
        steps.append("Plan next development milestones")

    return steps


class SessionAggregator:
    """Reduces a closed session's analysis log into a SessionSummary."""

    def __init__(self, settings: ProgressSettings, log):
        self._settings = settings
        self._logger = log

    def summarize(self, session: Session) -> Optional[SessionSummary]:
        valid = session.analysis_log.valid()
        if not valid:
            self._logger.info(
                "Session %s has no successful analyses (%s attempts); skipping summary",
                session.id,
                len(session.analysis_log),
            )
            return None

        count = len(valid)
        mean_productivity = sum(entry.productivity for entry in valid) / count
        mean_focus = sum(entry.analysis.focus_level if entry.analysis else DEFAULT_SCORE for entry in valid) / count
        mean_alignment = (
            sum(entry.analysis.goal_alignment if entry.analysis else DEFAULT_SCORE for entry in valid) / count
        )

        breakdown = Counter(entry.activity for entry in valid)
        insights = unique_ordered(insight for entry in valid for insight in entry.insights)
        recommendations = unique_ordered(
            rec for entry in valid if entry.analysis for rec in entry.analysis.recommendations
        )

        efficiency = round_half_up(mean_productivity)
        return SessionSummary(
            efficiency=efficiency,
            focus_score=round_half_up(mean_focus),
            goal_progress=round_half_up(mean_alignment),
            insights=insights[:MAX_LISTED],
            recommendations=recommendations[:MAX_LISTED],
            next_steps=generate_next_steps(session.goal, mean_productivity),
            activity_breakdown=dict(breakdown),
            session_summary=f"Analyzed {count} AI insights with {efficiency}% average productivity",
            capture_breakdown=session.stats.to_dict(),
        )

    def fold(self, progress: CumulativeProgress, summary: SessionSummary, duration_seconds: int) -> CumulativeProgress:
        today = progress.today_progress + duration_seconds / self._settings.daily_target_seconds * 100
        weekly = progress.weekly_progress + duration_seconds / self._settings.weekly_target_seconds * 100
        return CumulativeProgress(
            today_progress=min(today, 100.0),
            weekly_progress=min(weekly, 100.0),
            goal_completion=summary.goal_progress,
            efficiency=summary.efficiency,
        )
