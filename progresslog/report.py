from __future__ import annotations

from typing import Any, Dict, List

from .models import CumulativeProgress, Session


def format_duration(seconds: int) -> str:
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins:02d}:{secs:02d}"


def render_markdown(session: Session, progress: CumulativeProgress) -> str:
    started = session.started_at.strftime("%Y/%m/%d %H:%M")
    lines: List[str] = [f"# Session report {started}", ""]
    lines.append(f"- Goal: **{session.goal}**")
    lines.append(f"- Duration: {format_duration(session.duration_seconds)}")
    lines.append(f"- Captures: {len(session.captures)}")
    lines.append(f"- Analyses: {len(session.analysis_log)} ({len(session.analysis_log.valid())} successful)")
    lines.append(
        f"- Triggers: clicks={session.stats.clicks}, keystrokes={session.stats.keystrokes}, "
        f"window changes={session.stats.window_changes}"
    )

    summary = session.summary
    if summary is None:
        lines.append("\n_No successful analysis in this session; no summary produced._")
    else:
        lines.append(f"\n## Summary\n\n{summary.session_summary}\n")
        lines.append("| Metric | Score |")
        lines.append("| --- | ---: |")
        lines.append(f"| Efficiency | {summary.efficiency}% |")
        lines.append(f"| Focus | {summary.focus_score}% |")
        lines.append(f"| Goal progress | {summary.goal_progress}% |")

        lines.append("\n## Activities\n")
        for activity, count in sorted(summary.activity_breakdown.items(), key=lambda item: item[1], reverse=True):
            lines.append(f"- {activity}: {count}")

        for title, items in (
            ("Insights", summary.insights),
            ("Recommendations", summary.recommendations),
            ("Next steps", summary.next_steps),
        ):
            if items:
                lines.append(f"\n## {title}\n")
                lines.extend(f"- {item}" for item in items)

    lines.append("\n## Analysis feed\n")
    lines.append("| Time | Trigger | Activity | Productivity |")
    lines.append("| --- | --- | --- | ---: |")
    for entry in session.analysis_log:
        lines.append(
            f"| {entry.timestamp.strftime('%H:%M:%S')} | {entry.trigger.value} | {entry.activity} | {entry.productivity}% |"
        )
    if not len(session.analysis_log):
        lines.append("| - | - | (no data) | 0% |")

    lines.append("\n## Progress\n")
    lines.append(f"- Today: {progress.today_progress:.0f}%")
    lines.append(f"- This week: {progress.weekly_progress:.0f}%")
    lines.append(f"- Goal completion: {progress.goal_completion}%")
    lines.append(f"- Efficiency: {progress.efficiency}%")
    return "\n".join(lines)


def to_dict(session: Session, progress: CumulativeProgress) -> Dict[str, Any]:
    summary = session.summary
    return {
        "id": session.id,
        "started_at": session.started_at.isoformat(),
        "goal": session.goal,
        "duration_seconds": session.duration_seconds,
        "captures": len(session.captures),
        "capture_stats": session.stats.to_dict(),
        "analysis_log": [
            {
                "timestamp": entry.timestamp.isoformat(),
                "trigger": entry.trigger.value,
                "productivity": entry.productivity,
                "activity": entry.activity,
                "insights": entry.insights,
                "analysis": entry.analysis.to_dict() if entry.analysis else None,
                "error": entry.error,
            }
            for entry in session.analysis_log
        ],
        "summary": None
        if summary is None
        else {
            "efficiency": summary.efficiency,
            "focusScore": summary.focus_score,
            "goalProgress": summary.goal_progress,
            "insights": summary.insights,
            "recommendations": summary.recommendations,
            "nextSteps": summary.next_steps,
            "activityBreakdown": summary.activity_breakdown,
            "sessionSummary": summary.session_summary,
            "captureBreakdown": summary.capture_breakdown,
        },
        "progress": {
            "todayProgress": progress.today_progress,
            "weeklyProgress": progress.weekly_progress,
            "goalCompletion": progress.goal_completion,
            "efficiency": progress.efficiency,
        },
    }
