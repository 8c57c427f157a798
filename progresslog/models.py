from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .utils import clamp_score, coerce_str_list, time_of_day, unique_ordered

if TYPE_CHECKING:
    from .storage import AnalysisLog

DEFAULT_SCORE = 50
DEFAULT_ACTIVITY = "General Work"
DEFAULT_WORK_PATTERN = "Analysis in progress"
TIMES_OF_DAY = ("morning", "afternoon", "evening")


class TriggerReason(str, Enum):
    PERIODIC = "periodic"
    CLICK = "click"
    KEYSTROKES = "keystrokes"
    FOCUS_RETURN = "focus_return"
    FOCUS_LEAVE = "focus_leave"
    TAB_HIDDEN = "tab_hidden"
    TAB_VISIBLE = "tab_visible"


@dataclass
class Analysis:
    productivity_score: int = DEFAULT_SCORE
    activity: str = DEFAULT_ACTIVITY
    insights: List[str] = field(default_factory=list)
    focus_level: int = DEFAULT_SCORE
    distractions: List[str] = field(default_factory=list)
    goal_alignment: int = DEFAULT_SCORE
    recommendations: List[str] = field(default_factory=list)
    applications: List[str] = field(default_factory=list)
    time_of_day: str = "morning"
    work_pattern: str = DEFAULT_WORK_PATTERN

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], now: datetime) -> "Analysis":
        """Build an Analysis from the analyzer's camelCase JSON.

        Scores are clamped to [0, 100]; anything missing or malformed falls
        back to its default so every field is always populated.
        """
        activity = payload.get("activity")
        if not isinstance(activity, str) or not activity.strip():
            activity = DEFAULT_ACTIVITY

        period = payload.get("timeOfDay")
        period = period.strip().lower() if isinstance(period, str) else ""
        if period not in TIMES_OF_DAY:
            period = time_of_day(now.hour)

        pattern = payload.get("workPattern")
        if not isinstance(pattern, str) or not pattern.strip():
            pattern = DEFAULT_WORK_PATTERN

        return cls(
            productivity_score=clamp_score(payload.get("productivityScore"), DEFAULT_SCORE),
            activity=activity.strip(),
            insights=coerce_str_list(payload.get("insights")),
            focus_level=clamp_score(payload.get("focusLevel"), DEFAULT_SCORE),
            distractions=unique_ordered(coerce_str_list(payload.get("distractions"))),
            goal_alignment=clamp_score(payload.get("goalAlignment"), DEFAULT_SCORE),
            recommendations=coerce_str_list(payload.get("recommendations")),
            applications=unique_ordered(coerce_str_list(payload.get("applications"))),
            time_of_day=period,
            work_pattern=pattern.strip(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productivityScore": self.productivity_score,
            "activity": self.activity,
            "insights": list(self.insights),
            "focusLevel": self.focus_level,
            "distractions": list(self.distractions),
            "goalAlignment": self.goal_alignment,
            "recommendations": list(self.recommendations),
            "applications": list(self.applications),
            "timeOfDay": self.time_of_day,
            "workPattern": self.work_pattern,
        }


@dataclass
class Capture:
    id: int
    captured_at: datetime
    image_data: bytes
    trigger: TriggerReason
    analyzed: bool = False
    analysis: Optional[Analysis] = None


@dataclass
class AnalysisLogEntry:
    timestamp: datetime
    trigger: TriggerReason
    productivity: int
    activity: str
    insights: List[str] = field(default_factory=list)
    analysis: Optional[Analysis] = None
    error: Optional[str] = None
    capture_id: Optional[int] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @classmethod
    def success(cls, capture: Capture, analysis: Analysis) -> "AnalysisLogEntry":
        return cls(
            timestamp=capture.captured_at,
            trigger=capture.trigger,
            productivity=analysis.productivity_score,
            activity=analysis.activity,
            insights=list(analysis.insights),
            analysis=analysis,
            capture_id=capture.id,
        )

    @classmethod
    def failure(
        cls,
        *,
        timestamp: datetime,
        trigger: TriggerReason,
        activity: str,
        message: str,
        error: str,
        capture_id: Optional[int] = None,
    ) -> "AnalysisLogEntry":
        return cls(
            timestamp=timestamp,
            trigger=trigger,
            productivity=0,
            activity=activity,
            insights=[message],
            error=error,
            capture_id=capture_id,
        )


@dataclass
class CaptureStats:
    clicks: int = 0
    keystrokes: int = 0
    window_changes: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"clicks": self.clicks, "keystrokes": self.keystrokes, "windowChanges": self.window_changes}


@dataclass(frozen=True)
class SessionSummary:
    efficiency: int
    focus_score: int
    goal_progress: int
    insights: List[str]
    recommendations: List[str]
    next_steps: List[str]
    activity_breakdown: Dict[str, int]
    session_summary: str
    capture_breakdown: Dict[str, int]


@dataclass(frozen=True)
class CumulativeProgress:
    today_progress: float = 0.0
    weekly_progress: float = 0.0
    goal_completion: int = 0
    efficiency: int = 0


@dataclass
class Session:
    id: str
    started_at: datetime
    goal: str
    analysis_log: "AnalysisLog"
    duration_seconds: int = 0
    captures: List[Capture] = field(default_factory=list)
    stats: CaptureStats = field(default_factory=CaptureStats)
    closed: bool = False
    summary: Optional[SessionSummary] = None
