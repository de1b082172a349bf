from __future__ import annotations

from dataclasses import dataclass, field

TIME_TRACKING = "time-tracking"
CHECKBOX = "checkbox"
ACTIVITY_TYPES = (TIME_TRACKING, CHECKBOX)
PERIODS = ("daily", "weekly", "monthly")


@dataclass(frozen=True, slots=True)
class Activity:
    id: str
    name: str
    category: str
    color: str
    type: str
    is_active: bool = True
    description: str | None = None
    created_at: str | None = None
    # Checkbox activities only.
    reset_period: str | None = None
    # Time-tracking activities only.
    goal_type: str | None = None
    target_minutes: int | None = None
    goal_is_active: bool | None = None

    @property
    def has_daily_goal(self) -> bool:
        return bool(self.goal_is_active) and bool(self.target_minutes) and self.goal_type == "daily"


@dataclass(frozen=True, slots=True)
class ActivitySession:
    id: str
    activity_id: str
    start_time: str
    date: str
    is_running: bool = False
    end_time: str | None = None
    duration: int | None = None
    notes: str | None = None


@dataclass(frozen=True, slots=True)
class DailyCheckbox:
    id: str
    activity_id: str
    date: str
    is_checked: bool
    notes: str | None = None


@dataclass(frozen=True, slots=True)
class Goal:
    """Standalone goal record kept by older databases and data exports."""

    id: str
    activity_id: str
    type: str
    target_minutes: int
    start_date: str
    end_date: str | None = None
    is_active: bool = True
    created_at: str | None = None


@dataclass(frozen=True, slots=True)
class DailyProgress:
    date: str
    total_minutes: int


@dataclass(frozen=True, slots=True)
class ActivityBreakdown:
    activity_id: str
    activity_name: str
    total_minutes: int
    percentage: int


@dataclass(frozen=True, slots=True)
class Statistics:
    total_time_today: int = 0
    total_time_week: int = 0
    total_time_month: int = 0
    streak_days: int = 0
    completed_goals_today: int = 0
    daily_progress: tuple[DailyProgress, ...] = field(default_factory=tuple)
    activity_breakdown: tuple[ActivityBreakdown, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "totalTimeToday": self.total_time_today,
            "totalTimeWeek": self.total_time_week,
            "totalTimeMonth": self.total_time_month,
            "streakDays": self.streak_days,
            "completedGoalsToday": self.completed_goals_today,
            "dailyProgress": [
                {"date": item.date, "totalMinutes": item.total_minutes} for item in self.daily_progress
            ],
            "activityBreakdown": [
                {
                    "activityId": item.activity_id,
                    "activityName": item.activity_name,
                    "totalMinutes": item.total_minutes,
                    "percentage": item.percentage,
                }
                for item in self.activity_breakdown
            ],
        }
