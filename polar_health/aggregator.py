"""
Builds the health snapshot: both AccessLink collections, normalized, plus insights.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .accesslink import AccessLinkClient
from .schemas import (
    ActivityRecord,
    ExerciseRecord,
    HealthSnapshot,
    HeartRate,
    Insight,
    SnapshotSummary,
)
from .stores import Clock, utcnow

logger = logging.getLogger(__name__)

RECENT_WORKOUT_HOURS = 4
DAILY_STEP_GOAL = 10000

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a Polar date or datetime string. Naive values are taken as UTC."""
    if not isinstance(value, str) or not value.strip():
        return None
    normalized = value.strip().replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _validate_leniently(model: Type[ModelT], values: Dict[str, Any]) -> ModelT:
    """Build a record from wire-named values, nulling any field Polar sent malformed."""
    try:
        return model.model_validate(values)
    except ValidationError as exc:
        bad = {err["loc"][0] for err in exc.errors() if err["loc"]}
        logger.warning(f"Ignoring malformed {model.__name__} fields from Polar: {sorted(map(str, bad))}")
        return model.model_validate({k: v for k, v in values.items() if k not in bad})


def normalize_activity(raw: Mapping[str, Any]) -> ActivityRecord:
    return _validate_leniently(ActivityRecord, {
        "date": raw.get("date"),
        "calories": raw.get("active-calories"),
        "steps": raw.get("steps"),
        "distance": raw.get("distance"),
        "duration": raw.get("active-time"),
    })


def normalize_exercise(raw: Mapping[str, Any]) -> ExerciseRecord:
    heart_rate = raw.get("heart-rate")
    if not isinstance(heart_rate, Mapping):
        heart_rate = {}
    return _validate_leniently(ExerciseRecord, {
        "id": raw.get("id"),
        "startTime": raw.get("start-time"),
        "sport": raw.get("sport"),
        "duration": raw.get("duration"),
        "calories": raw.get("calories"),
        "heartRate": _validate_leniently(HeartRate, {
            "average": heart_rate.get("average"),
            "maximum": heart_rate.get("maximum"),
        }),
        "trainingLoad": raw.get("training-load"),
    })


def _chronological(records: Sequence[Any], field: str) -> List[Any]:
    # Stable sort; records without a usable timestamp go first
    return sorted(records, key=lambda r: parse_timestamp(getattr(r, field)) or _EARLIEST)


def generate_insights(
    activities: Sequence[ActivityRecord],
    exercises: Sequence[ExerciseRecord],
    now: datetime,
) -> List[Insight]:
    """Derive insight messages. Both lists must already be in chronological order."""
    insights = []

    if exercises:
        latest_exercise = exercises[-1]
        started = parse_timestamp(latest_exercise.start_time)
        if started is not None:
            hours_ago = (now - started).total_seconds() / 3600
            if 0 <= hours_ago < RECENT_WORKOUT_HOURS:
                insights.append(Insight(
                    type="recent_workout",
                    message=(
                        f"Great {latest_exercise.sport} workout {int(hours_ago + 0.5)} hours ago! "
                        f"You burned {latest_exercise.calories} calories."
                    ),
                    data=latest_exercise.model_dump(by_alias=True),
                ))

    if activities:
        latest_activity = activities[-1]
        if latest_activity.steps is not None and latest_activity.steps > DAILY_STEP_GOAL:
            insights.append(Insight(
                type="step_goal",
                message=f"Awesome! You've hit {latest_activity.steps} steps today! 🎯",
                data=latest_activity.model_dump(by_alias=True),
            ))

    return insights


class HealthAggregator:
    def __init__(self, accesslink: AccessLinkClient, clock: Clock = utcnow):
        self.accesslink = accesslink
        self._clock = clock

    async def build_snapshot(self, user_id: str) -> HealthSnapshot:
        logger.info(f"Fetching all health data for user {user_id}")

        raw_activities, raw_exercises = await asyncio.gather(
            self.accesslink.fetch_collection("activity", user_id),
            self.accesslink.fetch_collection("exercise", user_id),
        )

        activities = _chronological([normalize_activity(a) for a in raw_activities], "date")
        exercises = _chronological([normalize_exercise(e) for e in raw_exercises], "start_time")
        now = self._clock()

        snapshot = HealthSnapshot(
            user_id=user_id,
            timestamp=now,
            summary=SnapshotSummary(
                total_activities=len(activities),
                total_exercises=len(exercises),
            ),
            activities=activities,
            exercises=exercises,
            insights=generate_insights(activities, exercises, now),
        )
        logger.info(
            f"Snapshot for {user_id}: {len(activities)} activities, "
            f"{len(exercises)} exercises, {len(snapshot.insights)} insights"
        )
        return snapshot
