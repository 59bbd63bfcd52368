from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

Number = Union[int, float]


class ApiModel(BaseModel):
    # Python names internally, the camelCase wire names in responses
    model_config = ConfigDict(populate_by_name=True)


class ActivityRecord(ApiModel):
    date: Optional[str] = None
    active_calories: Optional[Number] = Field(None, alias="calories")
    steps: Optional[int] = None
    distance: Optional[Number] = None
    active_time: Optional[str] = Field(None, alias="duration")


class HeartRate(ApiModel):
    average: Optional[Number] = None
    maximum: Optional[Number] = None


class ExerciseRecord(ApiModel):
    id: Optional[Union[int, str]] = None
    start_time: Optional[str] = Field(None, alias="startTime")
    sport: Optional[str] = None
    duration: Optional[str] = None
    calories: Optional[Number] = None
    heart_rate: HeartRate = Field(default_factory=HeartRate, alias="heartRate")
    training_load: Optional[Number] = Field(None, alias="trainingLoad")

    @property
    def heart_rate_avg(self) -> Optional[Number]:
        return self.heart_rate.average

    @property
    def heart_rate_max(self) -> Optional[Number]:
        return self.heart_rate.maximum


class Insight(ApiModel):
    type: str
    message: str
    data: Dict[str, Any] = {}


class SnapshotSummary(ApiModel):
    total_activities: int = Field(alias="totalActivities")
    total_exercises: int = Field(alias="totalExercises")
    data_freshness: str = Field("real-time", alias="dataFreshness")


class HealthSnapshot(ApiModel):
    user_id: str = Field(alias="userId")
    timestamp: datetime
    summary: SnapshotSummary
    activities: List[ActivityRecord]
    exercises: List[ExerciseRecord]
    insights: List[Insight]


class CallbackResponse(ApiModel):
    success: bool
    message: str
    user_id: str = Field(alias="userId")
    next_step: str = Field(alias="nextStep")
