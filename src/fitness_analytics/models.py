"""Inbound record models supplied by the data collaborators.

The engine never mutates these; they are validated once at the boundary and
read from there on.
"""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class OrderedEnum(str, Enum):
    """String enum whose declaration order is meaningful."""

    @classmethod
    def ordered(cls) -> list:
        return list(cls)

    @property
    def rank(self) -> int:
        return type(self).ordered().index(self)

    def step(self, delta: int):
        """Move ``delta`` positions along the scale, saturating at either end."""
        members = type(self).ordered()
        position = max(0, min(len(members) - 1, self.rank + delta))
        return members[position]

    def step_up(self):
        return self.step(1)

    def step_down(self):
        return self.step(-1)


class Difficulty(OrderedEnum):
    """Workout difficulty scale, easiest first."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"
    MASTER = "master"


class FitnessLevel(OrderedEnum):
    """Self-reported athlete level."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"
    MASTER = "master"


class WorkoutIntensity(OrderedEnum):
    """Session intensity, numeric level 1 (low) to 4 (extreme)."""
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    EXTREME = "extreme"

    @property
    def level(self) -> int:
        return self.rank + 1


class FitnessGoal(str, Enum):
    """Training goals a user can hold."""
    WEIGHT_LOSS = "weight_loss"
    MUSCLE_GAIN = "muscle_gain"
    ENDURANCE = "endurance"
    STRENGTH = "strength"
    FLEXIBILITY = "flexibility"


class UserProfile(BaseModel):
    """Profile attributes the predictions personalize on."""

    model_config = ConfigDict(frozen=True)

    fitness_level: FitnessLevel = FitnessLevel.INTERMEDIATE
    goals: List[FitnessGoal] = Field(default_factory=list)
    body_weight_kg: float = Field(default=70.0, gt=0)


class User(BaseModel):
    """A user record from the user store."""

    model_config = ConfigDict(frozen=True)

    id: str
    profile: UserProfile = Field(default_factory=UserProfile)


class HeartRateStats(BaseModel):
    """Heart rate summary for one workout (bpm)."""

    model_config = ConfigDict(frozen=True)

    average: Optional[float] = None
    maximum: Optional[float] = None
    resting: Optional[float] = None


class Workout(BaseModel):
    """A completed (or planned) workout from the workout history store."""

    model_config = ConfigDict(frozen=True)

    id: str
    date: datetime
    duration_sec: float = Field(ge=0)
    calories: float = Field(default=0.0, ge=0)
    intensity: WorkoutIntensity = WorkoutIntensity.MODERATE
    form_score: Optional[float] = Field(default=None, ge=0, le=1)
    heart_rate: Optional[HeartRateStats] = None
    difficulty: Difficulty = Difficulty.INTERMEDIATE
    workout_type: str = "general"
    exercises: List[str] = Field(default_factory=list)

    @property
    def duration_minutes(self) -> float:
        return self.duration_sec / 60.0

    def includes_exercise(self, exercise: str) -> bool:
        name = exercise.lower()
        return self.workout_type.lower() == name or any(e.lower() == name for e in self.exercises)


class HealthSnapshot(BaseModel):
    """One day of wearable/health measurements.

    Scales: stress and energy are 0-100, sleep quality 0-1, bedtime is the
    hour of day (values past midnight may exceed 24, e.g. 24.5 = 00:30).
    """

    model_config = ConfigDict(frozen=True)

    date: date
    sleep_hours: Optional[float] = None
    stress_level: Optional[float] = None
    energy_level: Optional[float] = None
    hrv: Optional[float] = None
    resting_hr: Optional[float] = None
    sleep_quality: Optional[float] = None
    bedtime_hour: Optional[float] = None
    protein_g: Optional[float] = None
    hydration_l: Optional[float] = None


class ProgressOverview(BaseModel):
    """Aggregate progress figures from the progress collaborator."""

    model_config = ConfigDict(frozen=True)

    consistency_score: float = 0.0
    average_form_score: Optional[float] = None
    total_workouts: int = 0
    total_duration_sec: float = 0.0
    total_calories: float = 0.0


class GoalTarget(BaseModel):
    """A measurable goal: drive ``metric`` to ``target_value``."""

    model_config = ConfigDict(frozen=True)

    goal_id: str
    metric: str
    target_value: float
    deadline: Optional[date] = None
