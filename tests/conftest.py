"""Shared fixtures: record factories and an engine wired to mock collaborators."""

from datetime import date, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from fitness_analytics.config import Settings
from fitness_analytics.engine import AnalyticsEngine
from fitness_analytics.models import (
    HealthSnapshot,
    HeartRateStats,
    User,
    UserProfile,
    Workout,
    WorkoutIntensity,
)


# Evaluation time used across engine tests: Thursday 30 May 2024, evening
NOW = datetime(2024, 5, 30, 20, 0)

INTENSITY_CYCLE = [
    WorkoutIntensity.LOW,
    WorkoutIntensity.MODERATE,
    WorkoutIntensity.HIGH,
    WorkoutIntensity.EXTREME,
]


def make_workout(
    workout_id: str = "w-1",
    when: datetime = datetime(2024, 5, 1, 7, 0),
    minutes: float = 45.0,
    calories: float = 360.0,
    intensity: WorkoutIntensity = WorkoutIntensity.MODERATE,
    form_score=0.8,
    **kwargs,
) -> Workout:
    return Workout(
        id=workout_id,
        date=when,
        duration_sec=minutes * 60,
        calories=calories,
        intensity=intensity,
        form_score=form_score,
        **kwargs,
    )


def make_snapshot(day: date, **kwargs) -> HealthSnapshot:
    return HealthSnapshot(date=day, **kwargs)


def build_month_of_workouts() -> list:
    """One workout per day, 1-28 May 2024.

    Intensity cycles low to extreme, form improves steadily and calories are
    exactly eight per minute.
    """
    workouts = []
    for day in range(1, 29):
        intensity = INTENSITY_CYCLE[day % 4]
        minutes = 30.0 + (day % 3) * 15.0
        workouts.append(make_workout(
            workout_id=f"w-{day}",
            when=datetime(2024, 5, day, 7, 0),
            minutes=minutes,
            calories=minutes * 8,
            intensity=intensity,
            form_score=round(0.5 + day * 0.01, 2),
            heart_rate=HeartRateStats(average=120 + intensity.level * 10, maximum=180),
            exercises=["squat"] if day % 2 == 0 else ["deadlift"],
        ))
    return workouts


def build_month_of_snapshots() -> list:
    """Daily snapshots for May 2024; sleep tracks that day's intensity."""
    snapshots = []
    for day in range(1, 32):
        intensity = INTENSITY_CYCLE[day % 4]
        snapshots.append(make_snapshot(
            date(2024, 5, day),
            sleep_hours=6.0 + intensity.level * 0.5,
            stress_level=30.0,
            energy_level=70.0,
            hrv=50.0 + day,
            resting_hr=55.0,
        ))
    return snapshots


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def workouts():
    return build_month_of_workouts()


@pytest.fixture
def snapshots():
    return build_month_of_snapshots()


@pytest.fixture
def user():
    return User(id="user-1", profile=UserProfile())


@pytest.fixture
def user_repo(user):
    repo = MagicMock()
    repo.get_user = AsyncMock(return_value=user)
    return repo


@pytest.fixture
def workout_repo(workouts):
    repo = MagicMock()
    repo.get_workouts = AsyncMock(return_value=workouts)
    return repo


@pytest.fixture
def health_provider(snapshots):
    provider = MagicMock()

    async def get_health_history(user_id, start, end):
        return [s for s in snapshots if start <= s.date <= end]

    provider.get_health_history = AsyncMock(side_effect=get_health_history)
    return provider


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def engine(user_repo, workout_repo, health_provider, settings, now):
    return AnalyticsEngine(
        users=user_repo,
        workouts=workout_repo,
        health=health_provider,
        settings=settings,
        clock=lambda: now,
    )
