from __future__ import annotations
import math
from typing import Callable, Dict, Iterable

from algorithms import NumberParser
from models import Exercise, ExerciseMode, Workout, WorkoutLog

ModeLookup = Callable[[str], ExerciseMode]


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


class VolumeCalculator:
    """Compute training volume and rep totals from logged workouts."""

    @staticmethod
    def mode_lookup(exercises: Iterable[Exercise]) -> ModeLookup:
        """Return a function mapping exercise ids to their mode.

        Unknown ids resolve to :attr:`ExerciseMode.REPS`.
        """
        modes: Dict[str, ExerciseMode] = {ex.id: ex.mode for ex in exercises}
        return lambda exercise_id: modes.get(exercise_id, ExerciseMode.REPS)

    @staticmethod
    def effective_weight(log: WorkoutLog) -> float:
        weight = NumberParser.parse_number(log.weight)
        if log.is_double:
            weight *= 2
        return _finite(weight)

    @staticmethod
    def rep_total(log: WorkoutLog) -> float:
        """Return ``sets * reps`` regardless of load or mode."""
        return _finite((log.sets or 0) * NumberParser.parse_number(log.reps))

    @classmethod
    def volume(cls, log: WorkoutLog, mode: ExerciseMode = ExerciseMode.REPS) -> float:
        """Return ``sets * reps * effective weight`` for a weighted rep log.

        Time based logs, logs without reps or load and overflowing products
        contribute nothing.
        """
        weight = cls.effective_weight(log)
        reps = NumberParser.parse_number(log.reps)
        if weight > 0 and reps > 0 and mode != ExerciseMode.TIME:
            return _finite((log.sets or 0) * reps * weight)
        return 0.0

    @classmethod
    def total_volume(
        cls, workout: Workout, mode_of: ModeLookup | None = None
    ) -> float:
        total = 0.0
        for log in workout.logs:
            mode = mode_of(log.exercise_id) if mode_of else ExerciseMode.REPS
            total += cls.volume(log, mode)
        return _finite(total)

    @classmethod
    def total_reps(cls, workout: Workout) -> float:
        total = 0.0
        for log in workout.logs:
            total += cls.rep_total(log)
        return _finite(total)

    @staticmethod
    def total_sets(workout: Workout) -> int:
        return sum(log.sets or 0 for log in workout.logs)

    @classmethod
    def sum_volume(
        cls, workouts: Iterable[Workout], mode_of: ModeLookup | None = None
    ) -> float:
        """Sum workout volumes left to right."""
        total = 0.0
        for workout in workouts:
            total += cls.total_volume(workout, mode_of)
        return _finite(total)

    @classmethod
    def sum_sets(cls, workouts: Iterable[Workout]) -> int:
        return sum(cls.total_sets(w) for w in workouts)
