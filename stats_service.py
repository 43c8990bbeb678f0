from __future__ import annotations
import datetime
import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from algorithms import MathTools
from models import (
    CombinedMuscleStat,
    Exercise,
    MuscleBalance,
    MuscleCategory,
    MuscleGroup,
    MuscleStat,
    Workout,
    WorkoutFilter,
)
from settings_schema import SettingsSchema
from volume_service import VolumeCalculator

logger = logging.getLogger(__name__)


class StatisticsService:
    """Compute muscle exposure, balance and block level workout statistics."""

    def __init__(self, settings: SettingsSchema | None = None) -> None:
        self.settings = settings or SettingsSchema()

    @staticmethod
    def filter_workouts(
        workouts: Iterable[Workout], workout_filter: WorkoutFilter | None = None
    ) -> List[Workout]:
        if workout_filter is None:
            return list(workouts)
        return [w for w in workouts if workout_filter.matches(w)]

    # ------------------------------------------------------------------
    # Muscle balance
    # ------------------------------------------------------------------

    def aggregate(
        self,
        workouts: Iterable[Workout],
        exercises: Iterable[Exercise],
        workout_filter: WorkoutFilter | None = None,
    ) -> MuscleBalance:
        """Count sets per primary and secondary muscle across ``workouts``.

        Logs referencing an unknown exercise are skipped.
        """
        lookup: Dict[str, Exercise] = {ex.id: ex for ex in exercises}
        primary: Dict[MuscleGroup, int] = {}
        secondary: Dict[MuscleGroup, int] = {}
        exercise_ids: Dict[MuscleGroup, Set[str]] = {}
        for workout in self.filter_workouts(workouts, workout_filter):
            for log in workout.logs:
                exercise = lookup.get(log.exercise_id)
                if exercise is None:
                    logger.debug(
                        "skipping log %s: unknown exercise %s", log.id, log.exercise_id
                    )
                    continue
                sets = log.sets or 0
                for muscle in exercise.primary_muscles:
                    primary[muscle] = primary.get(muscle, 0) + sets
                    exercise_ids.setdefault(muscle, set()).add(exercise.id)
                for muscle in exercise.secondary_muscles:
                    secondary[muscle] = secondary.get(muscle, 0) + sets
                    exercise_ids.setdefault(muscle, set()).add(exercise.id)

        stats = [
            MuscleStat(
                muscle=muscle,
                primary_sets=primary.get(muscle, 0),
                secondary_sets=secondary.get(muscle, 0),
                exercise_count=len(exercise_ids.get(muscle, ())),
            )
            for muscle in set(primary) | set(secondary)
        ]
        stats.sort(key=lambda s: (-s.total_sets, s.muscle.value))
        return MuscleBalance(
            primary=primary,
            secondary=secondary,
            score=self.balance_score(primary),
            stats=stats,
        )

    @staticmethod
    def percentages(counts: Dict[MuscleGroup, int]) -> Dict[MuscleGroup, float]:
        """Return each muscle's share of all counted sets."""
        return MathTools.shares(counts)

    @staticmethod
    def balance_score(primary: Dict[MuscleGroup, int]) -> int:
        """Return 0-100, higher when sets spread evenly over all muscle groups.

        Uses ``1 - stddev / mean`` over every muscle group, with untrained
        groups counted as zero. No data scores 100.
        Because untrained groups count, an even split over only a few groups
        still scores low: 5 chest sets and 5 back sets score 0.
        """
        counts = [primary.get(muscle, 0) for muscle in MuscleGroup]
        if not any(counts):
            return 100
        cv = MathTools.coefficient_of_variation(counts)
        return int(MathTools.clamp(round((1 - cv) * 100), 0, 100))

    def combined_stats(self, balance: MuscleBalance) -> List[CombinedMuscleStat]:
        """Blend primary and secondary shares into one display value per muscle."""
        primary = self.percentages(balance.primary)
        secondary = self.percentages(balance.secondary)
        raw: List[Tuple[MuscleGroup, float, float, float]] = []
        for muscle in set(primary) | set(secondary):
            p = primary.get(muscle, 0.0) * self.settings.primary_weight
            s = secondary.get(muscle, 0.0) * self.settings.secondary_weight
            if p + s > 0:
                raw.append((muscle, p + s, p, s))
        if not raw:
            return []
        scale = self.settings.bar_scale / max(item[1] for item in raw)
        result = [
            CombinedMuscleStat(
                muscle=muscle,
                display_percent=total,
                primary_bar_width=p * scale,
                secondary_bar_width=s * scale,
            )
            for muscle, total, p, s in raw
        ]
        result.sort(key=lambda c: (-c.display_percent, c.muscle.value))
        return result

    def balance_focus_label(
        self,
        workouts: Iterable[Workout],
        exercises: Iterable[Exercise],
        block_id: str,
    ) -> str:
        """Return ``"upper body"``, ``"lower body"`` or ``"full body"``."""
        lookup = {ex.id: ex for ex in exercises}
        seen: Set[str] = set()
        scores = {category: 0.0 for category in MuscleCategory}
        for workout in workouts:
            if workout.block_id != block_id:
                continue
            for log in workout.logs:
                if log.exercise_id in seen:
                    continue
                seen.add(log.exercise_id)
                exercise = lookup.get(log.exercise_id)
                if exercise is None:
                    continue
                for category in MuscleCategory:
                    muscles = set(category.muscles)
                    if muscles & exercise.primary_muscles:
                        scores[category] += 1.0
                    if muscles & exercise.secondary_muscles:
                        scores[category] += 0.5
        upper = scores[MuscleCategory.UPPER]
        lower = scores[MuscleCategory.LOWER]
        ratio = self.settings.focus_ratio
        if lower > upper * ratio:
            return "lower body"
        if upper > lower * ratio:
            return "upper body"
        return "full body"

    # ------------------------------------------------------------------
    # Workout totals
    # ------------------------------------------------------------------

    @staticmethod
    def _for_block(workouts: Iterable[Workout], block_id: Optional[str]) -> List[Workout]:
        if block_id is None:
            return list(workouts)
        return [w for w in workouts if w.block_id == block_id]

    def total_workouts(
        self, workouts: Iterable[Workout], block_id: Optional[str] = None
    ) -> int:
        return len(self._for_block(workouts, block_id))

    def total_sets(
        self, workouts: Iterable[Workout], block_id: Optional[str] = None
    ) -> int:
        return VolumeCalculator.sum_sets(self._for_block(workouts, block_id))

    def total_volume(
        self,
        workouts: Iterable[Workout],
        exercises: Iterable[Exercise],
        block_id: Optional[str] = None,
    ) -> float:
        mode_of = VolumeCalculator.mode_lookup(exercises)
        return VolumeCalculator.sum_volume(self._for_block(workouts, block_id), mode_of)

    @staticmethod
    def workout_counts(workouts: Iterable[Workout]) -> Dict[str, int]:
        """Return the number of workouts logged against each block."""
        counts: Dict[str, int] = {}
        for workout in workouts:
            if workout.block_id is not None:
                counts[workout.block_id] = counts.get(workout.block_id, 0) + 1
        return counts

    def recent_workouts(
        self, workouts: Iterable[Workout], block_id: str, limit: int
    ) -> List[Workout]:
        ordered = sorted(
            self._for_block(workouts, block_id), key=lambda w: w.date, reverse=True
        )
        return ordered[: max(0, limit)]

    def group_by_month(
        self, workouts: Iterable[Workout]
    ) -> List[Tuple[str, List[Workout]]]:
        """Group workouts under ``"Jan 2024"`` style labels, newest first."""
        groups: Dict[datetime.date, List[Workout]] = {}
        for workout in workouts:
            day = MathTools.local_date(workout.date, self.settings.timezone)
            groups.setdefault(day.replace(day=1), []).append(workout)
        result = []
        for month in sorted(groups, reverse=True):
            items = sorted(groups[month], key=lambda w: w.date, reverse=True)
            result.append((f"{month:%b %Y}", items))
        return result
