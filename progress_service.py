from __future__ import annotations
from typing import Iterable, List, Optional, Tuple

from models import Exercise, TemplateProgress, Workout, WorkoutTemplate
from settings_schema import SettingsSchema
from volume_service import ModeLookup, VolumeCalculator


class TemplateProgressService:
    """Compare the two most recent completions of a workout template."""

    def __init__(
        self,
        exercises: Iterable[Exercise] = (),
        settings: SettingsSchema | None = None,
    ) -> None:
        self.settings = settings or SettingsSchema()
        self.mode_of: ModeLookup = VolumeCalculator.mode_lookup(exercises)

    @staticmethod
    def template_workouts(
        workouts: Iterable[Workout], template_name: str, block_id: str
    ) -> List[Workout]:
        """Return workouts of ``block_id`` named ``template_name``, newest first.

        Workouts are joined to templates by name.
        """
        matching = [
            w for w in workouts if w.block_id == block_id and w.name == template_name
        ]
        return sorted(matching, key=lambda w: w.date, reverse=True)

    @staticmethod
    def _delta(latest: float, prior: float) -> Optional[int]:
        if latest == 0:
            return None
        return int(latest - prior)

    def volume_delta(
        self, workouts: Iterable[Workout], template_name: str, block_id: str
    ) -> Optional[int]:
        """Return latest minus prior volume, or ``None`` without comparable data."""
        history = self.template_workouts(workouts, template_name, block_id)
        if len(history) < 2:
            return None
        return self._delta(
            VolumeCalculator.total_volume(history[0], self.mode_of),
            VolumeCalculator.total_volume(history[1], self.mode_of),
        )

    def reps_delta(
        self, workouts: Iterable[Workout], template_name: str, block_id: str
    ) -> Optional[int]:
        history = self.template_workouts(workouts, template_name, block_id)
        if len(history) < 2:
            return None
        return self._delta(
            VolumeCalculator.total_reps(history[0]),
            VolumeCalculator.total_reps(history[1]),
        )

    def progress(
        self, template: WorkoutTemplate, workouts: Iterable[Workout]
    ) -> TemplateProgress:
        """Return completions and the delta metric suited to ``template``.

        Volume is reported when the latest completion has weighted volume,
        rep totals otherwise.
        """
        history = self.template_workouts(workouts, template.name, template.block_id)
        result = TemplateProgress(
            template_id=template.id,
            name=template.name,
            completion_count=len(history),
        )
        if not history:
            return result
        if VolumeCalculator.total_volume(history[0], self.mode_of) > 0:
            result.volume_delta = self.volume_delta(
                history, template.name, template.block_id
            )
        else:
            result.reps_delta = self.reps_delta(
                history, template.name, template.block_id
            )
        return result

    def volume_stats(
        self, workouts: Iterable[Workout], template_name: str, block_id: str
    ) -> Optional[Tuple[int, int]]:
        """Return ``(best, last)`` volume for a template, if ever completed."""
        history = self.template_workouts(workouts, template_name, block_id)
        if not history:
            return None
        volumes = [VolumeCalculator.total_volume(w, self.mode_of) for w in history]
        return int(max(volumes)), int(volumes[0])

    def format_delta(self, progress: TemplateProgress) -> Optional[str]:
        """Return e.g. ``"↑ 200 kg"`` or ``"↓ 5 reps"``."""
        if progress.completion_count < 2:
            return None
        if progress.volume_delta is not None:
            delta, unit = progress.volume_delta, self.settings.weight_unit
        elif progress.reps_delta is not None:
            delta, unit = progress.reps_delta, "reps"
        else:
            return None
        if delta == 0:
            return None
        arrow = "↑" if delta > 0 else "↓"
        return f"{arrow} {abs(delta)} {unit}"
