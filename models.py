from __future__ import annotations
import datetime
from enum import Enum
from typing import List, Optional, Dict, Set

from pydantic import BaseModel, Field, field_validator

from algorithms import MathTools


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class MuscleGroup(str, Enum):
    """Muscle groups an exercise can train."""

    CHEST = "chest"
    BACK = "back"
    SHOULDERS = "shoulders"
    TRICEPS = "triceps"
    BICEPS = "biceps"
    FOREARMS = "forearms"
    QUADS = "quads"
    HAMSTRINGS = "hamstrings"
    GLUTES = "glutes"
    CALVES = "calves"
    CORE = "core"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class MuscleCategory(str, Enum):
    """Coarse body regions used for the training focus label."""

    UPPER = "Upper"
    LOWER = "Lower"
    CORE = "Core"

    @property
    def muscles(self) -> List[MuscleGroup]:
        if self is MuscleCategory.UPPER:
            return [
                MuscleGroup.CHEST,
                MuscleGroup.BACK,
                MuscleGroup.SHOULDERS,
                MuscleGroup.TRICEPS,
                MuscleGroup.BICEPS,
                MuscleGroup.FOREARMS,
            ]
        if self is MuscleCategory.LOWER:
            return [
                MuscleGroup.QUADS,
                MuscleGroup.HAMSTRINGS,
                MuscleGroup.GLUTES,
                MuscleGroup.CALVES,
            ]
        return [MuscleGroup.CORE]


class ExerciseMode(str, Enum):
    """How an exercise is scored: by repetitions or by time."""

    REPS = "reps"
    TIME = "time"


class BlockState(str, Enum):
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"


class _Timestamped(BaseModel):
    """Normalizes every date field to an aware UTC datetime."""

    @field_validator("*", mode="before")
    @classmethod
    def dates_to_utc(cls, value):
        if isinstance(value, (datetime.datetime, datetime.date)):
            return MathTools.as_utc(value)
        return value

    @field_validator("*", mode="after")
    @classmethod
    def parsed_dates_to_utc(cls, value):
        if isinstance(value, datetime.datetime):
            return MathTools.as_utc(value)
        return value


class Exercise(BaseModel):
    id: str
    name: str
    primary_muscles: Set[MuscleGroup] = Field(default_factory=set)
    secondary_muscles: Set[MuscleGroup] = Field(default_factory=set)
    mode: ExerciseMode = ExerciseMode.REPS


class Block(_Timestamped):
    """A named training period; ``end_date`` of ``None`` means ongoing."""

    id: str
    name: str
    start_date: datetime.datetime
    end_date: Optional[datetime.datetime] = None
    notes: Optional[str] = None
    created_at: datetime.datetime = Field(default_factory=_utc_now)
    updated_at: datetime.datetime = Field(default_factory=_utc_now)
    completed_date: Optional[datetime.datetime] = None
    color_index: Optional[int] = None


class TemplateEntry(BaseModel):
    exercise_id: str
    exercise_name: str
    sets: Optional[int] = None
    reps: Optional[str] = None
    weight: Optional[str] = None
    is_double: bool = False
    note: Optional[str] = None


class WorkoutTemplate(BaseModel):
    """An ordered exercise plan scoped to exactly one block."""

    id: str
    name: str
    block_id: str
    entries: List[TemplateEntry] = Field(default_factory=list)


class WorkoutLog(BaseModel):
    """One exercise's recorded performance within a workout.

    ``reps`` and ``weight`` are free text; ``is_double`` marks a weight that
    is one of a pair of equal loads.
    """

    id: str
    exercise_id: str
    exercise_name: str
    sets: Optional[int] = None
    reps: Optional[str] = None
    weight: Optional[str] = None
    is_double: bool = False
    note: Optional[str] = None


class Workout(_Timestamped):
    id: str
    name: Optional[str] = None
    date: datetime.datetime
    block_id: Optional[str] = None
    logs: List[WorkoutLog] = Field(default_factory=list)


class Snapshot(BaseModel):
    """Full in-memory copy of the journal handed to the engine."""

    blocks: List[Block] = Field(default_factory=list)
    workouts: List[Workout] = Field(default_factory=list)
    templates: List[WorkoutTemplate] = Field(default_factory=list)
    exercises: List[Exercise] = Field(default_factory=list)


class BlockStatus(BaseModel):
    """Canonical lifecycle state of a block at a point in time."""

    state: BlockState
    completed_at: Optional[datetime.datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.state is BlockState.COMPLETED


class WeekProgress(BaseModel):
    """Week counters for a block.

    ``total_days`` is the inclusive day span and ``total_weeks`` the number
    of started weeks it covers; both are ``None`` for ongoing blocks.
    """

    ongoing: bool
    elapsed_days: int
    current_week: int
    total_days: Optional[int] = None
    total_weeks: Optional[int] = None

    @property
    def label(self) -> str:
        if self.ongoing:
            return "Ongoing"
        return f"Week {self.current_week} of {self.total_weeks}"

    @property
    def ongoing_label(self) -> str:
        if self.ongoing:
            return f"Week {self.current_week} (ongoing)"
        return self.label


class WorkoutFilter(_Timestamped):
    """Conjunctive workout selection; unset fields match everything."""

    block_id: Optional[str] = None
    template_name: Optional[str] = None
    start: Optional[datetime.datetime] = None
    end: Optional[datetime.datetime] = None

    def matches(self, workout: Workout) -> bool:
        if self.block_id is not None and workout.block_id != self.block_id:
            return False
        if self.template_name is not None and workout.name != self.template_name:
            return False
        if self.start is not None and workout.date < self.start:
            return False
        if self.end is not None and workout.date > self.end:
            return False
        return True


class MuscleStat(BaseModel):
    muscle: MuscleGroup
    primary_sets: int = 0
    secondary_sets: int = 0
    exercise_count: int = 0

    @property
    def total_sets(self) -> int:
        return self.primary_sets + self.secondary_sets


class CombinedMuscleStat(BaseModel):
    muscle: MuscleGroup
    display_percent: float
    primary_bar_width: float
    secondary_bar_width: float


class MuscleBalance(BaseModel):
    primary: Dict[MuscleGroup, int] = Field(default_factory=dict)
    secondary: Dict[MuscleGroup, int] = Field(default_factory=dict)
    score: int = 100
    stats: List[MuscleStat] = Field(default_factory=list)


class TemplateProgress(BaseModel):
    """Latest-versus-prior comparison for one template.

    At most one of ``volume_delta`` and ``reps_delta`` is set.
    """

    template_id: str
    name: str
    completion_count: int = 0
    volume_delta: Optional[int] = None
    reps_delta: Optional[int] = None


class CompletionReport(BaseModel):
    """Outcome of persisting auto-completions for one run."""

    completed: List[str] = Field(default_factory=list)
    failed: Dict[str, str] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class BlockOverview(BaseModel):
    block: Block
    status: BlockStatus
    week_progress: WeekProgress
    date_range: str
    workout_count: int = 0
    total_sets: int = 0
    total_volume: float = 0.0
    focus: str = "full body"


class EngineReport(BaseModel):
    """Everything derived from one snapshot run."""

    generated_at: datetime.datetime
    snapshot: Snapshot
    completions: CompletionReport = Field(default_factory=CompletionReport)
    blocks: List[BlockOverview] = Field(default_factory=list)
    selected_block_id: Optional[str] = None
    balance: MuscleBalance = Field(default_factory=MuscleBalance)
    template_progress: List[TemplateProgress] = Field(default_factory=list)
