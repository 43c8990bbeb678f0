from __future__ import annotations
import datetime
import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Set

from algorithms import MathTools
from models import Block, Exercise, Snapshot, Workout, WorkoutTemplate

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Raised when a repository cannot store a change."""


class TrainingRepository(ABC):
    """Snapshot reads and completion writes the engine depends on."""

    @abstractmethod
    def fetch_blocks(self) -> List[Block]:
        """Return every stored block, completed ones included."""

    @abstractmethod
    def fetch_workouts(self) -> List[Workout]:
        ...

    @abstractmethod
    def fetch_templates(self) -> List[WorkoutTemplate]:
        ...

    @abstractmethod
    def fetch_exercises(self) -> List[Exercise]:
        ...

    @abstractmethod
    def persist_block_completion(
        self, block_id: str, completed_date: datetime.datetime
    ) -> None:
        """Store ``completed_date`` on ``block_id``; raise PersistenceError on failure."""


def load_snapshot(repo: TrainingRepository) -> Snapshot:
    return Snapshot(
        blocks=repo.fetch_blocks(),
        workouts=repo.fetch_workouts(),
        templates=repo.fetch_templates(),
        exercises=repo.fetch_exercises(),
    )


class InMemoryRepository(TrainingRepository):
    """Repository keeping the journal in process memory."""

    def __init__(
        self,
        blocks: Iterable[Block] = (),
        workouts: Iterable[Workout] = (),
        templates: Iterable[WorkoutTemplate] = (),
        exercises: Iterable[Exercise] = (),
        failing_ids: Optional[Iterable[str]] = None,
    ) -> None:
        self._blocks: Dict[str, Block] = {b.id: b for b in blocks}
        self._workouts = list(workouts)
        self._templates = list(templates)
        self._exercises = list(exercises)
        self.failing_ids: Set[str] = set(failing_ids or ())
        self.writes: List[str] = []

    def fetch_blocks(self) -> List[Block]:
        return [b.model_copy() for b in self._blocks.values()]

    def fetch_workouts(self) -> List[Workout]:
        return [w.model_copy(deep=True) for w in self._workouts]

    def fetch_templates(self) -> List[WorkoutTemplate]:
        return [t.model_copy(deep=True) for t in self._templates]

    def fetch_exercises(self) -> List[Exercise]:
        return [e.model_copy(deep=True) for e in self._exercises]

    def save_block(self, block: Block) -> None:
        self._blocks[block.id] = block

    def delete_block(self, block_id: str) -> None:
        """Remove a block and its templates; workouts keep their reference."""
        if self._blocks.pop(block_id, None) is None:
            raise ValueError("block not found")
        self._templates = [t for t in self._templates if t.block_id != block_id]

    def persist_block_completion(
        self, block_id: str, completed_date: datetime.datetime
    ) -> None:
        if block_id in self.failing_ids:
            raise PersistenceError(f"write rejected for block {block_id}")
        block = self._blocks.get(block_id)
        if block is None:
            raise PersistenceError(f"block {block_id} not found")
        self.writes.append(block_id)
        if block.completed_date is not None:
            logger.debug("block %s already completed", block_id)
            return
        self._blocks[block_id] = block.model_copy(
            update={
                "completed_date": MathTools.as_utc(completed_date),
                "updated_at": datetime.datetime.now(datetime.timezone.utc),
            }
        )
