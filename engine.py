from __future__ import annotations
import datetime
import logging
from typing import Optional, Tuple

from algorithms import MathTools
from block_service import BlockLifecycleService
from models import (
    BlockOverview,
    CompletionReport,
    EngineReport,
    Snapshot,
    WorkoutFilter,
)
from progress_service import TemplateProgressService
from repository import TrainingRepository, load_snapshot
from settings_schema import SettingsSchema
from stats_service import StatisticsService

logger = logging.getLogger(__name__)


class TrainingEngine:
    """Run block lifecycle, balance and progress analytics over one snapshot."""

    def __init__(
        self,
        repo: TrainingRepository,
        settings: SettingsSchema | None = None,
    ) -> None:
        self.repo = repo
        self.settings = settings or SettingsSchema()
        self.blocks = BlockLifecycleService(self.settings)
        self.stats = StatisticsService(self.settings)

    def complete_expired(
        self, snapshot: Snapshot, now: datetime.datetime
    ) -> Tuple[Snapshot, CompletionReport]:
        """Persist completions for expired blocks, one block at a time.

        The returned snapshot carries every intended completion even when
        its write failed; failures are listed in the report and retried on
        the next run since the stored block is still open.
        """
        report = CompletionReport()
        expired = self.blocks.auto_complete_expired(snapshot.blocks, now)
        for block_id in expired:
            try:
                self.repo.persist_block_completion(block_id, now)
            except Exception as e:
                logger.warning("failed to complete block %s: %s", block_id, e)
                report.failed[block_id] = str(e)
                continue
            logger.info("auto-completed block %s", block_id)
            report.completed.append(block_id)
        blocks = self.blocks.apply_completions(snapshot.blocks, expired, now)
        return snapshot.model_copy(update={"blocks": blocks}), report

    def run(
        self,
        now: datetime.datetime | None = None,
        block_id: Optional[str] = None,
    ) -> EngineReport:
        """Load a snapshot and derive every statistic for it.

        ``block_id`` selects the block for balance and template progress;
        it defaults to the current active block.
        """
        now = MathTools.as_utc(now or datetime.datetime.now(datetime.timezone.utc))
        snapshot, completions = self.complete_expired(load_snapshot(self.repo), now)

        overviews = []
        for block in self.blocks.all_blocks(snapshot.blocks):
            overviews.append(
                BlockOverview(
                    block=block,
                    status=self.blocks.status(block, now),
                    week_progress=self.blocks.week_progress(block, now),
                    date_range=self.blocks.date_range(block),
                    workout_count=self.stats.total_workouts(snapshot.workouts, block.id),
                    total_sets=self.stats.total_sets(snapshot.workouts, block.id),
                    total_volume=self.stats.total_volume(
                        snapshot.workouts, snapshot.exercises, block.id
                    ),
                    focus=self.stats.balance_focus_label(
                        snapshot.workouts, snapshot.exercises, block.id
                    ),
                )
            )

        if block_id is None:
            active = self.blocks.active_block(snapshot.blocks, now)
            block_id = active.id if active else None
        balance = self.stats.aggregate(
            snapshot.workouts,
            snapshot.exercises,
            WorkoutFilter(block_id=block_id),
        )

        progress = TemplateProgressService(snapshot.exercises, self.settings)
        if block_id is None:
            templates = []
        else:
            templates = sorted(
                self.blocks.templates_for_block(snapshot.templates, block_id),
                key=lambda t: t.name,
            )
        template_progress = [progress.progress(t, snapshot.workouts) for t in templates]

        return EngineReport(
            generated_at=now,
            snapshot=snapshot,
            completions=completions,
            blocks=overviews,
            selected_block_id=block_id,
            balance=balance,
            template_progress=template_progress,
        )
