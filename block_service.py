from __future__ import annotations
import datetime
from typing import Iterable, List, Optional

from algorithms import MathTools
from models import (
    Block,
    BlockState,
    BlockStatus,
    WeekProgress,
    WorkoutTemplate,
)
from settings_schema import SettingsSchema


class BlockLifecycleService:
    """Derive block lifecycle state and week progress from raw dates."""

    def __init__(self, settings: SettingsSchema | None = None) -> None:
        self.settings = settings or SettingsSchema()

    @staticmethod
    def _now(now: datetime.datetime | None) -> datetime.datetime:
        if now is None:
            return datetime.datetime.now(datetime.timezone.utc)
        return MathTools.as_utc(now)

    @staticmethod
    def is_expired(block: Block, now: datetime.datetime) -> bool:
        """Return ``True`` once ``now`` has reached the block's end date."""
        return block.end_date is not None and MathTools.as_utc(now) >= block.end_date

    def status(self, block: Block, now: datetime.datetime | None = None) -> BlockStatus:
        """Return the canonical state of ``block`` at ``now``.

        An explicit ``completed_date`` or a passed ``end_date`` each mark the
        block completed.
        """
        now = self._now(now)
        if block.completed_date is not None:
            return BlockStatus(
                state=BlockState.COMPLETED, completed_at=block.completed_date
            )
        if self.is_expired(block, now):
            return BlockStatus(state=BlockState.COMPLETED, completed_at=block.end_date)
        if block.start_date > now:
            return BlockStatus(state=BlockState.PLANNED)
        return BlockStatus(state=BlockState.ACTIVE)

    def classify(self, block: Block, now: datetime.datetime | None = None) -> BlockState:
        return self.status(block, now).state

    def week_progress(
        self, block: Block, now: datetime.datetime | None = None
    ) -> WeekProgress:
        now = self._now(now)
        tz = self.settings.timezone
        elapsed = max(0, MathTools.days_between(block.start_date, now, tz))
        if block.end_date is None:
            return WeekProgress(
                ongoing=True,
                elapsed_days=elapsed,
                current_week=elapsed // MathTools.DAYS_PER_WEEK + 1,
            )
        total_days = max(1, MathTools.days_between(block.start_date, block.end_date, tz) + 1)
        total_weeks = max(1, MathTools.weeks_for_days(total_days))
        current = min(total_weeks, elapsed // MathTools.DAYS_PER_WEEK + 1)
        return WeekProgress(
            ongoing=False,
            elapsed_days=elapsed,
            current_week=current,
            total_days=total_days,
            total_weeks=total_weeks,
        )

    def week_progress_text(self, block: Block, now: datetime.datetime | None = None) -> str:
        """Return e.g. ``"Week 3 of 4"`` or ``"Ongoing"``."""
        return self.week_progress(block, now).label

    def duration_weeks(
        self, start: datetime.datetime, end: Optional[datetime.datetime]
    ) -> Optional[int]:
        """Return the week count an editor shows for ``start``..``end``."""
        if end is None:
            return None
        days = max(1, MathTools.days_between(start, end, self.settings.timezone) + 1)
        return MathTools.weeks_for_days(days)

    # ------------------------------------------------------------------
    # Auto-completion
    # ------------------------------------------------------------------

    def auto_complete_expired(
        self, blocks: Iterable[Block], now: datetime.datetime | None = None
    ) -> List[str]:
        """Return ids of blocks whose end date passed without completion.

        The blocks are not modified; see :meth:`apply_completions`.
        """
        now = self._now(now)
        return [
            b.id
            for b in blocks
            if b.completed_date is None and self.is_expired(b, now)
        ]

    @staticmethod
    def apply_completions(
        blocks: Iterable[Block],
        block_ids: Iterable[str],
        completed_date: datetime.datetime,
    ) -> List[Block]:
        """Return ``blocks`` with ``completed_date`` set on ``block_ids``.

        Blocks that already carry a completion date are left untouched.
        """
        ids = set(block_ids)
        result: List[Block] = []
        for block in blocks:
            if block.id in ids and block.completed_date is None:
                block = block.model_copy(
                    update={"completed_date": MathTools.as_utc(completed_date)}
                )
            result.append(block)
        return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _in_state(
        self, blocks: Iterable[Block], state: BlockState, now: datetime.datetime | None
    ) -> List[Block]:
        now = self._now(now)
        return [b for b in blocks if self.classify(b, now) is state]

    def active_blocks(
        self, blocks: Iterable[Block], now: datetime.datetime | None = None
    ) -> List[Block]:
        """Active blocks, most recently started first."""
        found = self._in_state(blocks, BlockState.ACTIVE, now)
        return sorted(found, key=lambda b: b.start_date, reverse=True)

    def active_block(
        self, blocks: Iterable[Block], now: datetime.datetime | None = None
    ) -> Optional[Block]:
        active = self.active_blocks(blocks, now)
        return active[0] if active else None

    def planned_blocks(
        self, blocks: Iterable[Block], now: datetime.datetime | None = None
    ) -> List[Block]:
        """Planned blocks, soonest first."""
        found = self._in_state(blocks, BlockState.PLANNED, now)
        return sorted(found, key=lambda b: b.start_date)

    def past_blocks(
        self, blocks: Iterable[Block], now: datetime.datetime | None = None
    ) -> List[Block]:
        found = self._in_state(blocks, BlockState.COMPLETED, now)
        return sorted(found, key=lambda b: b.start_date, reverse=True)

    @staticmethod
    def all_blocks(blocks: Iterable[Block]) -> List[Block]:
        return sorted(blocks, key=lambda b: b.start_date, reverse=True)

    @staticmethod
    def templates_for_block(
        templates: Iterable[WorkoutTemplate], block_id: str
    ) -> List[WorkoutTemplate]:
        return [t for t in templates if t.block_id == block_id]

    def active_templates(
        self,
        blocks: Iterable[Block],
        templates: Iterable[WorkoutTemplate],
        now: datetime.datetime | None = None,
    ) -> List[WorkoutTemplate]:
        """Templates of every active block, sorted by name."""
        active_ids = {b.id for b in self.active_blocks(blocks, now)}
        return sorted(
            (t for t in templates if t.block_id in active_ids), key=lambda t: t.name
        )

    def date_range(self, block: Block) -> str:
        """Return e.g. ``"Jan 1 – Jan 28"``."""
        end = block.completed_date or block.end_date or block.start_date
        tz = self.settings.timezone
        return f"{self._short_date(block.start_date, tz)} – {self._short_date(end, tz)}"

    @staticmethod
    def _short_date(value: datetime.datetime, tz: str) -> str:
        day = MathTools.local_date(value, tz)
        return f"{day:%b} {day.day}"

    def block_color_index(
        self, blocks: List[Block], block_id: str, now: datetime.datetime | None = None
    ) -> int:
        """Return the stored color index or the block's chronological position."""
        for block in blocks:
            if block.id == block_id and block.color_index is not None:
                return block.color_index
        known = self.active_blocks(blocks, now) + self.past_blocks(blocks, now)
        ordered = sorted(known, key=lambda b: b.start_date)
        for index, block in enumerate(ordered):
            if block.id == block_id:
                return index
        return 0
