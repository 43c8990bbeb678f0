import os
import sys
import datetime
import logging
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from engine import TrainingEngine
from models import (
    Block,
    BlockState,
    Exercise,
    MuscleGroup,
    Workout,
    WorkoutLog,
    WorkoutTemplate,
)
from repository import (
    InMemoryRepository,
    PersistenceError,
    TrainingRepository,
    load_snapshot,
)

UTC = datetime.timezone.utc


def day(month: int, d: int) -> datetime.datetime:
    return datetime.datetime(2024, month, d, tzinfo=UTC)


def swing_session(workout_id, date, weight, block_id="current", name="A") -> Workout:
    return Workout(
        id=workout_id,
        name=name,
        date=date,
        block_id=block_id,
        logs=[
            WorkoutLog(
                id=f"{workout_id}-swing",
                exercise_id="swing",
                exercise_name="Swing",
                sets=3,
                reps="10",
                weight=weight,
                is_double=True,
            )
        ],
    )


class TrainingEngineTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.now = day(2, 15)
        self.repo = InMemoryRepository(
            blocks=[
                Block(id="old", name="Old", start_date=day(1, 1), end_date=day(1, 28)),
                Block(id="broken", name="Broken", start_date=day(1, 1), end_date=day(2, 1)),
                Block(id="current", name="Current", start_date=day(2, 1)),
                Block(id="next", name="Next", start_date=day(3, 1), end_date=day(3, 28)),
            ],
            workouts=[
                swing_session("w1", day(2, 2), "20"),
                swing_session("w2", day(2, 9), "24"),
                swing_session("w0", day(1, 10), "16", block_id="old"),
            ],
            templates=[
                WorkoutTemplate(id="tB", name="B", block_id="current"),
                WorkoutTemplate(id="tA", name="A", block_id="current"),
                WorkoutTemplate(id="tOld", name="A", block_id="old"),
            ],
            exercises=[
                Exercise(
                    id="swing",
                    name="Swing",
                    primary_muscles={MuscleGroup.GLUTES, MuscleGroup.HAMSTRINGS},
                    secondary_muscles={MuscleGroup.CORE},
                )
            ],
            failing_ids=["broken"],
        )
        self.engine = TrainingEngine(self.repo)

    def test_run_completes_expired_blocks(self) -> None:
        with self.assertLogs("engine", level=logging.INFO) as logs:
            report = self.engine.run(now=self.now)
        self.assertEqual(report.completions.completed, ["old"])
        self.assertEqual(list(report.completions.failed), ["broken"])
        self.assertFalse(report.completions.ok)
        self.assertTrue(any("broken" in line for line in logs.output))

        stored = {b.id: b for b in self.repo.fetch_blocks()}
        self.assertEqual(stored["old"].completed_date, self.now)
        self.assertIsNone(stored["broken"].completed_date)

        in_memory = {b.id: b for b in report.snapshot.blocks}
        self.assertEqual(in_memory["broken"].completed_date, self.now)

    def test_failed_completion_is_retried(self) -> None:
        self.engine.run(now=self.now)
        self.repo.failing_ids.clear()
        report = self.engine.run(now=self.now)
        self.assertEqual(report.completions.completed, ["broken"])
        third = self.engine.run(now=self.now)
        self.assertEqual(third.completions.completed, [])
        self.assertEqual(self.repo.writes, ["old", "broken"])

    def test_block_overviews(self) -> None:
        report = self.engine.run(now=self.now)
        overviews = {o.block.id: o for o in report.blocks}
        self.assertEqual([o.block.id for o in report.blocks][0], "next")
        self.assertEqual(overviews["old"].status.state, BlockState.COMPLETED)
        self.assertEqual(overviews["current"].status.state, BlockState.ACTIVE)
        self.assertEqual(overviews["next"].status.state, BlockState.PLANNED)
        self.assertEqual(overviews["current"].week_progress.label, "Ongoing")
        self.assertEqual(overviews["next"].week_progress.label, "Week 1 of 4")
        self.assertEqual(overviews["old"].date_range, "Jan 1 – Feb 15")
        self.assertEqual(overviews["current"].workout_count, 2)
        self.assertEqual(overviews["current"].total_sets, 6)
        self.assertEqual(overviews["current"].total_volume, 1200 + 1440)
        self.assertEqual(overviews["current"].focus, "lower body")

    def test_selected_block_statistics(self) -> None:
        report = self.engine.run(now=self.now)
        self.assertEqual(report.selected_block_id, "current")
        self.assertEqual(
            report.balance.primary, {MuscleGroup.GLUTES: 6, MuscleGroup.HAMSTRINGS: 6}
        )
        self.assertEqual(report.balance.secondary, {MuscleGroup.CORE: 6})
        self.assertEqual([p.name for p in report.template_progress], ["A", "B"])
        self.assertEqual(report.template_progress[0].volume_delta, 240)
        self.assertEqual(report.template_progress[1].completion_count, 0)

    def test_explicit_block_selection(self) -> None:
        report = self.engine.run(now=self.now, block_id="old")
        self.assertEqual(report.balance.primary[MuscleGroup.GLUTES], 3)
        self.assertEqual([p.template_id for p in report.template_progress], ["tOld"])
        self.assertIsNone(report.template_progress[0].volume_delta)

    def test_no_active_block_uses_all_workouts(self) -> None:
        self.repo.save_block(
            Block(
                id="current",
                name="Current",
                start_date=day(2, 1),
                completed_date=day(2, 10),
            )
        )
        report = self.engine.run(now=day(12, 1))
        self.assertIsNone(report.selected_block_id)
        self.assertEqual(report.balance.primary[MuscleGroup.GLUTES], 9)
        self.assertEqual(report.template_progress, [])


class InMemoryRepositoryTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.repo = InMemoryRepository(
            blocks=[Block(id="b", name="B", start_date=day(1, 1))],
            templates=[WorkoutTemplate(id="t", name="A", block_id="b")],
            workouts=[Workout(id="w", date=day(1, 2), block_id="b")],
        )

    def test_completion_is_idempotent(self) -> None:
        self.repo.persist_block_completion("b", day(1, 10))
        self.repo.persist_block_completion("b", day(1, 20))
        self.assertEqual(self.repo.fetch_blocks()[0].completed_date, day(1, 10))

    def test_unknown_block(self) -> None:
        with self.assertRaises(PersistenceError):
            self.repo.persist_block_completion("missing", day(1, 10))

    def test_delete_block_keeps_workouts(self) -> None:
        self.repo.delete_block("b")
        snapshot = load_snapshot(self.repo)
        self.assertEqual(snapshot.blocks, [])
        self.assertEqual(snapshot.templates, [])
        self.assertEqual(len(snapshot.workouts), 1)
        with self.assertRaises(ValueError):
            self.repo.delete_block("b")

    def test_fetch_returns_copies(self) -> None:
        blocks = self.repo.fetch_blocks()
        blocks[0].name = "changed"
        self.assertEqual(self.repo.fetch_blocks()[0].name, "B")

    def test_repository_must_implement_every_operation(self) -> None:
        class ReadOnlyRepository(TrainingRepository):
            def fetch_blocks(self):
                return []

        with self.assertRaises(TypeError):
            ReadOnlyRepository()


class FlakyRepository(InMemoryRepository):
    """Raises a transport error instead of PersistenceError for some blocks."""

    def persist_block_completion(self, block_id, completed_date) -> None:
        if block_id == "a":
            raise ConnectionError("database unavailable")
        super().persist_block_completion(block_id, completed_date)


class UnexpectedWriteErrorTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.repo = FlakyRepository(
            blocks=[
                Block(id="a", name="A", start_date=day(1, 1), end_date=day(1, 14)),
                Block(id="b", name="B", start_date=day(1, 15), end_date=day(1, 28)),
            ]
        )
        self.engine = TrainingEngine(self.repo)

    def test_other_blocks_still_complete(self) -> None:
        with self.assertLogs("engine", level=logging.WARNING):
            report = self.engine.run(now=day(2, 15))
        self.assertEqual(report.completions.completed, ["b"])
        self.assertIn("database unavailable", report.completions.failed["a"])
        self.assertEqual(self.repo.writes, ["b"])
        stored = {b.id: b for b in self.repo.fetch_blocks()}
        self.assertIsNone(stored["a"].completed_date)
        self.assertEqual(stored["b"].completed_date, day(2, 15))


if __name__ == "__main__":
    unittest.main()
